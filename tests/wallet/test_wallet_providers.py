import json

import httpx
import pytest

from conftest import PROVIDER_ADDRESS, TEST_ADDRESS, TEST_PRIVATE_KEY
from zg_inference.config import Settings
from zg_inference.wallet import (
    JsonRpcWalletProvider,
    LocalAccountWalletProvider,
    WalletRequestError,
    detect_wallet_provider,
)


def _rpc_transport(results):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        seen.append(body)
        result = results[body["method"]]
        if isinstance(result, dict) and "error" in result:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], **result})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    return httpx.MockTransport(handler), seen


@pytest.mark.asyncio
async def test_json_rpc_provider_forwards_calls():
    transport, seen = _rpc_transport({"eth_chainId": "0x40d9"})
    provider = JsonRpcWalletProvider("http://signer.local", transport=transport)

    assert await provider.request("eth_chainId") == "0x40d9"
    assert seen[0]["method"] == "eth_chainId"
    assert seen[0]["params"] == []
    await provider.aclose()


@pytest.mark.asyncio
async def test_json_rpc_provider_raises_wallet_errors():
    transport, _ = _rpc_transport({
        "eth_requestAccounts": {"error": {"code": 4001, "message": "User rejected the request."}},
    })
    provider = JsonRpcWalletProvider("http://signer.local", transport=transport)

    with pytest.raises(WalletRequestError) as exc_info:
        await provider.request("eth_requestAccounts")

    assert exc_info.value.is_user_rejection
    await provider.aclose()


@pytest.mark.asyncio
async def test_json_rpc_provider_wraps_http_errors():
    transport = httpx.MockTransport(lambda request: httpx.Response(502, text="bad gateway"))
    provider = JsonRpcWalletProvider("http://signer.local", transport=transport)

    with pytest.raises(WalletRequestError, match="HTTP 502"):
        await provider.request("eth_accounts")
    await provider.aclose()


@pytest.mark.asyncio
async def test_local_provider_gates_accounts_until_requested(local_provider):
    assert await local_provider.request("eth_accounts") == []
    assert await local_provider.request("eth_requestAccounts") == [TEST_ADDRESS]
    assert await local_provider.request("eth_accounts") == [TEST_ADDRESS]
    assert await local_provider.request("eth_chainId") == hex(16601)


@pytest.mark.asyncio
async def test_local_provider_refuses_to_sign_before_authorization(local_provider):
    with pytest.raises(WalletRequestError):
        await local_provider.request("personal_sign", ["0x68656c6c6f", TEST_ADDRESS])


@pytest.mark.asyncio
async def test_local_provider_refuses_unknown_signer(local_provider):
    await local_provider.request("eth_requestAccounts")
    with pytest.raises(WalletRequestError, match="Unknown signer"):
        await local_provider.request("personal_sign", ["0x68656c6c6f", PROVIDER_ADDRESS])


@pytest.mark.asyncio
async def test_local_provider_async_approval():
    async def approve(address):
        return address == TEST_ADDRESS

    provider = LocalAccountWalletProvider(TEST_PRIVATE_KEY, chain_id=1, approve=approve)
    assert await provider.request("eth_requestAccounts") == [TEST_ADDRESS]


@pytest.mark.asyncio
async def test_local_provider_forwards_chain_queries_upstream():
    transport, seen = _rpc_transport({"eth_chainId": "0x1", "eth_getBalance": "0x0"})
    upstream = JsonRpcWalletProvider("http://rpc.local", transport=transport)
    provider = LocalAccountWalletProvider(TEST_PRIVATE_KEY, chain_id=16601, upstream=upstream)

    assert await provider.request("eth_chainId") == "0x1"
    assert await provider.request("eth_getBalance", [TEST_ADDRESS, "latest"]) == "0x0"
    assert [call["method"] for call in seen] == ["eth_chainId", "eth_getBalance"]
    await provider.aclose()


def test_detect_prefers_local_key():
    config = Settings(_env_file=None, wallet_private_key=TEST_PRIVATE_KEY, wallet_rpc_url="http://signer.local")
    provider = detect_wallet_provider(config)
    assert isinstance(provider, LocalAccountWalletProvider)


def test_detect_falls_back_to_remote_signer():
    config = Settings(_env_file=None, wallet_private_key="", wallet_rpc_url="http://signer.local")
    provider = detect_wallet_provider(config)
    assert isinstance(provider, JsonRpcWalletProvider)


def test_detect_returns_none_without_configuration(monkeypatch):
    monkeypatch.delenv("ZG_PRIVATE_KEY", raising=False)
    config = Settings(_env_file=None, wallet_private_key="", wallet_rpc_url="")
    assert detect_wallet_provider(config) is None


@pytest.mark.asyncio
async def test_detect_without_auto_approve_rejects_access():
    config = Settings(_env_file=None, wallet_private_key=TEST_PRIVATE_KEY, wallet_auto_approve=False)
    provider = detect_wallet_provider(config)

    with pytest.raises(WalletRequestError) as exc_info:
        await provider.request("eth_requestAccounts")
    assert exc_info.value.is_user_rejection

"""EIP-1193 style wallet providers.

A wallet provider answers JSON-RPC style ``request(method, params)`` calls the
same way a browser-injected wallet does. Two implementations are available:

* ``LocalAccountWalletProvider`` signs with a private key held in process.
* ``JsonRpcWalletProvider`` forwards every call to an external signer over
  HTTP JSON-RPC.
"""

from __future__ import annotations

import inspect
import itertools
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import httpx
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import decode_hex, encode_hex, to_checksum_address

from .models import USER_REJECTED_CODE, WalletRequestError

logger = logging.getLogger(__name__)

ApprovalFn = Callable[[str], Union[bool, Awaitable[bool]]]


class WalletProvider(ABC):
    """Base wallet provider interface"""

    kind: str = "wallet"

    @abstractmethod
    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Perform a single wallet RPC call"""
        pass

    async def aclose(self) -> None:
        return None


class JsonRpcWalletProvider(WalletProvider):
    """Forward wallet calls to an HTTP JSON-RPC endpoint."""

    kind = "json-rpc"

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self._ids = itertools.count(1)
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }
        try:
            response = await self._client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise WalletRequestError(
                f"{method} failed with HTTP {exc.response.status_code}"
            ) from exc
        except httpx.RequestError as exc:
            raise WalletRequestError(f"{method} request error: {exc}") from exc
        except ValueError as exc:
            raise WalletRequestError(f"{method} returned invalid JSON") from exc

        error = data.get("error")
        if error:
            raise WalletRequestError(
                error.get("message", "unknown wallet error"),
                code=error.get("code"),
                data=error.get("data"),
            )
        return data.get("result")

    async def aclose(self) -> None:
        await self._client.aclose()


class LocalAccountWalletProvider(WalletProvider):
    """Wallet backed by an in-process private key.

    Account access must be granted through ``eth_requestAccounts`` before
    ``eth_accounts`` reports the address, matching how browser wallets gate
    their accounts. Chain queries go to ``upstream`` when one is configured.
    """

    kind = "local-key"

    def __init__(
        self,
        private_key: str,
        *,
        chain_id: int,
        upstream: Optional[WalletProvider] = None,
        approve: Optional[ApprovalFn] = None,
        authorized: bool = False,
    ) -> None:
        self._account = Account.from_key(private_key)
        self.chain_id = chain_id
        self.upstream = upstream
        self._approve = approve
        self._authorized = authorized

    @property
    def address(self) -> str:
        return self._account.address

    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        params = params or []
        handler = self._handlers().get(method)
        if handler is not None:
            return await handler(params)
        if self.upstream is not None:
            return await self.upstream.request(method, params)
        raise WalletRequestError(f"Unsupported method: {method}", code=4200)

    def _handlers(self) -> Dict[str, Callable[[List[Any]], Awaitable[Any]]]:
        return {
            "eth_accounts": self._eth_accounts,
            "eth_requestAccounts": self._eth_request_accounts,
            "eth_chainId": self._eth_chain_id,
            "personal_sign": self._personal_sign,
        }

    async def _eth_accounts(self, params: List[Any]) -> List[str]:
        return [self.address] if self._authorized else []

    async def _eth_request_accounts(self, params: List[Any]) -> List[str]:
        if not self._authorized:
            granted = True
            if self._approve is not None:
                granted = self._approve(self.address)
                if inspect.isawaitable(granted):
                    granted = await granted
            if not granted:
                raise WalletRequestError("User rejected the request.", code=USER_REJECTED_CODE)
            self._authorized = True
        return [self.address]

    async def _eth_chain_id(self, params: List[Any]) -> str:
        if self.upstream is not None:
            return await self.upstream.request("eth_chainId", params)
        return hex(self.chain_id)

    async def _personal_sign(self, params: List[Any]) -> str:
        if not self._authorized:
            raise WalletRequestError("Account access has not been granted.", code=4100)
        if len(params) < 2:
            raise WalletRequestError("personal_sign expects [data, address]", code=-32602)
        data, address = params[0], params[1]
        if to_checksum_address(address) != self.address:
            raise WalletRequestError(f"Unknown signer address {address}", code=4100)
        signed = self._account.sign_message(encode_defunct(primitive=decode_hex(data)))
        return encode_hex(signed.signature)

    async def aclose(self) -> None:
        if self.upstream is not None:
            await self.upstream.aclose()


def detect_wallet_provider(
    config,
    *,
    approve: Optional[ApprovalFn] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[WalletProvider]:
    """Resolve the wallet provider from configuration.

    A local key wins over a remote signer. Returns ``None`` when neither is
    configured.
    """

    if not config.has_wallet:
        logger.debug("No wallet provider configured")
        return None

    if config.has_local_wallet:
        upstream = None
        if config.chain_rpc_url:
            upstream = JsonRpcWalletProvider(config.chain_rpc_url, transport=transport)
        if approve is None and not config.wallet_auto_approve:
            approve = _deny
        return LocalAccountWalletProvider(
            config.wallet_private_key,
            chain_id=config.chain_id,
            upstream=upstream,
            approve=approve,
        )

    return JsonRpcWalletProvider(config.wallet_rpc_url, transport=transport)


def _deny(address: str) -> bool:
    return False

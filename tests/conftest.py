from typing import Any, Dict, List, Optional

import httpx
import pytest

from zg_inference.config import Settings
from zg_inference.core.controller import SessionController
from zg_inference.providers.broker import StaticBroker
from zg_inference.telemetry import LogSink
from zg_inference.wallet import LocalAccountWalletProvider, WalletProvider, WalletRequestError

# Well-known development key (hardhat account #0); never holds real funds.
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
PROVIDER_ADDRESS = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
ENDPOINT = "https://provider.example/v1/proxy"
MODEL = "llama-3.3-70b-instruct"


def chat_completion(content: str, model: str = MODEL) -> Dict[str, Any]:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 12, "completion_tokens": 9, "total_tokens": 21},
    }


class ScriptedWalletProvider(WalletProvider):
    """Wallet provider answering from a method -> result table."""

    kind = "scripted"

    def __init__(self, responses: Dict[str, Any]):
        self.responses = responses
        self.calls: List[str] = []

    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        self.calls.append(method)
        result = self.responses.get(method)
        if isinstance(result, Exception):
            raise result
        if result is None:
            raise WalletRequestError(f"Unsupported method: {method}", code=4200)
        return result


class RecordingTransport:
    """Callable for httpx.MockTransport returning queued responses in order."""

    def __init__(self, *steps):
        self.steps = list(steps)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        step = self.steps.pop(0)
        if isinstance(step, Exception):
            raise step
        return step


@pytest.fixture
def log() -> LogSink:
    return LogSink(clock=lambda: "12:00:00")


@pytest.fixture
def catalog_entry() -> Dict[str, Any]:
    return {
        "provider": PROVIDER_ADDRESS,
        "endpoint": ENDPOINT,
        "model": MODEL,
        "nonce": 7,
        "fee": "150",
        "acknowledged": False,
    }


@pytest.fixture
def local_provider() -> LocalAccountWalletProvider:
    return LocalAccountWalletProvider(TEST_PRIVATE_KEY, chain_id=16601)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        wallet_private_key=TEST_PRIVATE_KEY,
        inference_system_prompt="You are a helpful assistant with a sense of humor.",
        inference_user_message="Tell me a short joke about programming.",
    )


@pytest.fixture
def make_controller(test_settings, catalog_entry):
    def _make(
        *steps,
        services: Optional[List[Dict[str, Any]]] = None,
        provider: Optional[WalletProvider] = None,
        no_provider: bool = False,
    ):
        transport = RecordingTransport(*steps)
        catalog = [catalog_entry] if services is None else services
        wallet = provider or LocalAccountWalletProvider(TEST_PRIVATE_KEY, chain_id=16601)
        controller = SessionController(
            test_settings,
            provider_factory=(lambda: None) if no_provider else (lambda: wallet),
            broker_factory=lambda session: StaticBroker(catalog, session.address),
            transport=httpx.MockTransport(transport),
            log=LogSink(clock=lambda: "12:00:00"),
        )
        return controller, transport

    return _make

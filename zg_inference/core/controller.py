"""
Session controller shared by the HTTP API and the CLI.

Holds the state a browser page would keep: the log, the wallet session, the
broker bound to that session, the in-flight flag and the last response.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from ..config import Settings, settings
from ..providers.broker import Broker, StaticBroker
from ..providers.llm import ChatReply, GatewayDispatcher
from ..services import merge_aliases
from ..telemetry import LogSink
from ..wallet import (
    WalletDiagnostics,
    WalletProvider,
    WalletSession,
    WalletSessionManager,
    detect_wallet_provider,
)
from .inference import InferenceWorkflow

logger = logging.getLogger(__name__)

BrokerFactory = Callable[[WalletSession], Broker]


class InferenceInProgressError(Exception):
    """An inference run is already in flight."""
    pass


@dataclass
class InferenceOutcome:
    response: Optional[str] = None
    error: Optional[str] = None
    reply: Optional[ChatReply] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.response is not None


class SessionController:
    def __init__(
        self,
        config: Optional[Settings] = None,
        *,
        provider_factory: Optional[Callable[[], Optional[WalletProvider]]] = None,
        broker_factory: Optional[BrokerFactory] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        log: Optional[LogSink] = None,
    ):
        self.config = config or settings
        self.log = log if log is not None else LogSink()
        self.wallet = WalletSessionManager(
            provider_factory or (lambda: detect_wallet_provider(self.config)),
            self.log,
        )
        self._broker_factory = broker_factory or (
            lambda session: StaticBroker.from_settings(self.config, session.address)
        )
        self.dispatcher = GatewayDispatcher(
            self.log,
            timeout=self.config.request_timeout_seconds,
            transport=transport,
        )
        self.header_aliases = merge_aliases(self.config.header_aliases)
        self.broker: Optional[Broker] = None
        self.is_running = False
        self.last_response = ""

    def describe_environment(self) -> None:
        self.log("App initialized")
        provider = self.wallet.detect()
        if provider is None:
            self.log("No wallet provider found - configure a private key or wallet RPC")
            return
        self.log(f"Wallet provider detected: {provider.kind}")
        self.log(f"Configured chain ID: {self.config.chain_id}")

    @property
    def is_connected(self) -> bool:
        return self.wallet.is_connected

    async def connect(self) -> WalletSession:
        session = await self.wallet.connect()
        if self.broker is None:
            try:
                self.broker = self._broker_factory(session)
            except Exception as exc:
                self.log(f"Broker setup failed: {exc}")
                self.wallet.disconnect()
                raise
        return session

    def disconnect(self) -> None:
        self.wallet.disconnect()
        self.broker = None
        self.last_response = ""

    async def run_diagnostics(self) -> WalletDiagnostics:
        return await self.wallet.run_diagnostics()

    async def run_inference(self, message: Optional[str] = None) -> InferenceOutcome:
        if self.is_running:
            raise InferenceInProgressError("An inference run is already in progress")

        self.is_running = True
        self.last_response = ""
        try:
            session = self.wallet.require_session()
            workflow = InferenceWorkflow(
                self.broker,
                self.dispatcher,
                self.log,
                system_prompt=self.config.inference_system_prompt or None,
                strict_acknowledgment=self.config.strict_acknowledgment,
                header_aliases=self.header_aliases,
            )
            reply = await workflow.run(session, message or self.config.inference_user_message)
        except Exception as exc:
            logger.debug("Inference run aborted", exc_info=True)
            self.log(f"Error in inference: {exc}")
            return InferenceOutcome(error=str(exc))
        finally:
            self.is_running = False

        self.last_response = reply.content
        self.log("Inference completed successfully!")
        return InferenceOutcome(response=reply.content, reply=reply)

    async def aclose(self) -> None:
        await self.wallet.aclose()


_controller: Optional[SessionController] = None


def get_controller() -> SessionController:
    """Get the singleton session controller instance."""
    global _controller
    if _controller is None:
        _controller = SessionController()
    return _controller

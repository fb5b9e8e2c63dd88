"""
The inference run: discovery, acknowledgment, metadata, signed headers,
dispatch. Steps run strictly in order and the first fatal error aborts the run.
"""

import logging
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from ..providers.broker import Broker, MetadataFetchFailedError
from ..providers.llm import ChatReply, GatewayDispatcher, LLMMessage, build_request_body
from ..services import (
    DEFAULT_HEADER_ALIASES,
    HeaderConstructionFailedError,
    build_headers,
    ensure_acknowledged,
    list_services,
    select_service,
)
from ..telemetry import LogSink
from ..wallet import WalletSession

logger = logging.getLogger(__name__)


def build_messages(message: str, system_prompt: Optional[str] = None) -> List[LLMMessage]:
    messages: List[LLMMessage] = []
    if system_prompt:
        messages.append(LLMMessage(role="system", content=system_prompt))
    messages.append(LLMMessage(role="user", content=message))
    return messages


class InferenceWorkflow:
    def __init__(
        self,
        broker: Broker,
        dispatcher: GatewayDispatcher,
        log: LogSink,
        *,
        system_prompt: Optional[str] = None,
        strict_acknowledgment: bool = False,
        header_aliases: Mapping[str, Sequence[str]] = DEFAULT_HEADER_ALIASES,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.broker = broker
        self.dispatcher = dispatcher
        self.log = log
        self.system_prompt = system_prompt
        self.strict_acknowledgment = strict_acknowledgment
        self.header_aliases = header_aliases
        self._clock = clock

    async def run(self, session: WalletSession, message: str) -> ChatReply:
        self.log("Starting inference client...")
        self.log(f"Using broker: {self.broker.name}")
        self.log("Skipping ledger check - using existing account with sufficient balance")

        services = await list_services(self.broker, self.log)
        service = select_service(services)
        provider_address = service.provider_address
        self.log(f"Using provider: {provider_address}")

        await ensure_acknowledged(
            self.broker,
            provider_address,
            self.log,
            strict=self.strict_acknowledgment,
        )

        try:
            self.log("Getting service metadata...")
            metadata = await self.broker.get_service_metadata(provider_address)
            self.log("Service metadata retrieved successfully")
        except Exception as exc:
            self.log(f"Error getting metadata: {exc}")
            if isinstance(exc, MetadataFetchFailedError):
                raise
            raise MetadataFetchFailedError(str(exc)) from exc

        self.log(f"Service Endpoint: {metadata.endpoint}")
        self.log(f"Model: {metadata.model}")

        messages = build_messages(message, self.system_prompt)
        request_body = build_request_body(messages, metadata.model)

        self.log(f"Getting headers for provider: {provider_address}")
        headers = await self._build_headers(session, provider_address, message, request_body)

        return await self.dispatcher.dispatch(metadata.endpoint, headers, request_body)

    async def _build_headers(
        self,
        session: WalletSession,
        provider_address: str,
        message: str,
        request_body: Mapping,
    ) -> Dict[str, str]:
        self.log("Creating authentication headers...")
        try:
            account = await self.broker.get_account(provider_address)
        except Exception as exc:
            self.log(f"Error getting account: {exc}")
            if isinstance(exc, MetadataFetchFailedError):
                raise
            raise MetadataFetchFailedError(str(exc)) from exc
        self.log("Retrieved account data")

        if account.wallet_address.lower() != session.address.lower():
            logger.warning(
                "Broker account wallet %s differs from session wallet %s",
                account.wallet_address,
                session.address,
            )

        try:
            headers = await build_headers(
                provider_address,
                session.address,
                account,
                message,
                request_body,
                session.sign_message,
                timestamp=self._clock() if self._clock else None,
                aliases=self.header_aliases,
            )
        except HeaderConstructionFailedError as exc:
            self.log(str(exc))
            raise
        self.log("Authentication headers created successfully")
        return headers

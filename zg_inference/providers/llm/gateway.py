"""Dispatch chat requests to a provider's OpenAI-compatible gateway."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Mapping, Optional

import httpx
from openai import AsyncOpenAI

from ...services.auth_headers import serialize_request_body
from ...telemetry import LogSink
from .base import (
    ChatReply,
    FallbackDispatchFailedError,
    GatewayStatus,
    InvalidResponseError,
    PrimaryDispatchFailedError,
)

logger = logging.getLogger(__name__)

TRANSPORT_HINTS: List[str] = [
    "1. Check that the provider endpoint is reachable from this machine",
    "2. Route the request through a local proxy server",
    "3. Contact the provider operator about the gateway's availability",
]

CORS_HINTS: List[str] = [
    "1. Use a CORS proxy service",
    "2. Run a local proxy server",
    "3. Contact 0G Labs about CORS headers on their API",
]

_TRANSPORT_MARKERS = ("fetch", "cors", "connect", "network", "timed out", "timeout")


def remediation_hints(error: BaseException) -> List[str]:
    """Hints for fallback failures that look like transport problems.

    Returns an empty list for anything else.
    """

    message = str(error).lower()
    if "cors" in message:
        return list(CORS_HINTS)
    if isinstance(error, httpx.TransportError) or any(m in message for m in _TRANSPORT_MARKERS):
        return list(TRANSPORT_HINTS)
    return []


def chat_completions_url(endpoint: str) -> str:
    return f"{endpoint.rstrip('/')}/chat/completions"


def extract_reply_content(data: Mapping[str, Any]) -> Dict[str, Any]:
    choices = data.get("choices") or []
    if not choices or not isinstance(choices[0], Mapping):
        raise InvalidResponseError("Invalid response format from API")
    choice = choices[0]
    message = choice.get("message")
    if not isinstance(message, Mapping):
        raise InvalidResponseError("Invalid response format from API")
    usage = data.get("usage") or {}
    return {
        "content": message.get("content") or "",
        "model": data.get("model"),
        "finish_reason": choice.get("finish_reason"),
        "tokens_used": usage.get("total_tokens"),
    }


class GatewayDispatcher:
    """One logical chat request per call.

    The OpenAI-compatible client goes first. When it raises, the same headers
    and body are POSTed once with plain httpx so the gateway's status and body
    show up in the log; a successful fallback answer is accepted.
    """

    def __init__(
        self,
        log: LogSink,
        *,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.log = log
        self.timeout = timeout
        self._transport = transport
        self.last_fallback: Optional[GatewayStatus] = None

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def dispatch(
        self,
        endpoint: str,
        headers: Mapping[str, str],
        request_body: Mapping[str, Any],
    ) -> ChatReply:
        self.last_fallback = None
        start_time = time.time()

        try:
            reply = await self._primary(endpoint, headers, request_body)
        except Exception as exc:
            self.log(f"OpenAI request failed: {exc}")
            primary_error = PrimaryDispatchFailedError(str(exc))
            primary_error.__cause__ = exc
            reply = await self._fallback(endpoint, headers, request_body, primary_error)

        reply.response_time_ms = (time.time() - start_time) * 1000
        self.log(f"AI Response: {reply.content}")
        return reply

    async def _primary(
        self,
        endpoint: str,
        headers: Mapping[str, str],
        request_body: Mapping[str, Any],
    ) -> ChatReply:
        self.log("Making OpenAI request...")
        # Authentication travels in the custom headers; the key stays empty.
        async with AsyncOpenAI(
            base_url=endpoint,
            api_key="",
            default_headers=dict(headers),
            max_retries=0,
            timeout=self.timeout,
            http_client=self._http_client(),
        ) as client:
            completion = await client.chat.completions.create(
                messages=list(request_body["messages"]),
                model=request_body["model"],
            )

        if not completion or not completion.choices or completion.choices[0].message is None:
            raise InvalidResponseError("Invalid response format from API")
        self.log("OpenAI Response received")

        choice = completion.choices[0]
        return ChatReply(
            content=choice.message.content or "",
            model=completion.model,
            finish_reason=choice.finish_reason,
            tokens_used=completion.usage.total_tokens if completion.usage else None,
            via="primary",
        )

    async def _fallback(
        self,
        endpoint: str,
        headers: Mapping[str, str],
        request_body: Mapping[str, Any],
        primary_error: PrimaryDispatchFailedError,
    ) -> ChatReply:
        self.log("Attempting direct request to debug connection...")
        status = GatewayStatus()
        self.last_fallback = status

        request_headers = {"Content-Type": "application/json", **headers}
        try:
            async with self._http_client() as client:
                response = await client.post(
                    chat_completions_url(endpoint),
                    headers=request_headers,
                    content=serialize_request_body(request_body).encode("utf-8"),
                )
        except Exception as exc:
            status.error = str(exc) or exc.__class__.__name__
            self.log(f"Direct request failed: {status.error}")
            status.hints = remediation_hints(exc)
            if status.hints:
                self.log("❌ Connection error detected!")
                self.log("💡 Solutions:")
                for hint in status.hints:
                    self.log(hint)
                raise FallbackDispatchFailedError(
                    f"Direct request failed: {status.error}", hints=status.hints
                ) from primary_error
            raise primary_error

        status.status_code = response.status_code
        self.log(f"Direct request status: {response.status_code}")

        if not response.is_success:
            status.body = response.text
            self.log(f"Direct request error response: {status.body}")
            raise primary_error

        try:
            fields = extract_reply_content(response.json())
        except (ValueError, InvalidResponseError) as exc:
            logger.warning("Fallback response unusable: %s", exc)
            self.log(f"Direct request returned an unusable body: {exc}")
            raise primary_error

        self.log("Direct request succeeded!")
        return ChatReply(via="fallback", **fields)


__all__ = [
    "CORS_HINTS",
    "GatewayDispatcher",
    "TRANSPORT_HINTS",
    "chat_completions_url",
    "extract_reply_content",
    "remediation_hints",
]

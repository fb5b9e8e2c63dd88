from .base import (
    ChatReply,
    DispatchError,
    FallbackDispatchFailedError,
    GatewayStatus,
    InvalidResponseError,
    LLMMessage,
    LLMProviderError,
    PrimaryDispatchFailedError,
    build_request_body,
)
from .gateway import GatewayDispatcher, remediation_hints

__all__ = [
    "ChatReply",
    "DispatchError",
    "FallbackDispatchFailedError",
    "GatewayStatus",
    "InvalidResponseError",
    "LLMMessage",
    "LLMProviderError",
    "PrimaryDispatchFailedError",
    "build_request_body",
    "GatewayDispatcher",
    "remediation_hints",
]

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class LLMMessage(BaseModel):
    """Chat message in OpenAI format"""
    role: str  # "system", "user", "assistant"
    content: str


class ChatReply(BaseModel):
    """Final answer of a dispatched chat request"""
    content: str
    model: Optional[str] = None
    finish_reason: Optional[str] = None
    tokens_used: Optional[int] = None
    via: str = "primary"  # "primary" or "fallback"
    response_time_ms: Optional[float] = None


def build_request_body(messages: List[LLMMessage], model: str) -> Dict[str, Any]:
    """Request body sent to the gateway, keyed in ``messages, model`` order"""
    return {
        "messages": [{"role": msg.role, "content": msg.content} for msg in messages],
        "model": model,
    }


class LLMProviderError(Exception):
    """Base exception for LLM provider errors"""
    pass


class DispatchError(LLMProviderError):
    """Raised when a chat request could not be completed"""
    pass


class PrimaryDispatchFailedError(DispatchError):
    """The OpenAI-compatible client path failed"""
    pass


class FallbackDispatchFailedError(DispatchError):
    """The raw HTTP fallback failed at the transport layer"""

    def __init__(self, message: str, hints: Optional[List[str]] = None):
        super().__init__(message)
        self.hints: List[str] = list(hints or [])


class InvalidResponseError(LLMProviderError):
    """Gateway response lacks choices[0].message"""
    pass


class GatewayStatus(BaseModel):
    """Outcome of the fallback request, kept for diagnostics"""
    status_code: Optional[int] = None
    body: Optional[str] = None
    error: Optional[str] = None
    hints: List[str] = Field(default_factory=list)

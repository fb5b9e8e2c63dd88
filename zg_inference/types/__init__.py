from .requests import InferenceRunRequest
from .responses import (
    DiagnosticStepResponse,
    DiagnosticsResponse,
    InferenceRunResponse,
    LogEntryResponse,
    LogsResponse,
    WalletStatusResponse,
)

__all__ = [
    "InferenceRunRequest",
    "DiagnosticStepResponse",
    "DiagnosticsResponse",
    "InferenceRunResponse",
    "LogEntryResponse",
    "LogsResponse",
    "WalletStatusResponse",
]

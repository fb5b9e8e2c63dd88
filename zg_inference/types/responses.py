from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field


class WalletStatusResponse(BaseModel):
    connected: bool = Field(description="Whether a wallet session is active")
    state: str = Field(description="Connection state: disconnected, connecting, connected")
    address: Optional[str] = Field(default=None, description="Connected wallet address")
    chain_id: Optional[int] = Field(default=None, description="Network chain ID when it could be resolved")
    provider_kind: Optional[str] = Field(default=None, description="Wallet provider implementation")
    balance_ether: Optional[Decimal] = Field(default=None, description="Native balance at connect time")


class DiagnosticStepResponse(BaseModel):
    name: str
    ok: bool
    detail: str


class DiagnosticsResponse(BaseModel):
    ok: bool = Field(description="Whether an account is available")
    provider_found: bool
    accounts: List[str] = Field(default_factory=list)
    steps: List[DiagnosticStepResponse] = Field(default_factory=list)
    summary: str = Field(default="", description="Final diagnostic message")


class InferenceRunResponse(BaseModel):
    response: Optional[str] = Field(default=None, description="Model answer; empty when the run failed")
    error: Optional[str] = Field(default=None, description="Reason the run was aborted")
    via: Optional[str] = Field(default=None, description="primary or fallback dispatch path")
    model: Optional[str] = Field(default=None, description="Model reported by the gateway")
    running: bool = Field(default=False, description="Whether a run is still in flight")


class LogEntryResponse(BaseModel):
    timestamp: str
    message: str


class LogsResponse(BaseModel):
    entries: List[LogEntryResponse] = Field(default_factory=list)
    count: int = 0

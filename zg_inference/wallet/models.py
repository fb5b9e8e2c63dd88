"""
Wallet session models and exceptions.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional


PROVIDER_REQUIRED_TITLE = "MetaMask Required"

# EIP-1193 error code for a user rejecting a request
USER_REJECTED_CODE = 4001


class WalletError(Exception):
    """Base wallet error."""
    pass


class ProviderUnavailableError(WalletError):
    """No wallet provider could be detected."""

    def __init__(self, message: str = "No wallet provider detected. Install MetaMask or configure a wallet.") -> None:
        super().__init__(message)
        self.title = PROVIDER_REQUIRED_TITLE


class UserRejectedError(WalletError):
    """The user declined the account access request."""
    pass


class WalletNotConnectedError(WalletError):
    """An operation needed a connected wallet session."""
    pass


class WalletRequestError(WalletError):
    """Error returned by a wallet provider for a single request."""

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.data = data

    @property
    def is_user_rejection(self) -> bool:
        return self.code == USER_REJECTED_CODE


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


SignFn = Callable[[str], Awaitable[str]]


@dataclass
class WalletSession:
    """A connected wallet: address, network, and a message signer."""
    address: str
    chain_id: Optional[int]
    sign_message: SignFn = field(repr=False)
    provider_kind: str = "unknown"
    balance_ether: Optional[Decimal] = None


@dataclass
class DiagnosticStep:
    name: str
    ok: bool
    detail: str


@dataclass
class WalletDiagnostics:
    """Outcome of the standalone wallet connection test."""
    provider_found: bool
    accounts: List[str] = field(default_factory=list)
    steps: List[DiagnosticStep] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.provider_found and bool(self.accounts)

    @property
    def summary(self) -> str:
        if not self.steps:
            return ""
        return self.steps[-1].detail

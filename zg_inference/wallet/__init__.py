from .service import WalletSessionManager
from .models import (
    ConnectionState,
    DiagnosticStep,
    PROVIDER_REQUIRED_TITLE,
    ProviderUnavailableError,
    UserRejectedError,
    WalletDiagnostics,
    WalletError,
    WalletNotConnectedError,
    WalletRequestError,
    WalletSession,
)
from .providers import (
    JsonRpcWalletProvider,
    LocalAccountWalletProvider,
    WalletProvider,
    detect_wallet_provider,
)

__all__ = [
    "WalletSessionManager",
    "ConnectionState",
    "DiagnosticStep",
    "PROVIDER_REQUIRED_TITLE",
    "ProviderUnavailableError",
    "UserRejectedError",
    "WalletDiagnostics",
    "WalletError",
    "WalletNotConnectedError",
    "WalletRequestError",
    "WalletSession",
    "JsonRpcWalletProvider",
    "LocalAccountWalletProvider",
    "WalletProvider",
    "detect_wallet_provider",
]

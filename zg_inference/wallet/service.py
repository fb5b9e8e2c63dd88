"""
Wallet session management: connect, disconnect, and connection diagnostics.
"""

import logging
from decimal import Decimal
from typing import Callable, Optional

from eth_utils import encode_hex, from_wei, to_checksum_address

from ..telemetry import LogSink
from .models import (
    ConnectionState,
    DiagnosticStep,
    ProviderUnavailableError,
    UserRejectedError,
    WalletDiagnostics,
    WalletError,
    WalletNotConnectedError,
    WalletRequestError,
    WalletSession,
)
from .providers import WalletProvider

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[], Optional[WalletProvider]]


class WalletSessionManager:
    """
    Owns the single wallet session of a controller.

    Flow:
    1. Detect a wallet provider (fails with ProviderUnavailableError)
    2. Reuse already-authorized accounts via eth_accounts
    3. Otherwise request access via eth_requestAccounts (may prompt)
    4. Resolve network and address; query balance

    Network and balance lookups are best-effort. A failed connect always
    leaves the manager disconnected.
    """

    def __init__(self, provider_factory: ProviderFactory, log: LogSink):
        self._provider_factory = provider_factory
        self.log = log
        self.state = ConnectionState.DISCONNECTED
        self.session: Optional[WalletSession] = None
        self._provider: Optional[WalletProvider] = None

    @property
    def is_connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED and self.session is not None

    def require_session(self) -> WalletSession:
        if not self.is_connected:
            raise WalletNotConnectedError("Wallet is not connected")
        return self.session

    def detect(self) -> Optional[WalletProvider]:
        if self._provider is None:
            self._provider = self._provider_factory()
        return self._provider

    async def connect(self) -> WalletSession:
        if self.is_connected:
            return self.session

        self.state = ConnectionState.CONNECTING
        try:
            session = await self._connect()
        except Exception as exc:
            self.state = ConnectionState.DISCONNECTED
            self.session = None
            self.log(f"Connection failed: {exc}")
            raise
        self.session = session
        self.state = ConnectionState.CONNECTED
        return session

    async def _connect(self) -> WalletSession:
        self.log("Detecting wallet provider...")
        provider = self.detect()
        if provider is None:
            raise ProviderUnavailableError()
        self.log(f"Wallet provider detected ({provider.kind})")

        self.log("Checking existing account permissions...")
        accounts = await provider.request("eth_accounts")
        if accounts:
            self.log(f"Found {len(accounts)} authorized account(s)")
        else:
            self.log("No authorized accounts, requesting access...")
            try:
                accounts = await provider.request("eth_requestAccounts")
            except WalletRequestError as exc:
                if exc.is_user_rejection:
                    raise UserRejectedError("User rejected the connection request") from exc
                raise
            if not accounts:
                raise UserRejectedError("No accounts returned after request")

        chain_id = await self._resolve_network(provider)

        address = to_checksum_address(accounts[0])
        self.log(f"Connected to wallet: {address}")

        balance = await self._query_balance(provider, address)

        return WalletSession(
            address=address,
            chain_id=chain_id,
            sign_message=self._signer(provider, address),
            provider_kind=provider.kind,
            balance_ether=balance,
        )

    async def _resolve_network(self, provider: WalletProvider) -> Optional[int]:
        self.log("Resolving network...")
        try:
            raw = await provider.request("eth_chainId")
            chain_id = int(raw, 16) if isinstance(raw, str) else int(raw)
        except (WalletError, TypeError, ValueError) as exc:
            self.log(f"Could not resolve network: {exc}")
            return None
        self.log(f"Network chain ID: {chain_id}")
        return chain_id

    async def _query_balance(self, provider: WalletProvider, address: str) -> Optional[Decimal]:
        try:
            raw = await provider.request("eth_getBalance", [address, "latest"])
            wei = int(raw, 16) if isinstance(raw, str) else int(raw)
            balance = Decimal(from_wei(wei, "ether"))
        except (WalletError, TypeError, ValueError) as exc:
            self.log(f"Could not fetch wallet balance: {exc}")
            return None
        self.log(f"Wallet balance: {balance} ETH")
        return balance

    def _signer(self, provider: WalletProvider, address: str):
        async def sign_message(text: str) -> str:
            return await provider.request(
                "personal_sign", [encode_hex(text.encode("utf-8")), address]
            )

        return sign_message

    def disconnect(self) -> None:
        self.session = None
        self.state = ConnectionState.DISCONNECTED
        self.log("Wallet disconnected")

    async def run_diagnostics(self) -> WalletDiagnostics:
        """
        Standalone connection test. Exercises eth_accounts and, when nothing
        is authorized yet, eth_requestAccounts. Never touches the session.
        """
        provider = self.detect()
        if provider is None:
            return WalletDiagnostics(
                provider_found=False,
                steps=[DiagnosticStep("detect", False, "Wallet provider not found. Please install MetaMask.")],
            )

        result = WalletDiagnostics(provider_found=True)
        result.steps.append(DiagnosticStep("detect", True, f"Wallet provider found ({provider.kind}). Checking accounts..."))

        try:
            accounts = await provider.request("eth_accounts")
            if accounts:
                result.accounts = list(accounts)
                result.steps.append(DiagnosticStep("eth_accounts", True, f"Already connected to: {accounts[0]}"))
                return result

            result.steps.append(DiagnosticStep("eth_accounts", True, "No accounts connected. Requesting access..."))
            accounts = await provider.request("eth_requestAccounts")
            if accounts:
                result.accounts = list(accounts)
                result.steps.append(DiagnosticStep("eth_requestAccounts", True, f"Successfully connected to: {accounts[0]}"))
            else:
                result.steps.append(DiagnosticStep("eth_requestAccounts", False, "No accounts returned after request."))
        except WalletError as exc:
            logger.warning("Wallet diagnostics failed: %s", exc)
            result.steps.append(DiagnosticStep("error", False, f"Error: {exc}"))

        return result

    async def aclose(self) -> None:
        if self._provider is not None:
            await self._provider.aclose()

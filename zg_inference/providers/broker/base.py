from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel, Field


class BrokerError(Exception):
    """Base exception for broker errors"""
    pass


class NoServicesAvailableError(BrokerError):
    """The broker returned an empty service list"""
    pass


class AcknowledgmentFailedError(BrokerError):
    """Provider acknowledgment could not be completed"""
    pass


class MetadataFetchFailedError(BrokerError):
    """Service or account metadata could not be fetched"""
    pass


class ServiceDescriptor(BaseModel):
    """An inference service advertised by a provider"""
    provider_address: str
    endpoint_url: str
    model_name: str
    service_type: str = "chatbot"
    input_price: Optional[Decimal] = None
    output_price: Optional[Decimal] = None


class ServiceMetadata(BaseModel):
    endpoint: str
    model: str


class ProviderAccount(BaseModel):
    """Point-in-time snapshot of the user's account with a provider.

    Fetched fresh for every request; the nonce advances between requests.
    """
    wallet_address: str
    provider_address: str
    nonce: int = Field(ge=0)
    fee: Decimal

    @classmethod
    def from_record(cls, record: Sequence[Any], provider_address: str) -> "ProviderAccount":
        """Map the broker's positional account record onto named fields.

        The record layout is ``[wallet, provider, nonce, fee, ...]``.
        """
        if record is None or len(record) < 4:
            raise MetadataFetchFailedError(
                f"Malformed account record for provider {provider_address}: {record!r}"
            )
        try:
            nonce = int(record[2])
            fee = Decimal(str(record[3]))
        except (TypeError, ValueError, InvalidOperation) as exc:
            raise MetadataFetchFailedError(
                f"Malformed account record for provider {provider_address}: {exc}"
            ) from exc
        return cls(
            wallet_address=str(record[0]),
            provider_address=str(record[1]) if record[1] else provider_address,
            nonce=nonce,
            fee=fee,
        )


class Broker(ABC):
    """Marketplace broker: discovery, acknowledgment and account metadata"""

    name: str = "broker"

    @abstractmethod
    async def list_services(self) -> List[ServiceDescriptor]:
        """Return the advertised inference services in broker order"""
        pass

    @abstractmethod
    async def user_acknowledged(self, provider_address: str) -> bool:
        """Whether the user has acknowledged the provider's signer"""
        pass

    @abstractmethod
    async def acknowledge_provider_signer(self, provider_address: str) -> None:
        """Acknowledge the provider's signer"""
        pass

    @abstractmethod
    async def get_service_metadata(self, provider_address: str) -> ServiceMetadata:
        """Endpoint and model for a provider"""
        pass

    @abstractmethod
    async def get_account_record(self, provider_address: str) -> Sequence[Any]:
        """Raw positional account record as returned by the broker"""
        pass

    async def get_account(self, provider_address: str) -> ProviderAccount:
        record = await self.get_account_record(provider_address)
        return ProviderAccount.from_record(record, provider_address)

    async def health_check(self) -> dict:
        try:
            services = await self.list_services()
        except Exception as exc:
            return {"status": "error", "broker": self.name, "error": str(exc)}
        return {
            "status": "healthy" if services else "degraded",
            "broker": self.name,
            "services": len(services),
        }

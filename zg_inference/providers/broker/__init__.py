from .base import (
    AcknowledgmentFailedError,
    Broker,
    BrokerError,
    MetadataFetchFailedError,
    NoServicesAvailableError,
    ProviderAccount,
    ServiceDescriptor,
    ServiceMetadata,
)
from .static import StaticBroker, load_catalog_file

__all__ = [
    "AcknowledgmentFailedError",
    "Broker",
    "BrokerError",
    "MetadataFetchFailedError",
    "NoServicesAvailableError",
    "ProviderAccount",
    "ServiceDescriptor",
    "ServiceMetadata",
    "StaticBroker",
    "load_catalog_file",
]

"""Catalog-driven broker.

Serves a fixed list of providers from configuration (``BROKER_SERVICES`` JSON
or a YAML catalog file). Acknowledgment state and account nonces live in
memory for the lifetime of the broker instance.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence, Set

import yaml
from eth_utils import to_checksum_address

from .base import (
    Broker,
    MetadataFetchFailedError,
    ServiceDescriptor,
    ServiceMetadata,
)

logger = logging.getLogger(__name__)


class CatalogEntry:
    __slots__ = ("descriptor", "nonce", "fee", "acknowledged")

    def __init__(self, descriptor: ServiceDescriptor, nonce: int, fee: Decimal, acknowledged: bool) -> None:
        self.descriptor = descriptor
        self.nonce = nonce
        self.fee = fee
        self.acknowledged = acknowledged


def _parse_entry(raw: Dict[str, Any]) -> CatalogEntry:
    try:
        provider = to_checksum_address(raw["provider"])
        endpoint = str(raw["endpoint"]).rstrip("/")
        model = str(raw["model"])
    except (KeyError, ValueError, TypeError) as exc:
        raise ValueError(f"Invalid broker catalog entry {raw!r}: {exc}") from exc

    descriptor = ServiceDescriptor(
        provider_address=provider,
        endpoint_url=endpoint,
        model_name=model,
        service_type=raw.get("service_type", "chatbot"),
        input_price=raw.get("input_price"),
        output_price=raw.get("output_price"),
    )
    return CatalogEntry(
        descriptor=descriptor,
        nonce=int(raw.get("nonce", 0)),
        fee=Decimal(str(raw.get("fee", 0))),
        acknowledged=bool(raw.get("acknowledged", False)),
    )


def load_catalog_file(path: str | Path) -> List[Dict[str, Any]]:
    """Read a YAML catalog: either a list or a mapping with a ``services`` key."""

    with open(path, "r") as f:
        definition = yaml.safe_load(f)
    if definition is None:
        return []
    if isinstance(definition, dict):
        definition = definition.get("services", [])
    if not isinstance(definition, list):
        raise ValueError(f"Broker catalog {path} must contain a list of services")
    return definition


class StaticBroker(Broker):
    """Broker answering from a configured service catalog."""

    name = "static"

    def __init__(self, services: Iterable[Dict[str, Any]], wallet_address: str) -> None:
        self.wallet_address = wallet_address
        self._entries: Dict[str, CatalogEntry] = {}
        for raw in services:
            entry = _parse_entry(raw)
            self._entries[entry.descriptor.provider_address] = entry
        self.acknowledge_calls: List[str] = []

    @classmethod
    def from_settings(cls, config, wallet_address: str) -> "StaticBroker":
        services: List[Dict[str, Any]] = list(config.broker_services)
        if config.broker_catalog_path:
            services.extend(load_catalog_file(config.broker_catalog_path))
        logger.info("Loaded %d broker catalog entries", len(services))
        return cls(services, wallet_address)

    def _entry(self, provider_address: str) -> CatalogEntry:
        try:
            key = to_checksum_address(provider_address)
        except ValueError as exc:
            raise MetadataFetchFailedError(f"Invalid provider address {provider_address}") from exc
        entry = self._entries.get(key)
        if entry is None:
            raise MetadataFetchFailedError(f"Unknown provider {provider_address}")
        return entry

    async def list_services(self) -> List[ServiceDescriptor]:
        return [entry.descriptor for entry in self._entries.values()]

    async def user_acknowledged(self, provider_address: str) -> bool:
        return self._entry(provider_address).acknowledged

    async def acknowledge_provider_signer(self, provider_address: str) -> None:
        entry = self._entry(provider_address)
        self.acknowledge_calls.append(entry.descriptor.provider_address)
        entry.acknowledged = True

    async def get_service_metadata(self, provider_address: str) -> ServiceMetadata:
        descriptor = self._entry(provider_address).descriptor
        return ServiceMetadata(endpoint=descriptor.endpoint_url, model=descriptor.model_name)

    async def get_account_record(self, provider_address: str) -> Sequence[Any]:
        entry = self._entry(provider_address)
        record = [
            self.wallet_address,
            entry.descriptor.provider_address,
            entry.nonce,
            entry.fee,
        ]
        entry.nonce += 1
        return record

    @property
    def acknowledged_providers(self) -> Set[str]:
        return {key for key, entry in self._entries.items() if entry.acknowledged}

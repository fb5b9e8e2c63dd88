"""Service discovery against the broker."""

from __future__ import annotations

from typing import List, Optional, Sequence

from ..providers.broker import Broker, NoServicesAvailableError, ServiceDescriptor
from ..telemetry import LogSink


async def list_services(broker: Broker, log: Optional[LogSink] = None) -> List[ServiceDescriptor]:
    if log is not None:
        log("Getting available services...")
    services = await broker.list_services()
    if log is not None:
        log(f"Available services: {len(services)}")
    return services


def select_service(services: Sequence[ServiceDescriptor]) -> ServiceDescriptor:
    """Pick the service to use.

    Always the first entry in broker order; no ranking or health check.
    """

    if not services:
        raise NoServicesAvailableError("No inference services available")
    return services[0]


__all__ = ["list_services", "select_service"]

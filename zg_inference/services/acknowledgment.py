"""Provider signer acknowledgment."""

from __future__ import annotations

import logging

from ..providers.broker import AcknowledgmentFailedError, Broker
from ..telemetry import LogSink

logger = logging.getLogger(__name__)


async def ensure_acknowledged(
    broker: Broker,
    provider_address: str,
    log: LogSink,
    *,
    strict: bool = False,
) -> bool:
    """Make sure the provider is acknowledged before it is used.

    No broker call is made when the provider is already acknowledged. Failures
    are logged and the run carries on, unless ``strict`` is set.

    Returns whether the provider is known to be acknowledged.
    """

    try:
        log("Checking if provider is already acknowledged...")
        acknowledged = await broker.user_acknowledged(provider_address)
        log(f"Provider acknowledgment status: {str(acknowledged).lower()}")

        if acknowledged:
            log("Provider already acknowledged, skipping...")
            return True

        log("Acknowledging provider signer...")
        await broker.acknowledge_provider_signer(provider_address)
        log("Provider signer acknowledged successfully")
        return True
    except Exception as exc:
        log(f"Error with provider acknowledgment: {exc}")
        if strict:
            raise AcknowledgmentFailedError(str(exc)) from exc
        logger.warning("Continuing without acknowledgment for %s", provider_address)
        log("Attempting to continue despite acknowledgment error...")
        return False


__all__ = ["ensure_acknowledged"]

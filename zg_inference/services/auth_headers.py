"""Signed request headers for the inference gateway.

The gateway authenticates each chat request through custom headers: a wallet
signature over ``0g-inference-{provider}-{wallet}-{timestamp}-{message}``, a
keccak hash of the request body, and the account's nonce and fee. Several
gateway builds read different header names for the same value, so every value
is written under each name listed in the alias table.
"""

from __future__ import annotations

import json
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence

from eth_utils import encode_hex, keccak

from ..providers.broker import ProviderAccount
from ..wallet.models import SignFn

SIGNING_PREFIX = "0g-inference"

DEFAULT_HEADER_ALIASES: Dict[str, List[str]] = {
    "authorization": ["Authorization"],
    "provider": ["X-Provider"],
    "account": ["X-Account"],
    "timestamp": ["X-Timestamp"],
    "signature": ["X-Signature", "Signature"],
    "request_hash": ["Request-Hash", "X-Request-Hash"],
    "fee": ["X-Fee", "Fee", "Input-Fee", "X-Input-Fee"],
    "nonce": ["Nonce", "X-Nonce"],
    "address": ["Address", "X-Address", "X-User-Address", "User-Address"],
    "content_type": ["Content-Type"],
}

CANONICAL_FIELDS = tuple(DEFAULT_HEADER_ALIASES)


class HeaderConstructionFailedError(Exception):
    """Signing or hashing failed while building request headers"""
    pass


def serialize_request_body(request_body: Mapping[str, Any]) -> str:
    """Compact JSON of ``{messages, model}`` in that key order."""

    body = {
        "messages": request_body["messages"],
        "model": request_body["model"],
    }
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False)


def compute_request_hash(request_body: Mapping[str, Any]) -> str:
    return encode_hex(keccak(text=serialize_request_body(request_body)))


def build_signing_payload(provider_address: str, wallet_address: str, timestamp: int, message: str) -> str:
    return f"{SIGNING_PREFIX}-{provider_address}-{wallet_address}-{timestamp}-{message}"


def current_timestamp_ms() -> int:
    return int(time.time() * 1000)


def format_fee(fee: Any) -> str:
    text = str(fee)
    if "." in text and "e" not in text.lower():
        text = text.rstrip("0").rstrip(".")
    return text


def merge_aliases(overrides: Optional[Mapping[str, Sequence[str]]]) -> Dict[str, List[str]]:
    """Apply per-field overrides on top of the default alias table."""

    table = {field: list(names) for field, names in DEFAULT_HEADER_ALIASES.items()}
    if not overrides:
        return table
    for field, names in overrides.items():
        if field not in table:
            raise ValueError(
                f"Unknown header field '{field}'. Known fields: {', '.join(CANONICAL_FIELDS)}"
            )
        table[field] = list(names)
    return table


def assemble_headers(
    values: Mapping[str, str],
    aliases: Mapping[str, Sequence[str]] = DEFAULT_HEADER_ALIASES,
) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    for field, names in aliases.items():
        value = values[field]
        for name in names:
            headers[name] = value
    return headers


async def build_headers(
    provider_address: str,
    wallet_address: str,
    account: ProviderAccount,
    message: str,
    request_body: Mapping[str, Any],
    sign_fn: SignFn,
    *,
    timestamp: Optional[int] = None,
    aliases: Mapping[str, Sequence[str]] = DEFAULT_HEADER_ALIASES,
) -> Dict[str, str]:
    """Build the signed header set for one chat request.

    ``timestamp`` (epoch milliseconds) is captured once and used for both the
    signed payload and the ``X-Timestamp`` header. With a fixed timestamp and
    a deterministic signer the result is fully deterministic.
    """

    if timestamp is None:
        timestamp = current_timestamp_ms()

    try:
        request_hash = compute_request_hash(request_body)
        payload = build_signing_payload(provider_address, wallet_address, timestamp, message)
        signature = await sign_fn(payload)
    except Exception as exc:
        raise HeaderConstructionFailedError(f"Header creation failed: {exc}") from exc

    fee = format_fee(account.fee)
    nonce = str(account.nonce)
    values = {
        "authorization": f"Bearer {wallet_address}",
        "provider": provider_address,
        "account": wallet_address,
        "timestamp": str(timestamp),
        "signature": signature,
        "request_hash": request_hash,
        "fee": fee,
        "nonce": nonce,
        "address": wallet_address,
        "content_type": "application/json",
    }
    return assemble_headers(values, aliases)


__all__ = [
    "CANONICAL_FIELDS",
    "DEFAULT_HEADER_ALIASES",
    "HeaderConstructionFailedError",
    "SIGNING_PREFIX",
    "assemble_headers",
    "build_headers",
    "build_signing_payload",
    "compute_request_hash",
    "current_timestamp_ms",
    "format_fee",
    "merge_aliases",
    "serialize_request_body",
]

from .acknowledgment import ensure_acknowledged
from .auth_headers import (
    DEFAULT_HEADER_ALIASES,
    HeaderConstructionFailedError,
    build_headers,
    compute_request_hash,
    merge_aliases,
)
from .discovery import list_services, select_service

__all__ = [
    "ensure_acknowledged",
    "DEFAULT_HEADER_ALIASES",
    "HeaderConstructionFailedError",
    "build_headers",
    "compute_request_hash",
    "merge_aliases",
    "list_services",
    "select_service",
]

from .base import Filter, JoinSpec, RemoteStore
from .exceptions import (
    AuthError,
    ConflictError,
    PermissionDeniedError,
    RecordNotFoundError,
    ServerError,
    StoreError,
    StoreValidationError,
    TransportError,
)
from .http_store import HttpStore

__all__ = [
    "AuthError",
    "ConflictError",
    "Filter",
    "HttpStore",
    "JoinSpec",
    "PermissionDeniedError",
    "RecordNotFoundError",
    "RemoteStore",
    "ServerError",
    "StoreError",
    "StoreValidationError",
    "TransportError",
]

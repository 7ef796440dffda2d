from __future__ import annotations

from dataclasses import dataclass


@dataclass
class StoreError(Exception):
    code: str
    message: str
    details: object | None = None
    hint: str | None = None
    status_code: int = 0
    trace_id: str | None = None

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"[{self.status_code}] {self.code}: {self.message}{trace}"


class AuthError(StoreError):
    """Missing or rejected API key."""


class PermissionDeniedError(StoreError):
    """Row level security or grants denied the operation."""


class RecordNotFoundError(StoreError):
    pass


class StoreValidationError(StoreError):
    pass


class ConflictError(StoreError):
    """409 or unique-constraint style errors."""


class ServerError(StoreError):
    """5xx server-side failures."""


class TransportError(StoreError):
    """Network/transport failure before an HTTP response was returned."""

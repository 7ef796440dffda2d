from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class ConsoleError(Exception):
    code: str
    message: str
    details: dict[str, Any] | list[Any] | str | None = None
    trace_id: str | None = None

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"{self.code}: {self.message}{trace}"


class RemoteReadFailure(ConsoleError):
    """A collection read or join search failed at the remote store."""


class RemoteWriteFailure(ConsoleError):
    """A confirmed update or delete failed at the remote store."""


class NotFound(ConsoleError):
    """Mutation target is not present in the local collection."""


class InvalidInput(ConsoleError):
    pass


class DataIntegrityError(InvalidInput):
    """A remote row could not be projected into its view shape."""


class MutationInFlight(ConsoleError):
    pass

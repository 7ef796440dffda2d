from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ViewStatus(str, Enum):
    LOADING = "loading"
    EMPTY = "empty"
    SUCCESS = "success"
    ERROR = "error"
    STALE = "stale"


@dataclass(frozen=True)
class ViewState:
    status: ViewStatus
    message: str
    trace_id: str | None = None

    def render(self) -> dict[str, Any]:
        return {"status": self.status.value, "message": self.message, "trace_id": self.trace_id}


def resolve_view_state(*, loading: bool, has_data: bool, error: str | None, trace_id: str | None = None, empty_message: str = "No records found.") -> ViewState:
    if loading:
        return ViewState(status=ViewStatus.LOADING, message="Loading", trace_id=trace_id)
    if error and not has_data:
        return ViewState(status=ViewStatus.ERROR, message=error, trace_id=trace_id)
    if error:
        return ViewState(status=ViewStatus.STALE, message=error, trace_id=trace_id)
    if not has_data:
        return ViewState(status=ViewStatus.EMPTY, message=empty_message, trace_id=trace_id)
    return ViewState(status=ViewStatus.SUCCESS, message="Ready", trace_id=trace_id)

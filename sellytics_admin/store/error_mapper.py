from __future__ import annotations

from typing import Mapping

from .exceptions import (
    AuthError,
    ConflictError,
    PermissionDeniedError,
    RecordNotFoundError,
    ServerError,
    StoreError,
    StoreValidationError,
)


def map_error(status_code: int, payload: Mapping[str, object] | None, trace_id: str | None = None) -> StoreError:
    payload = payload or {}
    code = str(payload.get("code") or "HTTP_ERROR")
    message = str(payload.get("message") or "Request failed")
    hint = payload.get("hint")
    mapped: type[StoreError]
    if status_code == 401:
        mapped = AuthError
    elif status_code == 403:
        mapped = PermissionDeniedError
    elif status_code == 404:
        mapped = RecordNotFoundError
    elif status_code in {400, 422}:
        mapped = StoreValidationError
    elif status_code == 409:
        mapped = ConflictError
    elif status_code >= 500:
        mapped = ServerError
    else:
        mapped = StoreError
    return mapped(
        code=code,
        message=message,
        details=payload.get("details"),
        hint=str(hint) if hint is not None else None,
        status_code=status_code,
        trace_id=trace_id,
    )

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from sellytics_admin.config import DEFAULT_SESSION_FILE

STORE_ID_KEY = "store_id"


def _session_path(path: Path | None = None) -> Path:
    if path is not None:
        return path
    configured = os.getenv("SELLYTICS_SESSION_PATH", "").strip()
    return Path(configured) if configured else DEFAULT_SESSION_FILE


def load_session_context(path: Path | None = None) -> dict[str, Any]:
    target = _session_path(path)
    if not target.exists():
        return {}
    try:
        payload = json.loads(target.read_text(encoding="utf-8"))
        return payload if isinstance(payload, dict) else {}
    except (ValueError, OSError):
        return {}


def resolve_scope(raw: Any) -> int | None:
    """Coerce a persisted store id into the numeric scope used by searches.

    Returns None for absent or non-numeric values; callers treat None as a
    filter that matches nothing.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    text = str(raw).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def read_store_scope(path: Path | None = None) -> int | None:
    override = os.getenv("SELLYTICS_STORE_ID")
    if override is not None and override.strip():
        return resolve_scope(override)
    return resolve_scope(load_session_context(path).get(STORE_ID_KEY))

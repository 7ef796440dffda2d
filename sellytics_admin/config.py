from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_SESSION_FILE = Path.home() / ".sellytics_admin_session.json"
DEFAULT_SUPPLIER_FIELD = "suppliers_name"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ConsoleConfig:
    store_url: str
    store_key: str | None = None
    timeout_seconds: float = 15.0
    verify_ssl: bool = True
    retry_max_attempts: int = 1
    retry_backoff_ms: int = 150
    supplier_field: str = DEFAULT_SUPPLIER_FIELD
    session_path: Path = DEFAULT_SESSION_FILE

    @property
    def rest_url(self) -> str:
        return f"{self.store_url.rstrip('/')}/rest/v1"

    @classmethod
    def from_env(cls, env_file: str | None = None) -> "ConsoleConfig":
        """Load config from environment with optional .env override."""
        load_dotenv(env_file)
        session_raw = os.getenv("SELLYTICS_SESSION_PATH", "").strip()
        config = cls(
            store_url=os.getenv("SELLYTICS_STORE_URL", "").strip(),
            store_key=os.getenv("SELLYTICS_STORE_KEY", "").strip() or None,
            timeout_seconds=_read_float("SELLYTICS_TIMEOUT_SECONDS", "15"),
            verify_ssl=parse_bool(os.getenv("SELLYTICS_VERIFY_SSL"), default=True),
            retry_max_attempts=_read_int("SELLYTICS_RETRY_MAX_ATTEMPTS", "1"),
            retry_backoff_ms=_read_int("SELLYTICS_RETRY_BACKOFF_MS", "150"),
            supplier_field=os.getenv("SELLYTICS_SUPPLIER_FIELD", DEFAULT_SUPPLIER_FIELD).strip(),
            session_path=Path(session_raw) if session_raw else DEFAULT_SESSION_FILE,
        )
        config.validate()
        return config

    def validate(self) -> None:
        if not self.store_url:
            raise ConfigError("Missing required config values: SELLYTICS_STORE_URL")
        if self.timeout_seconds <= 0:
            raise ConfigError(f"Invalid SELLYTICS_TIMEOUT_SECONDS: expected > 0, got {self.timeout_seconds}")
        if self.retry_max_attempts < 1:
            raise ConfigError(f"Invalid SELLYTICS_RETRY_MAX_ATTEMPTS: expected >= 1, got {self.retry_max_attempts}")
        if self.retry_backoff_ms < 0:
            raise ConfigError(f"Invalid SELLYTICS_RETRY_BACKOFF_MS: expected >= 0, got {self.retry_backoff_ms}")
        if not self.supplier_field:
            raise ConfigError("SELLYTICS_SUPPLIER_FIELD cannot be empty")


def parse_bool(value: str | bool | None, default: bool = True) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default

    normalized = str(value).strip().lower()
    if normalized in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "f", "no", "n", "off"}:
        return False
    return default


def _read_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected a number, got {raw!r}") from exc


def _read_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected an integer, got {raw!r}") from exc

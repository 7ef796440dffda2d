from __future__ import annotations

import asyncio
from typing import Any, Sequence

import httpx

from sellytics_admin.config import ConsoleConfig
from sellytics_admin.logger import get_logger

from .base import Filter, JoinSpec, keep_inner_matches
from .error_mapper import map_error
from .exceptions import StoreError, TransportError

TRACE_HEADERS = ("X-Trace-ID", "X-Request-ID", "sb-request-id")

logger = get_logger(__name__)


def encode_filter_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def build_projection(columns: Sequence[str], joins: Sequence[JoinSpec] = ()) -> str:
    return ",".join([*columns, *(join.projection() for join in joins)])


class HttpStore:
    """PostgREST-backed remote store (the REST surface Supabase exposes)."""

    def __init__(self, config: ConsoleConfig, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._client = client or httpx.AsyncClient(
            timeout=config.timeout_seconds,
            verify=config.verify_ssl,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpStore":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def select(
        self,
        table: str,
        columns: Sequence[str],
        *,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        ascending: bool = True,
    ) -> list[dict[str, Any]]:
        params = self._filter_params(filters)
        params["select"] = build_projection(columns)
        if order_by:
            params["order"] = f"{order_by}.{'asc' if ascending else 'desc'}"
        payload = await self._request("GET", table, params=params)
        return self._rows(payload)

    async def select_joined(
        self,
        table: str,
        columns: Sequence[str],
        *,
        filters: Sequence[Filter],
        joins: Sequence[JoinSpec],
    ) -> list[dict[str, Any]]:
        params = self._filter_params(filters)
        params["select"] = build_projection(columns, joins)
        payload = await self._request("GET", table, params=params)
        return keep_inner_matches(self._rows(payload), joins)

    async def update(self, table: str, key_field: str, key: Any, values: dict[str, Any]) -> None:
        await self._request(
            "PATCH",
            table,
            params={key_field: f"eq.{encode_filter_value(key)}"},
            json_body=values,
            headers={"Prefer": "return=minimal"},
        )

    async def delete(self, table: str, key_field: str, key: Any) -> None:
        await self._request(
            "DELETE",
            table,
            params={key_field: f"eq.{encode_filter_value(key)}"},
            headers={"Prefer": "return=minimal"},
        )

    async def insert(self, table: str, rows: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
        payload = await self._request(
            "POST",
            table,
            json_body=list(rows),
            headers={"Prefer": "return=representation"},
        )
        return self._rows(payload)

    @staticmethod
    def _filter_params(filters: Sequence[Filter]) -> dict[str, str]:
        return {item.column: f"eq.{encode_filter_value(item.value)}" for item in filters}

    @staticmethod
    def _rows(payload: Any) -> list[dict[str, Any]]:
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise StoreError(code="UNEXPECTED_PAYLOAD", message="Expected a list of rows", details=payload)
        return [row for row in payload if isinstance(row, dict)]

    def _headers(self, extra: dict[str, str] | None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.config.store_key:
            headers["apikey"] = self.config.store_key
            headers["Authorization"] = f"Bearer {self.config.store_key}"
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json_body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        url = f"{self.config.rest_url}/{table}"
        allow_retry = method == "GET"
        attempts = self.config.retry_max_attempts if allow_retry else 1

        for attempt in range(1, attempts + 1):
            try:
                response = await self._client.request(
                    method,
                    url,
                    params=params,
                    json=json_body,
                    headers=self._headers(headers),
                )
            except httpx.TimeoutException as exc:
                if attempt >= attempts:
                    raise TransportError(code="TIMEOUT_ERROR", message="The store did not respond in time") from exc
                await self._backoff(attempt)
                continue
            except httpx.TransportError as exc:
                if attempt >= attempts:
                    raise TransportError(code="NETWORK_ERROR", message=str(exc) or "Could not reach the store") from exc
                await self._backoff(attempt)
                continue

            if response.status_code >= 400:
                if allow_retry and response.status_code >= 500 and attempt < attempts:
                    logger.warning("retrying %s %s after status %s", method, table, response.status_code)
                    await self._backoff(attempt)
                    continue
                raise map_error(response.status_code, self._safe_json(response), self._trace_id(response))
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as exc:
                raise StoreError(
                    code="INVALID_PAYLOAD",
                    message="The store returned a response that is not valid JSON",
                    details={"body": response.text[:200]},
                    status_code=response.status_code,
                    trace_id=self._trace_id(response),
                ) from exc
        raise StoreError(code="INTERNAL_ERROR", message="Max retry attempts reached")

    async def _backoff(self, attempt: int) -> None:
        await asyncio.sleep((self.config.retry_backoff_ms * attempt) / 1000)

    @staticmethod
    def _safe_json(response: httpx.Response) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            return {"message": response.text}
        return payload if isinstance(payload, dict) else {"details": payload}

    @staticmethod
    def _trace_id(response: httpx.Response) -> str | None:
        for key in TRACE_HEADERS:
            value = response.headers.get(key)
            if value:
                return value
        return None

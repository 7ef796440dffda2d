from __future__ import annotations

import asyncio
from typing import Any, Sequence

import pytest

from sellytics_admin.store.base import Filter, JoinSpec, keep_inner_matches
from sellytics_admin.store.exceptions import ServerError, StoreError


def _matches(row: dict[str, Any], filters: Sequence[Filter]) -> bool:
    return all(row.get(item.column) == item.value for item in filters)


class FakeStore:
    """In-memory RemoteStore double with call log, failure injection and gates."""

    def __init__(self, tables: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self.tables = {name: [dict(row) for row in rows] for name, rows in (tables or {}).items()}
        self.calls: list[tuple[Any, ...]] = []
        self._failures: dict[str, StoreError] = {}
        self._gates: dict[str, asyncio.Event] = {}

    def fail_next(self, operation: str, error: StoreError | None = None) -> None:
        self._failures[operation] = error or ServerError(code="PGRST500", message="boom", status_code=500, trace_id="trace-fail")

    def gate(self, operation: str) -> asyncio.Event:
        event = asyncio.Event()
        self._gates[operation] = event
        return event

    def calls_for(self, operation: str) -> list[tuple[Any, ...]]:
        return [call for call in self.calls if call[0] == operation]

    async def _enter(self, operation: str) -> None:
        gate = self._gates.pop(operation, None)
        if gate is not None:
            await gate.wait()
        error = self._failures.pop(operation, None)
        if error is not None:
            raise error

    async def select(
        self,
        table: str,
        columns: Sequence[str],
        *,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        ascending: bool = True,
    ) -> list[dict[str, Any]]:
        self.calls.append(("select", table, tuple(columns), tuple(filters), order_by, ascending))
        await self._enter("select")
        rows = [row for row in self.tables.get(table, []) if _matches(row, filters)]
        if order_by:
            rows = sorted(rows, key=lambda row: row.get(order_by), reverse=not ascending)
        return [{column: row.get(column) for column in columns} for row in rows]

    async def select_joined(
        self,
        table: str,
        columns: Sequence[str],
        *,
        filters: Sequence[Filter],
        joins: Sequence[JoinSpec],
    ) -> list[dict[str, Any]]:
        self.calls.append(("select_joined", table, tuple(columns), tuple(filters), tuple(joins)))
        await self._enter("select_joined")
        rows = [row for row in self.tables.get(table, []) if _matches(row, filters)]
        projected = [
            {**{column: row.get(column) for column in columns}, **{join.table: row.get(join.table) for join in joins}}
            for row in rows
        ]
        return keep_inner_matches(projected, joins)

    async def update(self, table: str, key_field: str, key: Any, values: dict[str, Any]) -> None:
        self.calls.append(("update", table, key_field, key, dict(values)))
        await self._enter("update")
        for row in self.tables.get(table, []):
            if row.get(key_field) == key:
                row.update(values)

    async def delete(self, table: str, key_field: str, key: Any) -> None:
        self.calls.append(("delete", table, key_field, key))
        await self._enter("delete")
        self.tables[table] = [row for row in self.tables.get(table, []) if row.get(key_field) != key]

    async def insert(self, table: str, rows: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
        self.calls.append(("insert", table, [dict(row) for row in rows]))
        await self._enter("insert")
        self.tables.setdefault(table, []).extend(dict(row) for row in rows)
        return [dict(row) for row in rows]


@pytest.fixture()
def admins_store() -> FakeStore:
    return FakeStore(
        {
            "sprintify_admin": [
                {"id": 1, "full_name": "Ada Obi", "email": "ada@example.com", "role": "admin", "status": "active"},
                {"id": 2, "full_name": "Bola Ade", "email": "bola@example.com", "role": "support", "status": "active"},
            ]
        }
    )


@pytest.fixture()
def receipts_store() -> FakeStore:
    return FakeStore(
        {
            "receipts": [
                {
                    "id": 7,
                    "customer_name": "Chidi",
                    "sales_id": 9,
                    "product_id": 3,
                    "device_id": "DEV123",
                    "store_receipt_id": 42,
                    "dynamic_sales": {"amount": 1500},
                    "dynamic_product": {"name": "Phone X", "suppliers_name": "Acme"},
                },
                {
                    "id": 8,
                    "customer_name": "Dayo",
                    "sales_id": 10,
                    "product_id": 4,
                    "device_id": "DEV123",
                    "store_receipt_id": 43,
                    "dynamic_sales": {"amount": 99.5},
                    "dynamic_product": {"name": "Tablet", "suppliers_name": "Acme"},
                },
                {
                    "id": 11,
                    "customer_name": "Efe",
                    "sales_id": None,
                    "product_id": 5,
                    "device_id": "DEV500",
                    "store_receipt_id": 42,
                    "dynamic_sales": None,
                    "dynamic_product": {"name": "Charger", "suppliers_name": "Volt"},
                },
            ]
        }
    )


@pytest.fixture()
def make_store():
    return FakeStore

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Sequence


@dataclass(frozen=True)
class Filter:
    column: str
    value: Any


@dataclass(frozen=True)
class JoinSpec:
    """An inner-joined secondary table embedded under its own name in each row."""

    table: str
    columns: tuple[str, ...]

    def projection(self) -> str:
        return f"{self.table}!inner({','.join(self.columns)})"


class RemoteStore(Protocol):
    async def select(
        self,
        table: str,
        columns: Sequence[str],
        *,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        ascending: bool = True,
    ) -> list[dict[str, Any]]: ...

    async def select_joined(
        self,
        table: str,
        columns: Sequence[str],
        *,
        filters: Sequence[Filter],
        joins: Sequence[JoinSpec],
    ) -> list[dict[str, Any]]: ...

    async def update(self, table: str, key_field: str, key: Any, values: dict[str, Any]) -> None: ...

    async def delete(self, table: str, key_field: str, key: Any) -> None: ...

    async def insert(self, table: str, rows: Sequence[dict[str, Any]]) -> list[dict[str, Any]]: ...


def keep_inner_matches(rows: Sequence[dict[str, Any]], joins: Sequence[JoinSpec]) -> list[dict[str, Any]]:
    return [row for row in rows if all(isinstance(row.get(join.table), dict) for join in joins)]

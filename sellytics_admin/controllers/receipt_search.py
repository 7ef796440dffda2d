from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sellytics_admin.config import DEFAULT_SUPPLIER_FIELD
from sellytics_admin.errors import ConsoleError, DataIntegrityError, InvalidInput, RemoteReadFailure
from sellytics_admin.logger import get_logger, log_action
from sellytics_admin.models import PRODUCTS_TABLE, SALES_TABLE, ReceiptViewRecord, project_receipt_row
from sellytics_admin.notifications import NotificationCenter
from sellytics_admin.session import resolve_scope
from sellytics_admin.store.base import Filter, JoinSpec, RemoteStore
from sellytics_admin.store.exceptions import StoreError
from sellytics_admin.view_state import ViewState, resolve_view_state

RECEIPTS_TABLE = "receipts"
RECEIPT_COLUMNS = ("id", "customer_name", "sales_id", "product_id", "device_id")
SCOPE_COLUMN = "store_receipt_id"
LOOKUP_COLUMN = "device_id"
SEARCH_FAILED_MESSAGE = "Failed to fetch records."


@dataclass
class SearchState:
    records: list[ReceiptViewRecord] = field(default_factory=list)
    loading: bool = False
    error: ConsoleError | None = None
    last_key: str | None = None


class ReceiptSearchController:
    """Device lookup over receipts joined with their sale and product rows.

    Results live only in memory: the ``returned`` flag and row removal never
    reach the store. A failed search keeps the previous results and sets
    ``error``; an empty result with no error means nothing matched.
    """

    def __init__(
        self,
        store: RemoteStore,
        scope: Any,
        *,
        supplier_field: str = DEFAULT_SUPPLIER_FIELD,
        notifications: NotificationCenter | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self._scope = resolve_scope(scope)
        self.supplier_field = supplier_field
        self.notifications = notifications or NotificationCenter()
        self.logger = logger or get_logger(__name__)
        self._state = SearchState()
        self._searches_in_flight = 0

    @property
    def scope(self) -> int | None:
        return self._scope

    @property
    def records(self) -> list[ReceiptViewRecord]:
        return [record.model_copy() for record in self._state.records]

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def error(self) -> ConsoleError | None:
        return self._state.error

    @property
    def last_key(self) -> str | None:
        return self._state.last_key

    def joins(self) -> tuple[JoinSpec, JoinSpec]:
        return (
            JoinSpec(table=SALES_TABLE, columns=("amount",)),
            JoinSpec(table=PRODUCTS_TABLE, columns=("name", self.supplier_field)),
        )

    def view_state(self) -> ViewState:
        error = self._state.error
        return resolve_view_state(
            loading=self._state.loading,
            has_data=bool(self._state.records),
            error=error.message if error else None,
            trace_id=error.trace_id if error else None,
        )

    async def search(self, lookup_key: str | None) -> list[ReceiptViewRecord]:
        key = (lookup_key or "").strip()
        if not key:
            return self.records
        if self._scope is None:
            self.logger.warning("store scope is missing or not numeric; search for %r matches nothing", key)
            self._state.records = []
            self._state.error = None
            self._state.last_key = key
            return []

        self._searches_in_flight += 1
        self._state.loading = True
        try:
            rows = await self.store.select_joined(
                RECEIPTS_TABLE,
                RECEIPT_COLUMNS,
                filters=(Filter(SCOPE_COLUMN, self._scope), Filter(LOOKUP_COLUMN, key)),
                joins=self.joins(),
            )
            records = [project_receipt_row(row, supplier_field=self.supplier_field) for row in rows]
        except StoreError as exc:
            self._fail(
                key,
                RemoteReadFailure(
                    code=exc.code,
                    message=SEARCH_FAILED_MESSAGE,
                    details={"remote_message": exc.message, "status_code": exc.status_code},
                    trace_id=exc.trace_id,
                ),
            )
        except DataIntegrityError as exc:
            self._fail(key, exc)
        else:
            self._state.records = records
            self._state.error = None
            self._state.last_key = key
            log_action(self.logger, "receipts", "search", "success", target=key, scope=self._scope, count=len(records))
        finally:
            self._searches_in_flight -= 1
            self._state.loading = self._searches_in_flight > 0
        return self.records

    def toggle_returned(self, index: int) -> ReceiptViewRecord:
        record = self._state.records[self._check_index(index)]
        updated = record.model_copy(update={"returned": not record.returned})
        self._state.records[index] = updated
        return updated.model_copy()

    def remove_row(self, index: int) -> ReceiptViewRecord:
        return self._state.records.pop(self._check_index(index))

    def returned_records(self) -> list[ReceiptViewRecord]:
        return [record.model_copy() for record in self._state.records if record.returned]

    def _fail(self, key: str, error: ConsoleError) -> None:
        self._state.error = error
        self.notifications.toast(level="error", message=error.message, trace_id=error.trace_id, details={"device_id": key})
        log_action(
            self.logger,
            "receipts",
            "search",
            "error",
            target=key,
            trace_id=error.trace_id,
            level=logging.ERROR,
            code=error.code,
        )

    def _check_index(self, index: int) -> int:
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self._state.records):
            raise InvalidInput(
                code="INVALID_ROW",
                message=f"No result row at index {index!r}",
                details={"size": len(self._state.records)},
            )
        return index

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sellytics_admin.entities import EntityKind
from sellytics_admin.errors import (
    ConsoleError,
    InvalidInput,
    MutationInFlight,
    NotFound,
    RemoteReadFailure,
    RemoteWriteFailure,
)
from sellytics_admin.logger import get_logger, log_action
from sellytics_admin.notifications import NotificationCenter
from sellytics_admin.store.base import RemoteStore
from sellytics_admin.store.exceptions import StoreError
from sellytics_admin.view_state import ViewState, resolve_view_state

from .mutations import (
    Change,
    ConfirmPredicate,
    Delete,
    MutationIntent,
    MutationOutcome,
    MutationStatus,
    MutationTracker,
    SetStatus,
    Toggle,
    resolve_confirmation,
)


@dataclass
class CollectionState:
    items: list[dict[str, Any]] = field(default_factory=list)
    loading: bool = False
    loaded: bool = False
    error: RemoteReadFailure | None = None
    mutation_error: ConsoleError | None = None


class CollectionController:
    """Local mirror of one remote table with confirm-then-mutate operations.

    Successful writes are patched into the local rows without a re-read. A
    failed write leaves the rows untouched and records ``mutation_error``.
    """

    def __init__(
        self,
        store: RemoteStore,
        entity: EntityKind,
        *,
        notifications: NotificationCenter | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.entity = entity
        self.notifications = notifications or NotificationCenter()
        self.logger = logger or get_logger(__name__)
        self._state = CollectionState()
        self._mutations = MutationTracker()
        self._loads_in_flight = 0

    @property
    def items(self) -> list[dict[str, Any]]:
        return [dict(item) for item in self._state.items]

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def loaded(self) -> bool:
        return self._state.loaded

    @property
    def error(self) -> RemoteReadFailure | None:
        return self._state.error

    @property
    def mutation_error(self) -> ConsoleError | None:
        return self._state.mutation_error

    def view_state(self) -> ViewState:
        error = self._state.error
        return resolve_view_state(
            loading=self._state.loading,
            has_data=bool(self._state.items),
            error=error.message if error else None,
            trace_id=error.trace_id if error else None,
            empty_message=f"No {self.entity.name} found.",
        )

    def filtered(self, query: str = "") -> list[dict[str, Any]]:
        needle = query.strip().lower()
        if not needle:
            return self.items
        return [
            dict(item)
            for item in self._state.items
            if any(needle in str(item.get(key) or "").lower() for key in self.entity.search_fields)
        ]

    def find(self, item_id: Any) -> dict[str, Any]:
        return dict(self._require(item_id))

    async def load(self) -> list[dict[str, Any]]:
        self._loads_in_flight += 1
        self._state.loading = True
        try:
            rows = await self.store.select(
                self.entity.table,
                self.entity.columns,
                order_by=self.entity.order_by,
                ascending=self.entity.ascending,
            )
        except StoreError as exc:
            self._state.error = RemoteReadFailure(
                code=exc.code,
                message=exc.message,
                details={"table": self.entity.table, "status_code": exc.status_code},
                trace_id=exc.trace_id,
            )
            log_action(self.logger, self.entity.name, "load", "error", trace_id=exc.trace_id, level=logging.ERROR, code=exc.code)
        else:
            self._state.items = self._unique(rows)
            self._state.error = None
            self._state.loaded = True
            log_action(self.logger, self.entity.name, "load", "success", count=len(self._state.items))
        finally:
            self._loads_in_flight -= 1
            self._state.loading = self._loads_in_flight > 0
        return self.items

    def prepare(self, item_id: Any, change: Change) -> MutationIntent:
        """Validate a change and describe it for the confirmation step."""
        item = self._require(item_id)
        if isinstance(change, Delete):
            if not self.entity.allow_delete:
                raise InvalidInput(code="DELETE_NOT_ALLOWED", message=f"{self.entity.name} cannot be deleted")
            return MutationIntent(
                item_id=item_id,
                change=change,
                current=None,
                target=None,
                prompt=self.entity.confirm_prompt(is_delete=True),
            )
        field_name = self._status_field()
        current = item.get(field_name)
        target = self._target_for(change, current)
        return MutationIntent(
            item_id=item_id,
            change=change,
            current=current,
            target=target,
            prompt=self.entity.confirm_prompt(is_delete=False, target=target, explicit=isinstance(change, SetStatus)),
        )

    async def request_mutation(self, item_id: Any, change: Change, confirm: ConfirmPredicate) -> MutationOutcome:
        intent = self.prepare(item_id, change)
        if not self._mutations.begin_confirmation(item_id):
            return self._reject(intent)
        try:
            confirmed = await resolve_confirmation(confirm, intent)
        except BaseException:
            self._mutations.abort(item_id)
            raise
        if not confirmed:
            self._mutations.abort(item_id)
            log_action(self.logger, self.entity.name, self._action_name(change), "aborted", target=item_id)
            return MutationOutcome(status=MutationStatus.ABORTED, item_id=item_id, item=self._lookup(item_id))
        return await self.commit(intent)

    async def commit(self, intent: MutationIntent) -> MutationOutcome:
        """Run a confirmed change; toggles recompute their target from current rows."""
        item_id = intent.item_id
        item = self._require(item_id)
        if not self._mutations.begin_commit(item_id):
            return self._reject(intent)
        try:
            if isinstance(intent.change, Delete):
                return await self._commit_delete(item_id, item)
            return await self._commit_update(item_id, item, intent.change)
        finally:
            self._mutations.finish(item_id)

    async def delete(self, item_id: Any, confirm: ConfirmPredicate) -> MutationOutcome:
        return await self.request_mutation(item_id, Delete(), confirm)

    async def toggle_status(self, item_id: Any, confirm: ConfirmPredicate) -> MutationOutcome:
        return await self.request_mutation(item_id, Toggle(), confirm)

    async def set_status(self, item_id: Any, value: Any, confirm: ConfirmPredicate) -> MutationOutcome:
        return await self.request_mutation(item_id, SetStatus(value), confirm)

    async def _commit_delete(self, item_id: Any, item: dict[str, Any]) -> MutationOutcome:
        try:
            await self.store.delete(self.entity.table, self.entity.key_field, item_id)
        except StoreError as exc:
            return self._write_failed("delete", item_id, item, exc, self.entity.delete_failed_message())
        key = self.entity.key_field
        self._state.items = [row for row in self._state.items if row.get(key) != item_id]
        self._state.mutation_error = None
        log_action(self.logger, self.entity.name, "delete", "success", target=item_id)
        return MutationOutcome(status=MutationStatus.COMMITTED, item_id=item_id)

    async def _commit_update(self, item_id: Any, item: dict[str, Any], change: Change) -> MutationOutcome:
        field_name = self._status_field()
        target = self._target_for(change, item.get(field_name))
        action = self._action_name(change)
        try:
            await self.store.update(self.entity.table, self.entity.key_field, item_id, {field_name: target})
        except StoreError as exc:
            return self._write_failed(action, item_id, item, exc, self.entity.update_failed_message)
        patched: dict[str, Any] | None = None
        key = self.entity.key_field
        rows = []
        for row in self._state.items:
            if row.get(key) == item_id:
                row = {**row, field_name: target}
                patched = row
            rows.append(row)
        self._state.items = rows
        self._state.mutation_error = None
        log_action(self.logger, self.entity.name, action, "success", target=item_id, value=target)
        return MutationOutcome(
            status=MutationStatus.COMMITTED,
            item_id=item_id,
            item=dict(patched) if patched is not None else None,
        )

    def _write_failed(self, action: str, item_id: Any, item: dict[str, Any], exc: StoreError, message: str) -> MutationOutcome:
        error = RemoteWriteFailure(
            code=exc.code,
            message=message,
            details={"table": self.entity.table, "remote_message": exc.message, "status_code": exc.status_code},
            trace_id=exc.trace_id,
        )
        self._state.mutation_error = error
        self.notifications.toast(
            level="error",
            message=message,
            trace_id=exc.trace_id,
            details={"target": item_id, "action": action, "reason": exc.message},
        )
        log_action(
            self.logger,
            self.entity.name,
            action,
            "error",
            target=item_id,
            trace_id=exc.trace_id,
            level=logging.ERROR,
            code=exc.code,
        )
        return MutationOutcome(status=MutationStatus.FAILED, item_id=item_id, item=dict(item), error=error)

    def _reject(self, intent: MutationIntent) -> MutationOutcome:
        log_action(
            self.logger,
            self.entity.name,
            self._action_name(intent.change),
            "rejected",
            target=intent.item_id,
            level=logging.WARNING,
        )
        error = MutationInFlight(
            code="MUTATION_IN_FLIGHT",
            message=f"A change to this {self.entity.noun} is already being saved",
            details={"target": intent.item_id},
        )
        return MutationOutcome(
            status=MutationStatus.REJECTED,
            item_id=intent.item_id,
            item=self._lookup(intent.item_id),
            error=error,
        )

    def _target_for(self, change: Change, current: Any) -> Any:
        if isinstance(change, Toggle):
            if self.entity.toggle_states is None:
                raise InvalidInput(code="TOGGLE_NOT_SUPPORTED", message=f"{self.entity.name} has no two-state status")
            return self.entity.toggle_target(current)
        if isinstance(change, SetStatus):
            if change.value not in self.entity.status_options:
                raise InvalidInput(
                    code="INVALID_STATUS",
                    message=f"{change.value!r} is not an allowed {self.entity.noun} status",
                    details={"allowed": list(self.entity.status_options)},
                )
            return change.value
        raise InvalidInput(code="UNKNOWN_CHANGE", message=f"Unsupported change {change!r}")

    def _status_field(self) -> str:
        if not self.entity.status_field:
            raise InvalidInput(code="STATUS_NOT_SUPPORTED", message=f"{self.entity.name} has no status field")
        return self.entity.status_field

    def _lookup(self, item_id: Any) -> dict[str, Any] | None:
        key = self.entity.key_field
        for row in self._state.items:
            if row.get(key) == item_id:
                return dict(row)
        return None

    def _require(self, item_id: Any) -> dict[str, Any]:
        if item_id is None or item_id == "":
            raise InvalidInput(code="INVALID_ID", message=f"Invalid {self.entity.noun} id: {item_id!r}")
        key = self.entity.key_field
        for row in self._state.items:
            if row.get(key) == item_id:
                return row
        raise NotFound(code="NOT_FOUND", message=f"{self.entity.noun} {item_id!r} is not loaded", details={"table": self.entity.table})

    def _unique(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        key = self.entity.key_field
        seen: set[Any] = set()
        unique: list[dict[str, Any]] = []
        for row in rows:
            row_id = row.get(key)
            if row_id in seen:
                self.logger.warning("dropping duplicate %s row %s=%r", self.entity.table, key, row_id)
                continue
            seen.add(row_id)
            unique.append(dict(row))
        return unique

    @staticmethod
    def _action_name(change: Change) -> str:
        if isinstance(change, Delete):
            return "delete"
        if isinstance(change, Toggle):
            return "toggle_status"
        return "set_status"

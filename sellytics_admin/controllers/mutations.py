from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Union

from sellytics_admin.errors import ConsoleError


@dataclass(frozen=True)
class Delete:
    pass


@dataclass(frozen=True)
class Toggle:
    pass


@dataclass(frozen=True)
class SetStatus:
    value: Any


Change = Union[Delete, Toggle, SetStatus]


class ItemPhase(str, Enum):
    IDLE = "idle"
    CONFIRM_PENDING = "confirm_pending"
    COMMITTING = "committing"


class MutationStatus(str, Enum):
    ABORTED = "aborted"
    REJECTED = "rejected"
    COMMITTED = "committed"
    FAILED = "failed"


@dataclass(frozen=True)
class MutationIntent:
    item_id: Any
    change: Change
    current: Any
    target: Any
    prompt: str

    @property
    def is_delete(self) -> bool:
        return isinstance(self.change, Delete)


@dataclass(frozen=True)
class MutationOutcome:
    status: MutationStatus
    item_id: Any
    item: dict[str, Any] | None = None
    error: ConsoleError | None = None

    @property
    def committed(self) -> bool:
        return self.status is MutationStatus.COMMITTED


ConfirmPredicate = Callable[[MutationIntent], Union[bool, Awaitable[bool]]]


async def resolve_confirmation(confirm: ConfirmPredicate, intent: MutationIntent) -> bool:
    decision = confirm(intent)
    if inspect.isawaitable(decision):
        decision = await decision
    return bool(decision)


def always_confirm(_intent: MutationIntent) -> bool:
    return True


@dataclass
class MutationTracker:
    """Per-item phases; an item that is committing cannot start a second write."""

    phases: dict[Any, ItemPhase] = field(default_factory=dict)

    def phase(self, item_id: Any) -> ItemPhase:
        return self.phases.get(item_id, ItemPhase.IDLE)

    def is_committing(self, item_id: Any) -> bool:
        return self.phase(item_id) is ItemPhase.COMMITTING

    def begin_confirmation(self, item_id: Any) -> bool:
        if self.is_committing(item_id):
            return False
        self.phases[item_id] = ItemPhase.CONFIRM_PENDING
        return True

    def abort(self, item_id: Any) -> None:
        if self.phase(item_id) is ItemPhase.CONFIRM_PENDING:
            self.phases.pop(item_id, None)

    def begin_commit(self, item_id: Any) -> bool:
        if self.is_committing(item_id):
            return False
        self.phases[item_id] = ItemPhase.COMMITTING
        return True

    def finish(self, item_id: Any) -> None:
        self.phases.pop(item_id, None)

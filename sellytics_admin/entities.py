from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class EntityKind:
    """Describes one remote table managed by a CollectionController."""

    name: str
    table: str
    key_field: str
    columns: tuple[str, ...]
    noun: str
    status_field: str | None = None
    toggle_states: tuple[Any, Any] | None = None
    toggle_verbs: dict[Any, str] = field(default_factory=dict)
    status_options: tuple[Any, ...] = ()
    allow_delete: bool = True
    order_by: str | None = None
    ascending: bool = True
    search_fields: tuple[str, ...] = ()
    update_failed_message: str = "Error updating record."

    def toggle_target(self, current: Any) -> Any:
        if self.toggle_states is None:
            raise ValueError(f"{self.name} has no two-state status field")
        first, second = self.toggle_states
        return second if current == first else first

    def confirm_prompt(self, *, is_delete: bool, target: Any = None, explicit: bool = False) -> str:
        if is_delete:
            return f"Are you sure you want to delete this {self.noun}?"
        if explicit:
            return f"Are you sure you want to set this {self.noun} as {target}?"
        verb = self.toggle_verbs.get(target, "update")
        return f"Are you sure you want to {verb} this {self.noun}?"

    def delete_failed_message(self) -> str:
        return f"Error deleting {self.noun}."


ADMINS = EntityKind(
    name="admins",
    table="sprintify_admin",
    key_field="id",
    columns=("id", "full_name", "email", "role", "status"),
    noun="admin",
    status_field="status",
    toggle_states=("active", "inactive"),
    toggle_verbs={"inactive": "suspend", "active": "activate"},
    search_fields=("full_name", "email", "role"),
    update_failed_message="Error updating suspension status.",
)

USERS = EntityKind(
    name="users",
    table="users",
    key_field="id",
    columns=("id", "full_name", "email", "role", "status"),
    noun="user",
    status_field="status",
    toggle_states=("active", "inactive"),
    toggle_verbs={"inactive": "deactivate", "active": "activate"},
    status_options=("active", "inactive"),
    search_fields=("full_name", "email", "role"),
    update_failed_message="Error updating user status.",
)

REVIEWS = EntityKind(
    name="reviews",
    table="reviews",
    key_field="review_id",
    columns=("review_id", "reviewer_name", "reviewer_email", "rating", "review_text", "is_approved", "created_at"),
    noun="review",
    status_field="is_approved",
    toggle_states=(True, False),
    toggle_verbs={True: "approve", False: "reject"},
    allow_delete=False,
    order_by="created_at",
    ascending=True,
    search_fields=("reviewer_name", "reviewer_email", "review_text"),
    update_failed_message="Error updating review.",
)

ENTITY_KINDS: dict[str, EntityKind] = {entity.name: entity for entity in (ADMINS, USERS, REVIEWS)}

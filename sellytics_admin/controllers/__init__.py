from .collection import CollectionController, CollectionState
from .mutations import (
    Delete,
    ItemPhase,
    MutationIntent,
    MutationOutcome,
    MutationStatus,
    MutationTracker,
    SetStatus,
    Toggle,
    always_confirm,
)
from .receipt_search import ReceiptSearchController, SearchState

__all__ = [
    "CollectionController",
    "CollectionState",
    "Delete",
    "ItemPhase",
    "MutationIntent",
    "MutationOutcome",
    "MutationStatus",
    "MutationTracker",
    "ReceiptSearchController",
    "SearchState",
    "SetStatus",
    "Toggle",
    "always_confirm",
]

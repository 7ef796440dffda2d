from .config import ConfigError, ConsoleConfig
from .controllers import CollectionController, ReceiptSearchController
from .entities import ADMINS, ENTITY_KINDS, REVIEWS, USERS, EntityKind
from .errors import (
    ConsoleError,
    DataIntegrityError,
    InvalidInput,
    MutationInFlight,
    NotFound,
    RemoteReadFailure,
    RemoteWriteFailure,
)
from .models import ReceiptViewRecord

__version__ = "0.1.0"

__all__ = [
    "ADMINS",
    "CollectionController",
    "EntityKind",
    "ConfigError",
    "ConsoleConfig",
    "ConsoleError",
    "DataIntegrityError",
    "ENTITY_KINDS",
    "InvalidInput",
    "MutationInFlight",
    "NotFound",
    "REVIEWS",
    "ReceiptSearchController",
    "ReceiptViewRecord",
    "RemoteReadFailure",
    "RemoteWriteFailure",
    "USERS",
]

"""Event persistence used by import and export."""

from .database import EventDatabase
from .exceptions import DuplicateEventError, StorageError
from .protocols import EventStore

__all__ = [
    "DuplicateEventError",
    "EventDatabase",
    "EventStore",
    "StorageError",
]

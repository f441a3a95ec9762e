"""Recycle bin module.

This module provides the entry model, stored-name scheme, payload
transfer helpers and the RecycleStore that keeps removed objects
restorable until they expire.
"""

from better_rm.recycle.errors import (
    AmbiguousSelectorError,
    EntryNotFoundError,
    InvalidRestorePathError,
    OperationCancelledError,
    RecycleBinError,
    SourceRemovalError,
    StorageError,
)
from better_rm.recycle.models import RecycleEntry
from better_rm.recycle.store import RecycleStore, StoredRecord, validate_restore_path
from better_rm.recycle.transfer import RelocationError, RelocationStrategy, relocate

__all__ = [
    "AmbiguousSelectorError",
    "EntryNotFoundError",
    "InvalidRestorePathError",
    "OperationCancelledError",
    "RecycleBinError",
    "RecycleEntry",
    "RecycleStore",
    "RelocationError",
    "RelocationStrategy",
    "SourceRemovalError",
    "StorageError",
    "StoredRecord",
    "relocate",
    "validate_restore_path",
]

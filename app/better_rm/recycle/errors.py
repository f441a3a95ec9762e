"""Exceptions raised by the recycle bin store."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from better_rm.recycle.models import RecycleEntry


class RecycleBinError(Exception):
    """Base exception for recycle bin errors."""


class StorageError(RecycleBinError):
    """Raised when moving, compressing or recording an entry fails.

    Whatever side of the entry was not yet committed has been rolled back
    before this is raised.
    """


class SourceRemovalError(StorageError):
    """Raised when the original could not be removed after a verified copy.

    The copy is kept and its metadata committed, so the entry remains
    restorable even though the original location still holds data.

    Attributes:
        entry: The committed entry describing the retained copy.
    """

    def __init__(self, message: str, entry: RecycleEntry) -> None:
        super().__init__(message)
        self.entry = entry


class EntryNotFoundError(RecycleBinError):
    """Raised when no entry matches a restore selector."""


class AmbiguousSelectorError(RecycleBinError):
    """Raised when a bare file name matches several original paths.

    Attributes:
        candidates: Original paths that matched the selector.
    """

    def __init__(self, selector: str, candidates: list[str]) -> None:
        listing = ", ".join(candidates)
        super().__init__(f"'{selector}' is ambiguous, matches: {listing}")
        self.candidates = candidates


class InvalidRestorePathError(RecycleBinError):
    """Raised when an entry's original path is relative or contains '..'."""


class OperationCancelledError(RecycleBinError):
    """Raised when the operator declines a confirmation."""

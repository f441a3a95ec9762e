"""Recycle bin entry model.

Each entry describes one removed filesystem object and its stored payload.
Entries are persisted as one JSON object per file under
``<recycle bin>/.metadata/<stored_name>.json``; the field names and layout
are shared with other better-rm implementations and must not change.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any


def format_timestamp(when: datetime) -> str:
    """Serialize a timestamp as RFC 3339.

    Naive datetimes are interpreted as local time. A zero UTC offset is
    written as ``Z``.

    Args:
        when: Timestamp to serialize.

    Returns:
        RFC 3339 string, e.g. ``2024-01-15T10:00:00.123456+01:00``.
    """
    aware = when.astimezone() if when.tzinfo is None else when
    text = aware.isoformat()
    if aware.utcoffset() == timedelta(0) and text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp into an aware datetime.

    Accepts a ``Z`` suffix and fractional seconds of any precision.
    Timestamps without an offset are interpreted as local time.

    Raises:
        ValueError: If the value is not a valid timestamp.
    """
    parsed = datetime.fromisoformat(value.strip())
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


@dataclass(frozen=True, slots=True)
class RecycleEntry:
    """Record of a single object held in the recycle bin.

    Attributes:
        original_path: Absolute path the object had when it was removed.
        deleted_at: When the object was moved into the recycle bin.
        stored_name: Unique payload name inside the recycle bin root.
        is_compressed: Whether the payload is a gzip stream of the original.
        original_size: Size of the original in bytes (recursive for directories).
        is_directory: Whether the payload is a whole directory.
        compressed_size: Size of the compressed payload, None if not compressed.
    """

    original_path: str
    deleted_at: datetime
    stored_name: str
    is_compressed: bool
    original_size: int
    is_directory: bool
    compressed_size: int | None = None

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.original_path:
            msg = "Original path cannot be empty"
            raise ValueError(msg)
        if not self.stored_name or self.stored_name in (".", ".."):
            msg = f"Invalid stored name: {self.stored_name!r}"
            raise ValueError(msg)
        if "/" in self.stored_name or os.sep in self.stored_name:
            msg = f"Stored name must not contain a path separator: {self.stored_name!r}"
            raise ValueError(msg)
        if self.is_compressed and self.is_directory:
            msg = "Directories are never compressed"
            raise ValueError(msg)

    @property
    def name(self) -> str:
        """Final component of the original path."""
        return os.path.basename(self.original_path.rstrip("/")) or self.original_path

    @property
    def metadata_name(self) -> str:
        """File name of this entry's metadata record."""
        return f"{self.stored_name}.json"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage.

        Returns:
            Dictionary representation of the entry.
        """
        result: dict[str, Any] = {
            "original_path": self.original_path,
            "deleted_at": format_timestamp(self.deleted_at),
            "stored_name": self.stored_name,
            "is_compressed": self.is_compressed,
            "original_size": self.original_size,
        }
        if self.compressed_size:
            result["compressed_size"] = self.compressed_size
        result["is_directory"] = self.is_directory
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RecycleEntry:
        """Deserialize from dictionary.

        Unknown keys are ignored.

        Args:
            data: Dictionary containing entry data.

        Returns:
            RecycleEntry instance.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If a field has an invalid value.
            TypeError: If a field has the wrong type.
        """
        original_path = data["original_path"]
        stored_name = data["stored_name"]
        if not isinstance(original_path, str) or not isinstance(stored_name, str):
            msg = "original_path and stored_name must be strings"
            raise TypeError(msg)

        compressed_size = data.get("compressed_size")
        return cls(
            original_path=original_path,
            deleted_at=parse_timestamp(data["deleted_at"]),
            stored_name=stored_name,
            is_compressed=bool(data.get("is_compressed", False)),
            original_size=int(data.get("original_size", 0)),
            is_directory=bool(data.get("is_directory", False)),
            compressed_size=int(compressed_size) if compressed_size else None,
        )

    def to_json(self) -> str:
        """Serialize to an indented JSON document."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, text: str) -> RecycleEntry:
        """Deserialize from a JSON document.

        Raises:
            json.JSONDecodeError: If text is not valid JSON.
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
            TypeError: If the document is not an object or fields are mistyped.
        """
        data = json.loads(text)
        if not isinstance(data, dict):
            msg = "Metadata record must be a JSON object"
            raise TypeError(msg)
        return cls.from_dict(data)

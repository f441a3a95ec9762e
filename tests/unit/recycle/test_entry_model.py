"""Unit tests for the recycle bin entry model.

Tests for RecycleEntry validation and its JSON metadata format.
"""

import json
from datetime import UTC, datetime, timedelta, timezone

import pytest
from better_rm.recycle.models import RecycleEntry, format_timestamp, parse_timestamp


def _entry(**overrides: object) -> RecycleEntry:
    data: dict[str, object] = {
        "original_path": "/home/user/notes.txt",
        "deleted_at": datetime(2024, 1, 15, 10, 0, 0, tzinfo=UTC),
        "stored_name": "20240115_100000_abcdef12_notes.txt.gz",
        "is_compressed": True,
        "original_size": 2048,
        "is_directory": False,
        "compressed_size": 512,
    }
    data.update(overrides)
    return RecycleEntry(**data)  # type: ignore[arg-type]


class TestTimestamps:
    """Tests for RFC 3339 formatting and parsing."""

    def test_utc_uses_z_suffix(self) -> None:
        """A zero offset is written as Z."""
        when = datetime(2024, 1, 15, 10, 0, 0, tzinfo=UTC)

        assert format_timestamp(when) == "2024-01-15T10:00:00Z"

    def test_offset_is_kept(self) -> None:
        """Non-UTC offsets are written out."""
        when = datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone(timedelta(hours=1)))

        assert format_timestamp(when) == "2024-01-15T10:00:00+01:00"

    def test_parses_nanosecond_precision(self) -> None:
        """Fractions longer than microseconds are accepted."""
        parsed = parse_timestamp("2024-01-15T10:00:00.123456789+01:00")

        assert parsed.microsecond == 123456
        assert parsed.utcoffset() == timedelta(hours=1)

    def test_parses_z_suffix(self) -> None:
        """A Z suffix parses to UTC."""
        assert parse_timestamp("2024-01-15T10:00:00Z").utcoffset() == timedelta(0)

    def test_naive_is_local(self) -> None:
        """Timestamps without offset are read as local time."""
        assert parse_timestamp("2024-01-15T10:00:00").tzinfo is not None

    def test_invalid(self) -> None:
        """Garbage raises ValueError."""
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")


class TestRecycleEntry:
    """Tests for RecycleEntry."""

    def test_name_is_basename(self) -> None:
        """name is the final component of the original path."""
        assert _entry().name == "notes.txt"

    def test_metadata_name(self) -> None:
        """Metadata records are named after the stored name."""
        assert _entry().metadata_name == "20240115_100000_abcdef12_notes.txt.gz.json"

    def test_empty_original_path_rejected(self) -> None:
        """An empty original path is invalid."""
        with pytest.raises(ValueError, match="Original path"):
            _entry(original_path="")

    @pytest.mark.parametrize("stored_name", ["", ".", "..", "a/b"])
    def test_invalid_stored_name_rejected(self, stored_name: str) -> None:
        """Stored names must be a single plain component."""
        with pytest.raises(ValueError):
            _entry(stored_name=stored_name)

    def test_compressed_directory_rejected(self) -> None:
        """Directories are never compressed."""
        with pytest.raises(ValueError, match="never compressed"):
            _entry(is_directory=True)

    def test_is_frozen(self) -> None:
        """Entries are immutable."""
        entry = _entry()
        with pytest.raises(AttributeError):
            entry.original_size = 1  # type: ignore[misc]


class TestSerialization:
    """Tests for the JSON metadata format."""

    def test_field_order(self) -> None:
        """Fields are written in the shared order."""
        assert list(_entry().to_dict()) == [
            "original_path",
            "deleted_at",
            "stored_name",
            "is_compressed",
            "original_size",
            "compressed_size",
            "is_directory",
        ]

    def test_compressed_size_omitted_when_absent(self) -> None:
        """compressed_size is left out for uncompressed entries."""
        data = _entry(
            stored_name="20240115_100000_abcdef12_notes.txt",
            is_compressed=False,
            compressed_size=None,
        ).to_dict()

        assert "compressed_size" not in data

    def test_json_round_trip(self) -> None:
        """to_json and from_json preserve every field."""
        entry = _entry()

        assert RecycleEntry.from_json(entry.to_json()) == entry

    def test_reads_foreign_record(self) -> None:
        """Records written by other implementations are understood."""
        record = {
            "original_path": "/tmp/dir",
            "deleted_at": "2024-01-15T10:00:00.123456789+01:00",
            "stored_name": "20240115_100000_0badcafe_dir",
            "is_compressed": False,
            "original_size": 4096,
            "is_directory": True,
            "extra_field": "ignored",
        }

        entry = RecycleEntry.from_json(json.dumps(record))

        assert entry.is_directory
        assert entry.compressed_size is None
        assert entry.deleted_at.utcoffset() == timedelta(hours=1)

    def test_missing_field(self) -> None:
        """A record without a required field raises KeyError."""
        with pytest.raises(KeyError):
            RecycleEntry.from_dict({"original_path": "/x", "stored_name": "s"})

    def test_non_object_document(self) -> None:
        """A JSON array is not a record."""
        with pytest.raises(TypeError):
            RecycleEntry.from_json("[]")

    def test_wrong_type(self) -> None:
        """A non-string path raises TypeError."""
        with pytest.raises(TypeError):
            RecycleEntry.from_dict(
                {"original_path": 5, "stored_name": "s", "deleted_at": "2024-01-15T10:00:00Z"}
            )

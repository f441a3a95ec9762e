"""Recycle bin store.

This module provides the RecycleStore class, which owns the on-disk
recycle bin layout::

    <root>/                              payloads (files, optionally .gz, and directories)
    <root>/.metadata/<stored_name>.json  one record per entry

A payload and its metadata record are committed as a pair: the payload is
moved in first, then the record is written to a temporary file and renamed
into place. An entry exists once its record exists. Records or payloads
left behind by a crashed run are tolerated by every read path.
"""

from __future__ import annotations

import json
import logging
import os
import stat
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from tempfile import NamedTemporaryFile

from better_rm.core.config import RecycleBinConfig
from better_rm.core.paths import METADATA_DIRNAME, ensure_dir, is_within, locate
from better_rm.core.prompt import Confirm, decline
from better_rm.recycle.errors import (
    AmbiguousSelectorError,
    EntryNotFoundError,
    InvalidRestorePathError,
    OperationCancelledError,
    SourceRemovalError,
    StorageError,
)
from better_rm.recycle.models import RecycleEntry
from better_rm.recycle.naming import make_stored_name, path_hash, uncompressed_name
from better_rm.recycle.transfer import (
    RelocationError,
    Rename,
    compress_file,
    decompress_file,
    payload_size,
    relocate,
    remove_path,
)

logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


def validate_restore_path(original_path: str) -> Path:
    """Normalize a recorded original path and check that it is safe.

    Args:
        original_path: Path read from a metadata record.

    Returns:
        The normalized absolute path.

    Raises:
        InvalidRestorePathError: If the path is relative or still contains
            a '..' segment after normalization.
    """
    normalized = os.path.normpath(original_path)
    if not os.path.isabs(normalized) or ".." in Path(normalized).parts:
        msg = f"Invalid restore path detected: {original_path}"
        raise InvalidRestorePathError(msg)
    return Path(normalized)


@dataclass(frozen=True, slots=True)
class StoredRecord:
    """A parsed metadata record and the file it was read from."""

    metadata_path: Path
    entry: RecycleEntry


class EntryListing:
    """Restartable view over the entries of a store.

    Every iteration re-reads the metadata directory.
    """

    def __init__(self, store: RecycleStore) -> None:
        self._store = store

    def __iter__(self) -> Iterator[RecycleEntry]:
        return (record.entry for record in self._store.records())


class RecycleStore:
    """Holds removed objects so they can be restored or expire.

    Attributes:
        _config: Recycle bin configuration (location, retention, size limit).
        _confirm: Yes/no oracle used before overwriting or purging.
        _rename: Rename function used for relocations.
        _clock: Returns the current aware local time.
    """

    def __init__(
        self,
        config: RecycleBinConfig,
        confirm: Confirm = decline,
        rename: Rename = os.rename,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        """Initialize the store.

        Args:
            config: Recycle bin configuration.
            confirm: Oracle asked before an overwriting restore and a purge.
            rename: Rename function; tests inject failures here.
            clock: Source of the current time.
        """
        self._config = config
        self._confirm = confirm
        self._rename = rename
        self._clock = clock

    @property
    def config(self) -> RecycleBinConfig:
        """Configuration this store was built with."""
        return self._config

    @property
    def root(self) -> Path:
        """Recycle bin root directory."""
        return self._config.recycle_bin_path

    @property
    def metadata_dir(self) -> Path:
        """Directory holding the metadata records."""
        return self.root / METADATA_DIRNAME

    def payload_path(self, entry: RecycleEntry) -> Path:
        """Location of an entry's payload."""
        return self.root / entry.stored_name

    def metadata_path(self, entry: RecycleEntry) -> Path:
        """Location of an entry's metadata record."""
        return self.metadata_dir / entry.metadata_name

    def ensure_layout(self) -> None:
        """Create the root and metadata directories if missing.

        Raises:
            StorageError: If a directory cannot be created.
        """
        try:
            ensure_dir(self.root, "recycle bin")
            ensure_dir(self.metadata_dir, "recycle bin metadata")
        except RuntimeError as e:
            raise StorageError(str(e)) from e

    def guards(self, path: str | Path) -> bool:
        """Check whether path is the recycle bin, inside it, or contains it."""
        location = locate(path)
        root = locate(self.root)
        return is_within(location, root) or is_within(root, location)

    # ------------------------------------------------------------------
    # Intern
    # ------------------------------------------------------------------

    def intern(self, path: str | Path) -> RecycleEntry:
        """Move a filesystem object into the recycle bin.

        Symlinks are stored as links. Regular files are gzip-compressed
        after they have been moved; if compression fails the payload is
        kept uncompressed.

        Args:
            path: Existing file, directory or other object.

        Returns:
            The committed entry.

        Raises:
            StorageError: If the object could not be moved or recorded.
                Nothing is left in the recycle bin in that case.
            SourceRemovalError: If a cross-filesystem copy succeeded but the
                original could not be removed. The entry is committed.
        """
        abs_path = os.path.abspath(path)
        try:
            st = os.lstat(abs_path)
        except OSError as e:
            raise StorageError(f"cannot remove '{path}': {e.strerror or e}") from e

        if self.guards(abs_path):
            raise StorageError(
                f"refusing to move '{path}' to the recycle bin: it is or contains the recycle bin"
            )

        self.ensure_layout()
        self.enforce_capacity()

        is_directory = stat.S_ISDIR(st.st_mode)
        compress = stat.S_ISREG(st.st_mode)
        original_size = payload_size(Path(abs_path)) if is_directory else st.st_size

        deleted_at = self._clock()
        stored_name = make_stored_name(
            abs_path,
            os.path.basename(abs_path) or "root",
            deleted_at,
            compress,
            is_taken=self._name_taken,
        )
        destination = self.root / stored_name

        removal_error: RelocationError | None = None
        try:
            relocate(Path(abs_path), destination, rename=self._rename)
        except RelocationError as e:
            if not e.copy_retained:
                raise StorageError(f"cannot move '{path}' to recycle bin: {e}") from e
            removal_error = e

        compressed_size: int | None = None
        if compress:
            stored_name, compressed_size = self._compress_payload(stored_name)

        entry = RecycleEntry(
            original_path=abs_path,
            deleted_at=deleted_at,
            stored_name=stored_name,
            is_compressed=compressed_size is not None,
            original_size=original_size,
            is_directory=is_directory,
            compressed_size=compressed_size,
        )

        try:
            self._commit(entry)
        except StorageError:
            if removal_error is None:
                self._roll_back(entry)
            else:
                logger.error("Keeping unrecorded copy of %s at %s", abs_path, destination)
            raise

        if removal_error is not None:
            raise SourceRemovalError(str(removal_error), entry)

        logger.debug("Interned %s as %s", abs_path, entry.stored_name)
        return entry

    def _name_taken(self, name: str) -> bool:
        return os.path.lexists(self.root / name) or os.path.lexists(
            self.metadata_dir / f"{name}.json"
        )

    def _compress_payload(self, stored_name: str) -> tuple[str, int | None]:
        """Replace a relocated payload with its gzip stream.

        Returns:
            Final stored name and compressed size; the size is None when
            compression failed and the payload was kept as-is.
        """
        payload = self.root / stored_name
        temp = payload.with_name(payload.name + ".tmp")
        try:
            size = compress_file(payload, temp)
            os.replace(temp, payload)
        except OSError as e:
            logger.warning("Compression of %s failed, storing uncompressed: %s", payload, e)
            try:
                remove_path(temp, missing_ok=True)
            except OSError as cleanup_error:
                logger.warning("Could not remove %s: %s", temp, cleanup_error)

            plain = uncompressed_name(stored_name)
            if plain == stored_name or self._name_taken(plain):
                return stored_name, None
            try:
                os.rename(payload, self.root / plain)
            except OSError as rename_error:
                logger.warning("Keeping uncompressed payload as %s: %s", payload, rename_error)
                return stored_name, None
            return plain, None
        return stored_name, size

    def _commit(self, entry: RecycleEntry) -> None:
        """Durably write an entry's metadata record.

        Raises:
            StorageError: If serialization or writing fails.
        """
        target = self.metadata_path(entry)
        tmp_path: Path | None = None
        try:
            data = entry.to_json()
            with NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self.metadata_dir,
                prefix=f".{entry.stored_name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_path = Path(f.name)
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, target)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise StorageError(f"cannot record '{entry.original_path}': {e}") from e

    def _roll_back(self, entry: RecycleEntry) -> None:
        """Take an unrecorded payload out of the recycle bin again.

        The payload is put back at its original location. If that fails it
        is left in place and reported, never deleted.
        """
        payload = self.payload_path(entry)
        original = Path(entry.original_path)
        try:
            if entry.is_compressed:
                decompress_file(payload, original)
                remove_path(payload)
            else:
                relocate(payload, original, rename=self._rename)
        except (OSError, RelocationError) as e:
            logger.error(
                "Could not put %s back after a failed commit, payload kept at %s: %s",
                entry.original_path,
                payload,
                e,
            )

    # ------------------------------------------------------------------
    # Listing and lookup
    # ------------------------------------------------------------------

    def records(self) -> Iterator[StoredRecord]:
        """Read metadata records lazily, in stored-name order.

        Unreadable or malformed records are skipped.

        Yields:
            StoredRecord for every valid record.
        """
        try:
            names = sorted(
                item.name
                for item in os.scandir(self.metadata_dir)
                if item.name.endswith(".json") and not item.name.startswith(".")
            )
        except OSError:
            return

        for name in names:
            metadata_path = self.metadata_dir / name
            try:
                entry = RecycleEntry.from_json(metadata_path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError, KeyError, ValueError, TypeError) as e:
                logger.debug("Skipping unreadable metadata %s: %s", metadata_path, e)
                continue
            yield StoredRecord(metadata_path=metadata_path, entry=entry)

    def list(self) -> Iterable[RecycleEntry]:
        """Return a restartable, lazily read view over all entries."""
        return EntryListing(self)

    def find(self, selector: str) -> StoredRecord:
        """Find the entry a restore selector refers to.

        The selector is matched against the recorded original paths first,
        then against their final components. When several entries match
        the same original path, the most recent one wins.

        Args:
            selector: Original path or bare file name.

        Returns:
            The matching record.

        Raises:
            EntryNotFoundError: If nothing matches.
            AmbiguousSelectorError: If a bare name matches several paths.
        """
        records = list(self.records())

        exact = [r for r in records if r.entry.original_path == selector]
        if not exact and os.sep in selector:
            absolute = os.path.abspath(selector)
            exact = [r for r in records if r.entry.original_path == absolute]
        if exact:
            return max(exact, key=lambda r: r.entry.deleted_at)

        by_name = [r for r in records if r.entry.name == selector]
        if not by_name:
            raise EntryNotFoundError(f"'{selector}' not found in recycle bin")

        candidates = sorted({r.entry.original_path for r in by_name})
        if len(candidates) > 1:
            raise AmbiguousSelectorError(selector, candidates)
        return max(by_name, key=lambda r: r.entry.deleted_at)

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def restore(self, selector: str) -> Path:
        """Put an entry back at its original location.

        The metadata record is removed only after the payload has been
        restored, so a failed restore can be retried.

        Args:
            selector: Original path or bare file name of the entry.

        Returns:
            The restored path.

        Raises:
            EntryNotFoundError: If no entry matches.
            AmbiguousSelectorError: If the bare name is ambiguous.
            InvalidRestorePathError: If the recorded path is unsafe.
            OperationCancelledError: If overwriting an existing path is declined.
            StorageError: If the payload is missing or cannot be restored.
        """
        record = self.find(selector)
        entry = record.entry
        destination = validate_restore_path(entry.original_path)
        payload = self.payload_path(entry)

        if not os.path.lexists(payload):
            raise StorageError(f"payload for '{entry.original_path}' is missing from recycle bin")

        if os.path.lexists(destination):
            if not self._confirm(f"'{destination}' already exists. Overwrite?"):
                raise OperationCancelledError("Restore cancelled")

        try:
            destination.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"cannot create parent directory of '{destination}': {e}") from e

        if entry.is_compressed:
            self._restore_compressed(payload, destination)
        else:
            self._restore_moved(payload, destination)

        try:
            record.metadata_path.unlink()
        except OSError as e:
            logger.warning("Restored %s but could not remove its record: %s", destination, e)

        logger.debug("Restored %s from %s", destination, entry.stored_name)
        return destination

    def _restore_compressed(self, payload: Path, destination: Path) -> None:
        temp = destination.with_name(f".{path_hash(str(destination))}.restore.tmp")
        try:
            decompress_file(payload, temp)
            if os.path.isdir(destination) and not os.path.islink(destination):
                remove_path(destination)
            os.replace(temp, destination)
        except OSError as e:
            try:
                remove_path(temp, missing_ok=True)
            except OSError as cleanup_error:
                logger.warning("Could not remove %s: %s", temp, cleanup_error)
            raise StorageError(f"cannot decompress and restore '{destination}': {e}") from e

        try:
            remove_path(payload)
        except OSError as e:
            logger.warning(
                "Restored %s but could not remove payload %s: %s", destination, payload, e
            )

    def _restore_moved(self, payload: Path, destination: Path) -> None:
        try:
            remove_path(destination, missing_ok=True)
        except OSError as e:
            raise StorageError(f"cannot replace '{destination}': {e}") from e

        try:
            relocate(payload, destination, rename=self._rename)
        except RelocationError as e:
            if not e.copy_retained:
                raise StorageError(f"cannot restore '{destination}': {e}") from e
            logger.warning("Restored %s but the payload copy remains: %s", destination, e)

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def _remove_record(self, record: StoredRecord) -> bool:
        """Remove an entry's payload and then its record.

        Returns:
            True if both are gone, False if an error was logged.
        """
        try:
            remove_path(self.payload_path(record.entry), missing_ok=True)
            record.metadata_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to remove %s from recycle bin: %s", record.entry.stored_name, e)
            return False
        return True

    def evict(self, older_than: datetime) -> int:
        """Remove every entry deleted before a cutoff.

        Errors on individual entries are logged and do not stop the pass.

        Args:
            older_than: Cutoff; naive values are taken as local time.

        Returns:
            Number of entries removed.
        """
        cutoff = older_than.astimezone() if older_than.tzinfo is None else older_than
        count = 0
        for record in list(self.records()):
            if record.entry.deleted_at < cutoff and self._remove_record(record):
                count += 1
        if count:
            logger.info("Evicted %d expired item(s) from recycle bin", count)
        return count

    def evict_expired(self, now: datetime | None = None) -> int:
        """Remove entries older than the configured retention period.

        Returns:
            Number of entries removed.
        """
        current = now or self._clock()
        return self.evict(current - timedelta(days=self._config.retention_days))

    def total_size(self) -> int:
        """Aggregate size of all payloads, excluding metadata."""
        try:
            children = [item for item in os.scandir(self.root) if item.name != METADATA_DIRNAME]
        except OSError:
            return 0
        return sum(payload_size(Path(item.path)) for item in children)

    def enforce_capacity(self) -> int:
        """Evict oldest entries while the recycle bin exceeds its size limit.

        This is best-effort: if the bin is still too large afterwards a
        warning is logged and the caller proceeds anyway.

        Returns:
            Number of entries removed.
        """
        limit = self._config.max_size_bytes
        size = self.total_size()
        if size <= limit:
            return 0

        logger.warning(
            "Recycle bin is full (%d bytes, limit %d MB), cleaning up old files",
            size,
            self._config.max_size_mb,
        )
        removed = 0
        for record in sorted(self.records(), key=lambda r: r.entry.deleted_at):
            if size <= limit:
                break
            freed = payload_size(self.payload_path(record.entry))
            if self._remove_record(record):
                removed += 1
                size -= freed

        if size > limit:
            logger.warning("Recycle bin still exceeds its size limit (%d bytes)", size)
        return removed

    def purge(self) -> int:
        """Permanently delete every payload and record, after confirmation.

        Returns:
            Number of payloads removed.

        Raises:
            OperationCancelledError: If the confirmation is declined.
        """
        if not self._confirm(
            "Are you sure you want to permanently delete all items from the recycle bin?"
        ):
            raise OperationCancelledError("Operation cancelled")

        try:
            children = [item for item in os.scandir(self.root) if item.name != METADATA_DIRNAME]
        except FileNotFoundError:
            children = []
        except OSError as e:
            raise StorageError(f"cannot read recycle bin: {e}") from e

        count = 0
        for item in children:
            try:
                remove_path(Path(item.path))
            except OSError as e:
                logger.warning("Error removing %s: %s", item.path, e)
                continue
            count += 1

        try:
            remove_path(self.metadata_dir, missing_ok=True)
        except OSError as e:
            logger.warning("Error clearing metadata: %s", e)
        self.ensure_layout()
        return count

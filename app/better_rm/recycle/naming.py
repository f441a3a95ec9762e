"""Stored-name generation for recycle bin payloads.

A stored name is ``<YYYYMMDD_HHMMSS>_<hash>_<basename>`` with a ``.gz``
suffix for regular files that will be compressed. The hash is the first
eight hex digits of the MD5 of the absolute original path; it separates
equally named files deleted in the same second, it is not a security
measure. Long base names are shortened so that the stored name and the
store's temporary and metadata files built from it fit in NAME_MAX.
"""

import hashlib
import os
from collections.abc import Callable
from datetime import datetime

HASH_LENGTH = 8
STAMP_FORMAT = "%Y%m%d_%H%M%S"
GZIP_SUFFIX = ".gz"

# Longest file name most filesystems accept, in bytes
NAME_MAX = 255
# Bytes the store adds around a stored name: ".<name>.XXXXXXXX.tmp" for
# metadata temp files is the longest
NAME_AFFIX_RESERVE = 14
MAX_STORED_NAME = NAME_MAX - NAME_AFFIX_RESERVE


def path_hash(abs_path: str) -> str:
    """Return the short hex hash of an absolute path."""
    return hashlib.md5(abs_path.encode("utf-8"), usedforsecurity=False).hexdigest()[:HASH_LENGTH]


def stamp(when: datetime) -> str:
    """Format a deletion time as a second-resolution name prefix."""
    return when.strftime(STAMP_FORMAT)


def make_stored_name(
    abs_path: str,
    base_name: str,
    when: datetime,
    compressed: bool,
    is_taken: Callable[[str], bool] | None = None,
) -> str:
    """Build a unique stored name for a payload.

    Args:
        abs_path: Absolute original path of the entry.
        base_name: Final path component of the entry.
        when: Deletion time.
        compressed: Whether the payload will be gzip-compressed.
        is_taken: Predicate telling whether a candidate name is already in
            use. When it is, a counter is appended to the hash segment.

    Returns:
        Stored name that ``is_taken`` does not report as used.
    """
    prefix = f"{stamp(when)}_{path_hash(abs_path)}"
    suffix = GZIP_SUFFIX if compressed else ""

    name = _join(prefix, base_name, suffix)
    counter = 1
    while is_taken is not None and is_taken(name):
        name = _join(f"{prefix}-{counter}", base_name, suffix)
        counter += 1
    return name


def _join(head: str, base_name: str, suffix: str) -> str:
    budget = MAX_STORED_NAME - len(os.fsencode(f"{head}_{suffix}"))
    return f"{head}_{truncate_bytes(base_name, budget)}{suffix}"


def truncate_bytes(name: str, limit: int) -> str:
    """Shorten a file name to at most limit bytes in its on-disk encoding.

    A multi-byte character cut at the limit is dropped entirely.

    Args:
        name: File name as returned by the os module.
        limit: Maximum encoded length in bytes.

    Returns:
        The name itself if it fits, otherwise its longest fitting prefix.
    """
    raw = os.fsencode(name)
    if len(raw) <= limit:
        return name
    raw = raw[: max(limit, 0)]
    for end in range(len(raw), max(len(raw) - 4, -1), -1):
        try:
            return raw[:end].decode("utf-8")
        except UnicodeDecodeError:
            continue
    return os.fsdecode(raw)


def uncompressed_name(stored_name: str) -> str:
    """Strip the gzip suffix from a stored name, if present."""
    if stored_name.endswith(GZIP_SUFFIX):
        return stored_name[: -len(GZIP_SUFFIX)]
    return stored_name

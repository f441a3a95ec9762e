"""Payload transfer primitives for the recycle bin.

Moving an object into (or out of) the recycle bin is tried as an atomic
rename first. When the rename fails because source and destination live on
different filesystems, the object is copied and the source removed only
after the copy has been verified.
"""

import errno
import gzip
import logging
import os
import shutil
import stat
from collections.abc import Callable
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

# Rename errors that mean "try copy + remove instead"
CROSS_DEVICE_ERRNOS = frozenset({errno.EXDEV})

Rename = Callable[[Path, Path], None]

# Level 1 is gzip's fastest setting
COMPRESS_LEVEL = 1


class RelocationStrategy(str, Enum):
    """How a payload was relocated.

    Attributes:
        RENAME: Atomic rename on the same filesystem.
        COPY: Copy to the destination followed by removal of the source.
    """

    RENAME = "rename"
    COPY = "copy"


class RelocationError(Exception):
    """Raised when a payload could not be relocated.

    Attributes:
        copy_retained: True if the destination holds a complete copy but the
            source could not be removed afterwards.
    """

    def __init__(self, message: str, copy_retained: bool = False) -> None:
        super().__init__(message)
        self.copy_retained = copy_retained


def remove_path(path: Path, missing_ok: bool = False) -> None:
    """Remove a file, symlink or whole directory tree.

    Symlinks to directories are unlinked, never followed.

    Args:
        path: Path to remove.
        missing_ok: Do not raise if the path does not exist.

    Raises:
        OSError: If the removal fails.
    """
    try:
        st = os.lstat(path)
    except FileNotFoundError:
        if missing_ok:
            return
        raise

    if stat.S_ISDIR(st.st_mode):
        shutil.rmtree(path)
    else:
        os.unlink(path)


def payload_size(path: Path) -> int:
    """Sum the sizes of all non-directory entries below path.

    Unreadable entries are ignored.

    Args:
        path: File or directory.

    Returns:
        Total size in bytes; the lstat size for non-directories.
    """
    try:
        st = os.lstat(path)
    except OSError:
        return 0
    if not stat.S_ISDIR(st.st_mode):
        return st.st_size

    total = 0
    for dirpath, dirnames, filenames in os.walk(path, onerror=lambda _e: None):
        for name in filenames + [d for d in dirnames if os.path.islink(os.path.join(dirpath, d))]:
            try:
                total += os.lstat(os.path.join(dirpath, name)).st_size
            except OSError:
                continue
    return total


def copy_entry(src: Path, dst: Path) -> None:
    """Copy a filesystem object, preserving symlinks and permission bits.

    Directories are copied recursively. Named pipes are recreated; other
    special files cannot be copied.

    Raises:
        OSError: If any part of the copy fails.
    """
    st = os.lstat(src)
    mode = st.st_mode

    if stat.S_ISDIR(mode):
        shutil.copytree(src, dst, symlinks=True)
    elif stat.S_ISLNK(mode):
        os.symlink(os.readlink(src), dst)
    elif stat.S_ISREG(mode):
        shutil.copy2(src, dst, follow_symlinks=False)
    elif stat.S_ISFIFO(mode):
        os.mkfifo(dst, stat.S_IMODE(mode))
    else:
        raise OSError(errno.ENOTSUP, f"Cannot copy special file '{src}'")


def _verify_copy(src: Path, dst: Path) -> None:
    """Check that dst holds as many bytes as src.

    Raises:
        OSError: If the sizes differ.
    """
    expected = payload_size(src)
    actual = payload_size(dst)
    if expected != actual:
        raise OSError(
            errno.EIO,
            f"Copy of '{src}' is incomplete ({actual} of {expected} bytes)",
        )


def relocate(src: Path, dst: Path, rename: Rename = os.rename) -> RelocationStrategy:
    """Move src to dst, falling back to copy + remove across filesystems.

    The source is never removed before the copy is complete and verified.
    A failed copy is cleaned up; a failed source removal keeps the copy.

    Args:
        src: Existing object to move.
        dst: Destination path; must not exist.
        rename: Rename function, injectable to exercise the fallback.

    Returns:
        The strategy that succeeded.

    Raises:
        RelocationError: If the object could not be moved.
    """
    try:
        rename(src, dst)
        return RelocationStrategy.RENAME
    except OSError as e:
        if e.errno not in CROSS_DEVICE_ERRNOS:
            raise RelocationError(f"Cannot move '{src}': {e.strerror or e}") from e
        logger.debug("Rename of %s crosses filesystems, copying instead", src)

    try:
        copy_entry(src, dst)
        _verify_copy(src, dst)
    except OSError as e:
        try:
            remove_path(dst, missing_ok=True)
        except OSError as cleanup_error:
            logger.warning("Could not remove partial copy %s: %s", dst, cleanup_error)
        raise RelocationError(f"Cannot copy '{src}': {e}") from e

    try:
        remove_path(src)
    except OSError as e:
        raise RelocationError(
            f"Copied '{src}' but could not remove it: {e}",
            copy_retained=True,
        ) from e

    return RelocationStrategy.COPY


def compress_file(src: Path, dst: Path) -> int:
    """Write a gzip-compressed copy of src to dst.

    dst receives the permission bits of src and is flushed to disk
    before returning.

    Returns:
        Size of the compressed file in bytes.

    Raises:
        OSError: If reading, compressing or writing fails.
    """
    with open(src, "rb") as fin, open(dst, "wb") as raw:
        with gzip.GzipFile(filename="", mode="wb", compresslevel=COMPRESS_LEVEL, fileobj=raw) as gz:
            shutil.copyfileobj(fin, gz)
        raw.flush()
        os.fsync(raw.fileno())
    os.chmod(dst, stat.S_IMODE(os.stat(src).st_mode))
    return os.stat(dst).st_size


def decompress_file(src: Path, dst: Path) -> None:
    """Expand the gzip stream src into dst.

    dst receives the permission bits of src.

    Raises:
        OSError: If src is not a valid gzip stream or writing fails.
    """
    with gzip.open(src, "rb") as gz, open(dst, "wb") as fout:
        shutil.copyfileobj(gz, fout)
        fout.flush()
        os.fsync(fout.fileno())
    os.chmod(dst, stat.S_IMODE(os.stat(src).st_mode))

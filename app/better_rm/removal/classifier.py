"""Filesystem entry classification.

Read-only probes used by the removal engine: what kind of object a path
is and whether the invoking user may write to it.
"""

import os
import stat
from dataclasses import dataclass
from enum import Enum


class PathKind(str, Enum):
    """Kind of filesystem entry, as seen by lstat.

    Attributes:
        FILE: Regular file.
        DIRECTORY: Directory (never a symlink to one).
        SYMLINK: Symbolic link, whether or not its target exists.
        DEVICE: Character or block device.
        PIPE: Named pipe (FIFO).
        SOCKET: Unix domain socket.
        OTHER: Anything else.
    """

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    DEVICE = "device"
    PIPE = "pipe"
    SOCKET = "socket"
    OTHER = "other"


_KIND_LABELS: dict[PathKind, str] = {
    PathKind.DIRECTORY: "directory",
    PathKind.SYMLINK: "symbolic link",
    PathKind.DEVICE: "device file",
    PathKind.PIPE: "named pipe",
    PathKind.SOCKET: "socket",
    PathKind.OTHER: "file",
}


@dataclass(frozen=True, slots=True)
class PathInfo:
    """Snapshot of a filesystem entry.

    Attributes:
        path: Path as it was requested.
        kind: Entry kind.
        mode: Raw st_mode.
        uid: Owner user id.
        gid: Owner group id.
        device: Device identifier of the containing filesystem.
        size: Size in bytes reported by lstat.
        writable: Whether the invoking user has write permission.
    """

    path: str
    kind: PathKind
    mode: int
    uid: int
    gid: int
    device: int
    size: int
    writable: bool

    @property
    def is_dir(self) -> bool:
        """True for real directories."""
        return self.kind == PathKind.DIRECTORY

    @property
    def type_label(self) -> str:
        """Noun used in prompts, e.g. "write-protected regular file"."""
        if self.kind == PathKind.FILE:
            return "regular file" if self.writable else "write-protected regular file"
        return _KIND_LABELS[self.kind]


def kind_of(mode: int) -> PathKind:
    """Map an st_mode to a PathKind."""
    if stat.S_ISLNK(mode):
        return PathKind.SYMLINK
    if stat.S_ISDIR(mode):
        return PathKind.DIRECTORY
    if stat.S_ISREG(mode):
        return PathKind.FILE
    if stat.S_ISCHR(mode) or stat.S_ISBLK(mode):
        return PathKind.DEVICE
    if stat.S_ISFIFO(mode):
        return PathKind.PIPE
    if stat.S_ISSOCK(mode):
        return PathKind.SOCKET
    return PathKind.OTHER


def is_writable(st: os.stat_result, uid: int | None = None, gid: int | None = None) -> bool:
    """Check the write bit that applies to the invoking identity.

    The owner bit applies if the effective uid owns the entry, else the
    group bit if the effective gid matches, else the "other" bit.

    Args:
        st: Result of lstat on the entry.
        uid: User id to check as; defaults to the effective uid.
        gid: Group id to check as; defaults to the effective gid.

    Returns:
        True if the applicable write bit is set.
    """
    uid = os.geteuid() if uid is None else uid
    gid = os.getegid() if gid is None else gid

    if st.st_uid == uid:
        return bool(st.st_mode & stat.S_IWUSR)
    if st.st_gid == gid:
        return bool(st.st_mode & stat.S_IWGRP)
    return bool(st.st_mode & stat.S_IWOTH)


def classify(path: str) -> PathInfo:
    """Inspect a filesystem entry without following symlinks.

    Args:
        path: Path to inspect.

    Returns:
        PathInfo describing the entry.

    Raises:
        FileNotFoundError: If the entry does not exist.
        OSError: If the entry cannot be inspected.
    """
    st = os.lstat(path)
    return PathInfo(
        path=path,
        kind=kind_of(st.st_mode),
        mode=st.st_mode,
        uid=st.st_uid,
        gid=st.st_gid,
        device=st.st_dev,
        size=st.st_size,
        writable=is_writable(st),
    )


def is_dir_empty(path: str) -> bool:
    """Check whether a directory has no entries.

    Unreadable directories are reported as not empty.
    """
    try:
        with os.scandir(path) as it:
            return next(it, None) is None
    except OSError:
        return False

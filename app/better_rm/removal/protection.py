"""Batch-level protection checks run before anything is removed.

A single violation rejects the whole batch: no target is touched if any
target is the filesystem root, ends in '.' or '..', or (with the stricter
policy) lives on a different device than its parent directory.
"""

import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from better_rm.core.paths import is_within, locate

FILESYSTEM_ROOT = Path("/")


class ProtectionError(Exception):
    """Raised when a target violates a protection rule."""


class RootProtectionError(ProtectionError):
    """Raised when a target resolves to the filesystem root."""


@dataclass(frozen=True, slots=True)
class ProtectionPolicy:
    """Which protections apply to a batch.

    Attributes:
        preserve_root: Refuse to operate on '/'.
        preserve_root_all: Also refuse targets on a different device
            than their parent directory.
    """

    preserve_root: bool = True
    preserve_root_all: bool = False


def final_component(path: str) -> str:
    """Return the last component of path, ignoring trailing slashes.

    Unlike Path.name this keeps '.' and '..' as given, so "dir/." yields ".".
    """
    stripped = path.rstrip("/")
    if not stripped:
        return "/" if path else ""
    return stripped.rsplit("/", 1)[-1]


def on_different_device(path: str) -> bool:
    """Check whether path lives on another device than its parent directory.

    Entries that cannot be inspected are reported as not different.
    """
    absolute = os.path.abspath(path)
    try:
        return os.stat(absolute).st_dev != os.stat(os.path.dirname(absolute)).st_dev
    except OSError:
        return False


def validate_targets(
    paths: Iterable[str],
    policy: ProtectionPolicy,
    recycle_root: Path | None = None,
) -> None:
    """Validate a batch of targets before any removal begins.

    Args:
        paths: Targets as given on the command line.
        policy: Protections to enforce.
        recycle_root: Recycle bin root when removals go to the recycle bin;
            targets that are, contain or lie inside it are rejected.

    Raises:
        ProtectionError: On the first violating target.
    """
    guarded = locate(recycle_root) if recycle_root is not None else None

    for path in paths:
        location = locate(path)

        if policy.preserve_root and location == FILESYSTEM_ROOT:
            raise RootProtectionError("it is dangerous to operate recursively on '/'")

        if policy.preserve_root_all and on_different_device(path):
            raise ProtectionError(f"skipping '{path}', since it's on a different device")

        if final_component(path) in (".", ".."):
            raise ProtectionError(f"refusing to remove '.' or '..' directory: skipping '{path}'")

        if guarded is not None and (is_within(location, guarded) or is_within(guarded, location)):
            raise ProtectionError(
                f"refusing to remove '{path}': it is or contains the recycle bin "
                "(use --permanent to delete it)"
            )

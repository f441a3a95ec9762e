"""Post-order traversal of a directory tree.

Yields every entry below a root after all of its descendants, so that a
consumer can remove nodes in the order it receives them. Symlinks are
never followed. The walk is iterative, so tree depth is not limited by the
interpreter's recursion limit.
"""

import os
from collections.abc import Iterator
from dataclasses import dataclass

from better_rm.removal.classifier import PathInfo, classify


@dataclass(frozen=True, slots=True)
class WalkNode:
    """One entry produced by the walk.

    Attributes:
        path: Path of the entry (root joined with relative components).
        info: Classification, None if the entry could not be inspected.
        depth: Distance from the root (the root is 0).
        error: Error raised while inspecting or listing the entry.
        skipped_device: The entry is a directory on another filesystem whose
            contents were not visited.
    """

    path: str
    info: PathInfo | None
    depth: int
    error: OSError | None = None
    skipped_device: bool = False

    @property
    def ok(self) -> bool:
        """True if the entry was fully visited."""
        return self.error is None and not self.skipped_device


@dataclass(slots=True)
class _Frame:
    path: str
    info: PathInfo
    depth: int
    children: Iterator[str] | None = None


def walk_post_order(root: str, one_file_system: bool = False) -> Iterator[WalkNode]:
    """Walk a tree deepest-first, yielding each node after its children.

    Children are visited in name order.

    Args:
        root: Root of the walk; may be a non-directory.
        one_file_system: Do not descend into directories that live on a
            different device than root.

    Yields:
        WalkNode for every entry, the root last.
    """
    try:
        root_info = classify(root)
    except OSError as e:
        yield WalkNode(path=root, info=None, depth=0, error=e)
        return

    device = root_info.device if one_file_system else None
    stack = [_Frame(path=root, info=root_info, depth=0)]

    while stack:
        frame = stack[-1]

        if frame.children is None:
            if not frame.info.is_dir:
                stack.pop()
                yield WalkNode(path=frame.path, info=frame.info, depth=frame.depth)
                continue
            if device is not None and frame.info.device != device:
                stack.pop()
                yield WalkNode(
                    path=frame.path, info=frame.info, depth=frame.depth, skipped_device=True
                )
                continue
            try:
                with os.scandir(frame.path) as it:
                    names = sorted(entry.name for entry in it)
            except OSError as e:
                stack.pop()
                yield WalkNode(path=frame.path, info=frame.info, depth=frame.depth, error=e)
                continue
            frame.children = iter(names)

        name = next(frame.children, None)
        if name is None:
            stack.pop()
            yield WalkNode(path=frame.path, info=frame.info, depth=frame.depth)
            continue

        child = os.path.join(frame.path, name)
        try:
            child_info = classify(child)
        except OSError as e:
            yield WalkNode(path=child, info=None, depth=frame.depth + 1, error=e)
            continue
        stack.append(_Frame(path=child, info=child_info, depth=frame.depth + 1))

"""Removal engine.

Walks each requested target, asks the disposition policy what to do with
every entry and then moves it into the recycle bin or removes it for good.
Targets are handled in the order given; within a tree, descendants are
always handled before their directory.
"""

import logging
import os
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from better_rm.core.prompt import Confirm, TerminalCheck, stdin_is_terminal
from better_rm.recycle.errors import SourceRemovalError, StorageError
from better_rm.recycle.models import RecycleEntry
from better_rm.recycle.store import RecycleStore
from better_rm.removal.classifier import PathInfo, classify, is_dir_empty
from better_rm.removal.policy import Disposition, DispositionPolicy, RemovalOptions
from better_rm.removal.protection import ProtectionPolicy, validate_targets
from better_rm.removal.walk import WalkNode, walk_post_order

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RemovalResult:
    """Outcome for a single filesystem entry.

    Attributes:
        path: Path of the entry.
        disposition: What was done, or attempted, with the entry.
        success: Whether the entry was handled without error. Skipped
            entries count as successful.
        error: Error message if the entry could not be handled.
        is_directory: Whether the entry is a directory.
        entry: Recycle bin entry, for recycled objects.
    """

    path: str
    disposition: Disposition
    success: bool
    error: str | None = None
    is_directory: bool = False
    entry: RecycleEntry | None = None


@dataclass(slots=True)
class RemovalReport:
    """Outcome of a whole invocation.

    Attributes:
        results: Per-entry results in the order they happened.
        aborted: The batch confirmation was declined; nothing was touched.
        evicted: Expired recycle bin entries removed at startup.
    """

    results: list[RemovalResult] = field(default_factory=list)
    aborted: bool = False
    evicted: int = 0

    @property
    def failed(self) -> list[RemovalResult]:
        """Results that ended in an error."""
        return [r for r in self.results if not r.success]

    @property
    def exit_code(self) -> int:
        """Process exit status: 1 if anything failed, else 0."""
        return 1 if self.failed else 0


def _strerror(error: OSError) -> str:
    return error.strerror or str(error)


class RemovalEngine:
    """Removes targets the way rm does, with a recycle bin in between.

    Attributes:
        _options: Removal flags.
        _store: Recycle bin store; also consulted for expiry at startup.
        _confirm: Yes/no oracle for prompts.
        _policy: Prompt and disposition rules.
    """

    def __init__(
        self,
        options: RemovalOptions,
        store: RecycleStore,
        confirm: Confirm,
        is_terminal: TerminalCheck = stdin_is_terminal,
        unlink: Callable[[str], None] = os.unlink,
        rmdir: Callable[[str], None] = os.rmdir,
    ) -> None:
        """Initialize the engine.

        Args:
            options: Removal flags.
            store: Recycle bin store.
            confirm: Yes/no oracle used for all prompts.
            is_terminal: Oracle telling whether stdin is interactive.
            unlink: Function removing non-directories in permanent mode.
            rmdir: Function removing empty directories in permanent mode.
        """
        self._options = options
        self._store = store
        self._confirm = confirm
        self._policy = DispositionPolicy(options, is_terminal)
        self._unlink = unlink
        self._rmdir = rmdir

    @property
    def policy(self) -> DispositionPolicy:
        """Prompt rules used by this engine."""
        return self._policy

    def run(self, paths: Sequence[str]) -> RemovalReport:
        """Remove a batch of targets.

        Expired recycle bin entries are evicted first. The batch is then
        validated as a whole and, if required, confirmed once. Failures
        of individual targets do not stop the remaining ones.

        Args:
            paths: Targets in command-line order.

        Returns:
            RemovalReport with one or more results per target.

        Raises:
            ProtectionError: If any target violates a protection rule.
        """
        report = RemovalReport()
        report.evicted = self._store.evict_expired()

        validate_targets(
            paths,
            ProtectionPolicy(
                preserve_root=self._options.preserve_root,
                preserve_root_all=self._options.preserve_root_all,
            ),
            recycle_root=None if self._options.permanent else self._store.root,
        )

        if self._policy.needs_batch_confirmation(len(paths)):
            if not self._confirm(self._policy.batch_question(len(paths))):
                report.aborted = True
                return report

        for path in paths:
            report.results.extend(self.remove(path))
        return report

    def remove(self, path: str) -> list[RemovalResult]:
        """Remove a single command-line target.

        Args:
            path: Target path.

        Returns:
            Results for the target and, for permanent recursive removal,
            every entry below it. Empty if a missing target is ignored.
        """
        try:
            info = classify(path)
        except FileNotFoundError:
            if self._options.force:
                return []
            return [self._failure(path, "No such file or directory")]
        except OSError as e:
            return [self._failure(path, _strerror(e))]

        if info.is_dir:
            return self._remove_directory(info)
        return [self._dispose(info, self._policy.decide(info, self._confirm))]

    def _remove_directory(self, info: PathInfo) -> list[RemovalResult]:
        if not self._options.recursive and not self._options.dir:
            return [self._failure(info.path, "Is a directory", is_directory=True)]

        if not self._options.recursive:
            if not is_dir_empty(info.path):
                return [self._failure(info.path, "Directory not empty", is_directory=True)]
            return [self._dispose(info, self._policy.decide(info, self._confirm))]

        disposition = self._policy.decide(info, self._confirm, descend=True)
        if disposition != Disposition.PERMANENT:
            # The recycle bin takes the whole tree as one entry
            return [self._dispose(info, disposition)]
        return self._remove_tree(info)

    def _remove_tree(self, info: PathInfo) -> list[RemovalResult]:
        """Permanently remove a directory tree in post-order.

        Every entry below the root is subject to the prompt policy. An
        entry that is skipped or fails keeps all of its ancestors in place;
        skipping is not an error.
        """
        root = info.path.rstrip("/") or info.path
        results: list[RemovalResult] = []
        retained: set[str] = set()

        for node in walk_post_order(root, one_file_system=self._options.one_file_system):
            parent = os.path.dirname(node.path)

            if node.info is None or not node.ok:
                results.append(self._walk_failure(node))
                retained.add(parent)
                continue

            if node.path in retained:
                retained.add(parent)
                continue

            if node.depth == 0:
                disposition = Disposition.PERMANENT
            else:
                disposition = self._policy.decide(node.info, self._confirm)

            result = self._dispose(node.info, disposition)
            results.append(result)
            if disposition == Disposition.SKIP or not result.success:
                retained.add(parent)

        return results

    def _walk_failure(self, node: WalkNode) -> RemovalResult:
        is_directory = node.info is not None and node.info.is_dir
        if node.skipped_device:
            return RemovalResult(
                path=node.path,
                disposition=Disposition.SKIP,
                success=False,
                error=f"skipping '{node.path}', since it's on a different device",
                is_directory=is_directory,
            )
        reason = _strerror(node.error) if node.error is not None else "cannot be inspected"
        return self._failure(node.path, reason, is_directory=is_directory)

    def _dispose(self, info: PathInfo, disposition: Disposition) -> RemovalResult:
        """Carry out a disposition for one entry."""
        if disposition == Disposition.SKIP:
            return RemovalResult(
                path=info.path,
                disposition=Disposition.SKIP,
                success=True,
                is_directory=info.is_dir,
            )
        if disposition == Disposition.RECYCLE:
            return self._recycle(info)
        return self._delete(info)

    def _recycle(self, info: PathInfo) -> RemovalResult:
        try:
            entry = self._store.intern(info.path)
        except SourceRemovalError as e:
            return RemovalResult(
                path=info.path,
                disposition=Disposition.RECYCLE,
                success=False,
                error=f"cannot remove '{info.path}': {e}",
                is_directory=info.is_dir,
                entry=e.entry,
            )
        except StorageError as e:
            return RemovalResult(
                path=info.path,
                disposition=Disposition.RECYCLE,
                success=False,
                error=str(e),
                is_directory=info.is_dir,
            )
        return RemovalResult(
            path=info.path,
            disposition=Disposition.RECYCLE,
            success=True,
            is_directory=info.is_dir,
            entry=entry,
        )

    def _delete(self, info: PathInfo) -> RemovalResult:
        try:
            if info.is_dir:
                self._rmdir(info.path)
            else:
                self._unlink(info.path)
        except OSError as e:
            return self._failure(info.path, _strerror(e), is_directory=info.is_dir)
        logger.debug("Removed %s", info.path)
        return RemovalResult(
            path=info.path,
            disposition=Disposition.PERMANENT,
            success=True,
            is_directory=info.is_dir,
        )

    def _failure(self, path: str, reason: str, is_directory: bool = False) -> RemovalResult:
        return RemovalResult(
            path=path,
            disposition=self._policy.target,
            success=False,
            error=f"cannot remove '{path}': {reason}",
            is_directory=is_directory,
        )

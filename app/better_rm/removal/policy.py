"""Prompting and disposition rules for the removal engine.

Decides, per filesystem entry, whether the operator must confirm its
removal and what happens to it: moved to the recycle bin, permanently
removed, or skipped because the operator said no.
"""

from dataclasses import dataclass
from enum import Enum

from better_rm.core.prompt import Confirm, TerminalCheck, stdin_is_terminal
from better_rm.removal.classifier import PathInfo

# More targets than this trigger the "once" confirmation
ONCE_THRESHOLD = 3


class InteractiveMode(str, Enum):
    """When to prompt.

    Attributes:
        NEVER: Never prompt.
        ONCE: Prompt once before removing more than three targets or
            before a recursive removal.
        ALWAYS: Prompt before every removal.
    """

    NEVER = "never"
    ONCE = "once"
    ALWAYS = "always"


class Disposition(str, Enum):
    """What happens to a single entry.

    Attributes:
        RECYCLE: Moved into the recycle bin.
        PERMANENT: Unlinked or removed immediately.
        SKIP: Left untouched because removal was declined.
    """

    RECYCLE = "recycle"
    PERMANENT = "permanent"
    SKIP = "skip"


@dataclass(frozen=True, slots=True)
class RemovalOptions:
    """Normalized removal flags.

    Attributes:
        force: Ignore nonexistent files and never prompt.
        interactive: Prompting mode, None when no mode was requested.
        recursive: Remove directories and their contents.
        dir: Remove empty directories.
        verbose: Explain what is being done.
        one_file_system: Skip subtrees on other filesystems while recursing.
        preserve_root: Refuse to remove '/'.
        preserve_root_all: Refuse targets on a different device than their parent.
        permanent: Bypass the recycle bin.
    """

    force: bool = False
    interactive: InteractiveMode | None = None
    recursive: bool = False
    dir: bool = False
    verbose: bool = False
    one_file_system: bool = False
    preserve_root: bool = True
    preserve_root_all: bool = False
    permanent: bool = False


class DispositionPolicy:
    """Prompt rules evaluated per entry.

    Attributes:
        _options: Removal flags.
        _is_terminal: Oracle telling whether stdin is interactive.
    """

    def __init__(
        self,
        options: RemovalOptions,
        is_terminal: TerminalCheck = stdin_is_terminal,
    ) -> None:
        self._options = options
        self._is_terminal = is_terminal

    @property
    def options(self) -> RemovalOptions:
        """Removal flags this policy applies."""
        return self._options

    def needs_prompt(self, info: PathInfo) -> bool:
        """Decide whether removing an entry requires confirmation.

        Rules, first match wins:
        1. --force: never.
        2. interactive=always: always.
        3. interactive=never: never.
        4. Otherwise only for write-protected entries on a terminal.

        Args:
            info: Classification of the entry.

        Returns:
            True if the operator must be asked.
        """
        if self._options.force:
            return False
        if self._options.interactive == InteractiveMode.ALWAYS:
            return True
        if self._options.interactive == InteractiveMode.NEVER:
            return False
        return not info.writable and self._is_terminal()

    def needs_batch_confirmation(self, count: int) -> bool:
        """Decide whether the whole batch must be confirmed up front.

        The batch gate is separate from per-entry prompting, so --force
        does not suppress it.

        Args:
            count: Number of targets on the command line.
        """
        if self._options.interactive != InteractiveMode.ONCE:
            return False
        return count > ONCE_THRESHOLD or self._options.recursive

    def batch_question(self, count: int) -> str:
        """Question asked by the batch-level confirmation."""
        if self._options.recursive:
            return "rm: remove all arguments recursively?"
        return f"rm: remove {count} arguments?"

    def node_question(self, info: PathInfo, descend: bool = False) -> str:
        """Question asked before removing (or descending into) an entry."""
        if descend:
            return f"rm: descend into directory '{info.path}'?"
        return f"rm: remove {info.type_label} '{info.path}'?"

    @property
    def target(self) -> Disposition:
        """Disposition of confirmed entries."""
        return Disposition.PERMANENT if self._options.permanent else Disposition.RECYCLE

    def decide(self, info: PathInfo, confirm: Confirm, descend: bool = False) -> Disposition:
        """Decide what happens to an entry, prompting if required.

        A declined prompt skips this entry only.

        Args:
            info: Classification of the entry.
            confirm: Yes/no oracle.
            descend: Ask about descending into a directory instead of removing it.

        Returns:
            SKIP if declined, otherwise PERMANENT or RECYCLE.
        """
        if self.needs_prompt(info) and not confirm(self.node_question(info, descend=descend)):
            return Disposition.SKIP
        return self.target

"""Unit tests for the prompt and disposition policy."""

import stat

import pytest
from better_rm.removal.classifier import PathInfo, PathKind
from better_rm.removal.policy import (
    Disposition,
    DispositionPolicy,
    InteractiveMode,
    RemovalOptions,
)


def _info(writable: bool = True, kind: PathKind = PathKind.FILE, path: str = "f") -> PathInfo:
    return PathInfo(
        path=path,
        kind=kind,
        mode=stat.S_IFREG | (0o644 if writable else 0o444),
        uid=0,
        gid=0,
        device=1,
        size=0,
        writable=writable,
    )


def _policy(terminal: bool = True, **options: object) -> DispositionPolicy:
    return DispositionPolicy(RemovalOptions(**options), is_terminal=lambda: terminal)  # type: ignore[arg-type]


class TestNeedsPrompt:
    """Tests for per-entry prompting rules."""

    def test_writable_file_no_prompt(self) -> None:
        """Writable entries are not prompted for by default."""
        assert not _policy().needs_prompt(_info())

    def test_write_protected_on_terminal(self) -> None:
        """Write-protected entries are prompted for on a terminal."""
        assert _policy().needs_prompt(_info(writable=False))

    def test_write_protected_without_terminal(self) -> None:
        """Without a terminal nothing is asked."""
        assert not _policy(terminal=False).needs_prompt(_info(writable=False))

    def test_always(self) -> None:
        """interactive=always prompts for everything."""
        assert _policy(interactive=InteractiveMode.ALWAYS, terminal=False).needs_prompt(_info())

    def test_never(self) -> None:
        """interactive=never overrides the write-protection prompt."""
        assert not _policy(interactive=InteractiveMode.NEVER).needs_prompt(_info(writable=False))

    def test_force_wins(self) -> None:
        """--force suppresses every prompt."""
        policy = _policy(force=True, interactive=InteractiveMode.ALWAYS)

        assert not policy.needs_prompt(_info(writable=False))


class TestBatchConfirmation:
    """Tests for the "once" batch prompt."""

    @pytest.mark.parametrize(("count", "expected"), [(1, False), (3, False), (4, True)])
    def test_threshold(self, count: int, expected: bool) -> None:
        """More than three targets trigger the prompt."""
        policy = _policy(interactive=InteractiveMode.ONCE)

        assert policy.needs_batch_confirmation(count) is expected

    def test_recursive_always_confirms(self) -> None:
        """A recursive removal confirms even a single target."""
        assert _policy(interactive=InteractiveMode.ONCE, recursive=True).needs_batch_confirmation(1)

    def test_other_modes_never_confirm(self) -> None:
        """Only the once mode asks up front."""
        assert not _policy(interactive=InteractiveMode.ALWAYS).needs_batch_confirmation(10)
        assert not _policy().needs_batch_confirmation(10)

    def test_force_keeps_batch_prompt(self) -> None:
        """--force silences per-entry prompts but not the batch prompt."""
        policy = _policy(force=True, interactive=InteractiveMode.ONCE, recursive=True)

        assert policy.needs_batch_confirmation(1)
        assert not policy.needs_prompt(_info(writable=False))

    def test_questions(self) -> None:
        """Questions mirror rm's wording."""
        assert _policy().batch_question(5) == "rm: remove 5 arguments?"
        assert _policy(recursive=True).batch_question(1) == "rm: remove all arguments recursively?"


class TestDecide:
    """Tests for DispositionPolicy.decide."""

    def test_recycle_by_default(self) -> None:
        """Without --permanent entries go to the recycle bin."""
        assert _policy().decide(_info(), lambda q: False) == Disposition.RECYCLE

    def test_permanent(self) -> None:
        """--permanent removes entries for good."""
        assert _policy(permanent=True).decide(_info(), lambda q: False) == Disposition.PERMANENT

    def test_declined_prompt_skips(self) -> None:
        """A "no" skips the entry."""
        questions: list[str] = []

        def confirm(question: str) -> bool:
            questions.append(question)
            return False

        result = _policy().decide(_info(writable=False, path="ro.txt"), confirm)

        assert result == Disposition.SKIP
        assert questions == ["rm: remove write-protected regular file 'ro.txt'?"]

    def test_descend_question(self) -> None:
        """Directories are asked about descending."""
        questions: list[str] = []

        def confirm(question: str) -> bool:
            questions.append(question)
            return True

        policy = _policy(interactive=InteractiveMode.ALWAYS)
        result = policy.decide(_info(kind=PathKind.DIRECTORY, path="d"), confirm, descend=True)

        assert result == Disposition.RECYCLE
        assert questions == ["rm: descend into directory 'd'?"]

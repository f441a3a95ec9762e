"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import os
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from better_rm.core.config import RecycleBinConfig
from better_rm.recycle.store import RecycleStore


class ScriptedConfirm:
    """Confirm oracle that replays scripted answers and records questions."""

    def __init__(self, *answers: bool, default: bool = False) -> None:
        self.answers = list(answers)
        self.default = default
        self.questions: list[str] = []

    def __call__(self, question: str) -> bool:
        self.questions.append(question)
        if self.answers:
            return self.answers.pop(0)
        return self.default


class FakeClock:
    """Clock returning a settable aware local time."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 15, 10, 0, 0).astimezone()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def bin_root(tmp_path: Path) -> Path:
    """Recycle bin root inside the test's temporary directory."""
    return tmp_path / "recycle-bin"


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    """Directory holding files that tests remove."""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def bin_config(bin_root: Path) -> RecycleBinConfig:
    """Recycle bin configuration with a 7 day retention and 1 GB limit."""
    return RecycleBinConfig(recycle_bin_path=bin_root, retention_days=7, max_size_mb=1024)


@pytest.fixture
def clock() -> FakeClock:
    """Settable clock for deterministic timestamps."""
    return FakeClock()


@pytest.fixture
def confirm() -> ScriptedConfirm:
    """Confirm oracle that answers "no" unless scripted otherwise."""
    return ScriptedConfirm()


@pytest.fixture
def store(bin_config: RecycleBinConfig, confirm: ScriptedConfirm, clock: FakeClock) -> RecycleStore:
    """RecycleStore on a temporary root with a scripted oracle and clock."""
    return RecycleStore(bin_config, confirm=confirm, clock=clock)


@pytest.fixture
def xdg_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point XDG config and data homes into the temporary directory."""
    home = tmp_path / "home"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / ".local" / "share"))
    yield home


def write_file(path: Path, content: str = "hello", mode: int | None = None) -> Path:
    """Create a file with content and optional permission bits."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    if mode is not None:
        os.chmod(path, mode)
    return path


@pytest.fixture
def make_file() -> Callable[..., Path]:
    """Factory creating files: make_file(path, content="hello", mode=None)."""
    return write_file


@pytest.fixture
def make_confirm() -> type[ScriptedConfirm]:
    """Factory for confirm oracles: make_confirm(True, False, default=False)."""
    return ScriptedConfirm

"""Yes/no confirmation and terminal detection oracles.

The removal engine and the recycle store never read standard input
directly; they receive a ``Confirm`` callable so that tests can script
the answers.
"""

import sys
from collections.abc import Callable

import typer

Confirm = Callable[[str], bool]
"""Asks a yes/no question and returns True for yes."""

TerminalCheck = Callable[[], bool]


def typer_confirm(question: str) -> bool:
    """Ask a question on the terminal, defaulting to "no".

    End of input or an interrupt counts as a negative answer.

    Args:
        question: Question text shown to the operator.

    Returns:
        True if the operator answered yes.
    """
    try:
        return typer.confirm(question, default=False)
    except typer.Abort:
        typer.echo()
        return False


def decline(question: str) -> bool:
    """Confirm oracle that answers "no" to everything."""
    return False


def accept(question: str) -> bool:
    """Confirm oracle that answers "yes" to everything."""
    return True


def stdin_is_terminal() -> bool:
    """Check whether standard input is attached to an interactive terminal."""
    try:
        return sys.stdin.isatty()
    except (AttributeError, ValueError):
        return False

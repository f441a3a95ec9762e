"""CLI package for better-rm.

This package contains the Typer applications: the rm-compatible main
command and the recycle bin management commands.
"""

from better_rm.cli.main import app

__all__ = ["app"]

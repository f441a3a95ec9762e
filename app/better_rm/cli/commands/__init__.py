"""CLI commands for better-rm.

This package contains the recycle bin management commands.
"""

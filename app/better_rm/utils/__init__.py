"""Utility modules for better-rm.

This module exports commonly used utility functions.
"""

from better_rm.utils.formatting import (
    console,
    err_console,
    format_size,
    print_error,
    print_failure,
    print_info,
    print_success,
    print_warning,
)

__all__ = [
    "console",
    "err_console",
    "format_size",
    "print_error",
    "print_failure",
    "print_info",
    "print_success",
    "print_warning",
]

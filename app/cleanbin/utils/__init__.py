"""Utility modules for cleanbin.

This module exports commonly used utility functions.
"""

from cleanbin.utils.formatting import (
    console,
    create_candidate_table,
    err_console,
    format_candidate_row,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
)

__all__ = [
    "console",
    "create_candidate_table",
    "err_console",
    "format_candidate_row",
    "format_size",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]

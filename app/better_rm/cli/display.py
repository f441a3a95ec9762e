"""Shared Rich display functions for recycle bin contents and removal output."""

from collections.abc import Iterable
from pathlib import Path

from rich.table import Table

from better_rm.recycle.models import RecycleEntry
from better_rm.removal.engine import RemovalResult
from better_rm.removal.policy import Disposition
from better_rm.utils.formatting import format_size

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _stored_size(path: Path) -> int:
    try:
        return path.lstat().st_size
    except OSError:
        return 0


def entry_columns(entry: RecycleEntry, root: Path) -> tuple[str, str, str, str, str]:
    """Compute the listing columns for one entry.

    Compressed entries show their original size, the size of the gzip
    payload and the percentage saved. Everything else shows the size of
    the stored payload with "No" and "-".

    Args:
        entry: Recycle bin entry.
        root: Recycle bin root holding the payload.

    Returns:
        Deleted At, Size, Compressed, Savings and Original Path.
    """
    current = _stored_size(root / entry.stored_name)

    if entry.is_compressed and entry.original_size > 0:
        size = format_size(entry.original_size)
        compressed = format_size(current)
        if current < entry.original_size:
            savings = f"{(entry.original_size - current) / entry.original_size * 100:.1f}%"
        else:
            savings = "0%"
    else:
        size = format_size(current)
        compressed = "No"
        savings = "-"

    return (
        entry.deleted_at.astimezone().strftime(TIMESTAMP_FORMAT),
        size,
        compressed,
        savings,
        entry.original_path,
    )


def create_entries_table(entries: Iterable[RecycleEntry], root: Path) -> Table:
    """Create a Rich table listing recycle bin entries.

    Args:
        entries: Entries to display, in display order.
        root: Recycle bin root holding the payloads.

    Returns:
        Rich Table configured for the recycle bin listing.
    """
    table = Table(
        title="Recycle Bin",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Deleted At", style="muted", no_wrap=True)
    table.add_column("Size", justify="right")
    table.add_column("Compressed", justify="right")
    table.add_column("Savings", justify="right")
    table.add_column("Original Path", style="recycled")

    for entry in entries:
        table.add_row(*entry_columns(entry, root))

    return table


def describe_result(result: RemovalResult) -> str | None:
    """Return the verbose message for a successful removal, if any.

    Args:
        result: Outcome of one entry.

    Returns:
        "moved to recycle bin 'x'", "removed 'x'" or
        "removed directory 'x'"; None for skipped or failed entries.
    """
    if not result.success:
        return None
    if result.disposition == Disposition.RECYCLE:
        return f"moved to recycle bin '{result.path}'"
    if result.disposition == Disposition.PERMANENT:
        if result.is_directory:
            return f"removed directory '{result.path}'"
        return f"removed '{result.path}'"
    return None


def result_style(result: RemovalResult) -> str:
    """Return the theme style for a result's verbose message."""
    if result.disposition == Disposition.RECYCLE:
        return "recycled"
    return "removed"

"""Recycle bin management commands.

This module provides the `better-rm-bin` commands for listing, restoring,
clearing and expiring recycle bin entries, and for the interactive setup.
The main `better-rm` command's recycle bin flags delegate to the same
helpers.
"""

import json
import logging
from pathlib import Path
from typing import Annotated

import typer

from better_rm.cli.display import create_entries_table
from better_rm.core.config import (
    DEFAULT_RETENTION_DAYS,
    ConfigError,
    RecycleBinConfig,
    config_exists,
    default_config,
    load_config,
    save_config,
    with_retention,
)
from better_rm.core.paths import get_default_recycle_bin_path
from better_rm.core.prompt import Confirm, accept, typer_confirm
from better_rm.recycle.errors import (
    AmbiguousSelectorError,
    OperationCancelledError,
    RecycleBinError,
)
from better_rm.recycle.store import RecycleStore
from better_rm.utils.formatting import (
    console,
    print_error,
    print_info,
    print_success,
    print_warning,
)

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="better-rm-bin",
    help="Manage the better-rm recycle bin.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def load_config_or_exit(retention_days: int | None = None) -> RecycleBinConfig:
    """Load the configuration, exiting with status 1 if it is unusable.

    Args:
        retention_days: Optional retention override for this invocation.

    Returns:
        Loaded configuration.

    Raises:
        typer.Exit: If the configuration cannot be loaded.
    """
    try:
        return with_retention(load_config(), retention_days)
    except ConfigError as e:
        print_error(f"Failed to load config: {e}")
        raise typer.Exit(code=1) from e


def open_store(
    retention_days: int | None = None,
    confirm: Confirm = typer_confirm,
) -> RecycleStore:
    """Build a RecycleStore from the saved configuration.

    Args:
        retention_days: Optional retention override for this invocation.
        confirm: Yes/no oracle for overwrite and purge confirmations.

    Returns:
        RecycleStore for the configured location.

    Raises:
        typer.Exit: If the configuration cannot be loaded.
    """
    return RecycleStore(load_config_or_exit(retention_days), confirm=confirm)


def initialize(config: RecycleBinConfig) -> None:
    """Prepare the recycle bin before any command uses it.

    On first use, when no configuration file exists yet, a setup hint is
    shown and the defaults are saved.

    Raises:
        typer.Exit: If the recycle bin cannot be initialized.
    """
    first_run = not config_exists()
    if first_run:
        print_info("better-rm: First time setup detected.")
        print_info("Run 'better-rm --setup-recycle-bin' to configure the recycle bin.")

    try:
        RecycleStore(config).ensure_layout()
        if first_run:
            save_config(config)
    except (RecycleBinError, ConfigError) as e:
        print_error(f"failed to initialize recycle bin: {e}")
        raise typer.Exit(code=1) from e


def list_entries(store: RecycleStore, json_output: bool = False) -> None:
    """Print every entry in the recycle bin.

    Args:
        store: Recycle bin store.
        json_output: Print the metadata records as a JSON array instead
            of a table.
    """
    entries = list(store.list())

    if json_output:
        typer.echo(json.dumps([entry.to_dict() for entry in entries], indent=2))
        return

    if not entries:
        print_info("Recycle bin is empty")
        return

    console.print(create_entries_table(entries, store.root))


def restore_entry(store: RecycleStore, selector: str) -> Path:
    """Restore one entry to its original location.

    Args:
        store: Recycle bin store.
        selector: Original path or bare name of the entry.

    Returns:
        The restored path.

    Raises:
        typer.Exit: If the entry cannot be restored or the restore was
            cancelled.
    """
    try:
        restored = store.restore(selector)
    except OperationCancelledError:
        print_info("Restore cancelled")
        raise typer.Exit(code=1) from None
    except AmbiguousSelectorError as e:
        print_error(str(e))
        print_info("Use the full original path to choose one.")
        raise typer.Exit(code=1) from e
    except RecycleBinError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Restored '{restored}'")
    return restored


def clear_entries(store: RecycleStore) -> int:
    """Permanently delete everything in the recycle bin.

    A declined confirmation is not an error.

    Returns:
        Number of items removed.

    Raises:
        typer.Exit: If the recycle bin cannot be read.
    """
    try:
        count = store.purge()
    except OperationCancelledError:
        print_info("Operation cancelled")
        return 0
    except RecycleBinError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Cleared {count} items from recycle bin")
    return count


def clean_expired(store: RecycleStore) -> int:
    """Evict entries older than the retention period and report the count."""
    count = store.evict_expired()
    if count:
        print_success(f"Removed {count} expired item(s) from recycle bin")
    else:
        print_info("No expired items in recycle bin")
    return count


def _prompt_location(default: Path) -> Path:
    console.print(f"Default recycle bin location: {default}", markup=False, soft_wrap=True)
    if typer.confirm("Use this location?", default=True):
        return default

    raw = typer.prompt("Enter custom recycle bin path", default="", show_default=False).strip()
    if not raw:
        return default
    return Path(raw).expanduser()


def _prompt_retention(default: int) -> int:
    days = typer.prompt("Enter retention days", default=default, type=int)
    if days < 1:
        print_warning(f"Retention must be at least 1 day, using {default}")
        return default
    return days


def setup_recycle_bin(
    path: Path | None = None,
    retention_days: int | None = None,
) -> RecycleBinConfig:
    """Configure the recycle bin location and retention period.

    Values that are not given are asked for interactively. The recycle
    bin directories are created and the configuration is saved.

    Args:
        path: Recycle bin location; must be absolute.
        retention_days: Days to keep removed items.

    Returns:
        The saved configuration.

    Raises:
        typer.Exit: If the location is invalid or cannot be created.
    """
    console.print("Setting up recycle bin for better-rm...")

    try:
        current = load_config()
    except ConfigError as e:
        print_warning(f"Ignoring unusable existing config: {e}")
        current = default_config()

    location = path if path is not None else _prompt_location(get_default_recycle_bin_path())
    if not location.is_absolute():
        print_error("Path must be absolute")
        raise typer.Exit(code=1)

    days = retention_days
    if days is None:
        days = _prompt_retention(DEFAULT_RETENTION_DAYS)
    if days < 1:
        print_error("Retention days must be at least 1")
        raise typer.Exit(code=1)

    config = current.model_copy(
        update={"recycle_bin_path": Path(location), "retention_days": days}
    )

    try:
        RecycleStore(config).ensure_layout()
        save_config(config)
    except (RecycleBinError, ConfigError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success("Recycle bin setup complete!")
    console.print(f"Location: {config.recycle_bin_path}", markup=False, soft_wrap=True)
    console.print(f"Retention: {config.retention_days} days", soft_wrap=True)
    return config


@app.command("list")
def list_command(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output metadata records as JSON.",
        ),
    ] = False,
) -> None:
    """List the contents of the recycle bin.

    Examples:
        better-rm-bin list
        better-rm-bin list --json
    """
    list_entries(open_store(), json_output=json_output)


@app.command("restore")
def restore_command(
    selector: Annotated[
        str,
        typer.Argument(help="Original path or file name of the item to restore."),
    ],
) -> None:
    """Restore an item to its original location.

    When several items were removed from the same path, the most recent
    one is restored.

    Examples:
        better-rm-bin restore /home/me/notes.txt
        better-rm-bin restore notes.txt
    """
    restore_entry(open_store(), selector)


@app.command("clear")
def clear_command(
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip the confirmation prompt.",
        ),
    ] = False,
) -> None:
    """Permanently delete everything in the recycle bin."""
    clear_entries(open_store(confirm=accept if yes else typer_confirm))


@app.command("clean")
def clean_command(
    days: Annotated[
        int | None,
        typer.Option(
            "--days",
            min=1,
            help="Override the retention period for this run.",
        ),
    ] = None,
) -> None:
    """Remove items older than the retention period."""
    clean_expired(open_store(retention_days=days))


@app.command("setup")
def setup_command(
    path: Annotated[
        Path | None,
        typer.Option(
            "--path",
            help="Recycle bin location (absolute).",
        ),
    ] = None,
    days: Annotated[
        int | None,
        typer.Option(
            "--days",
            help="Days to keep removed items.",
        ),
    ] = None,
) -> None:
    """Configure the recycle bin location and retention period."""
    setup_recycle_bin(path=path, retention_days=days)


if __name__ == "__main__":
    app()

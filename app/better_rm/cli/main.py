"""Main CLI application entry point.

Defines the rm-compatible `better-rm` command and its options.
"""

import logging
import sys
from typing import Annotated

import typer
from rich.logging import RichHandler
from rich.markup import escape

from better_rm import __version__
from better_rm.cli.commands.bin import (
    clear_entries,
    initialize,
    list_entries,
    load_config_or_exit,
    restore_entry,
    setup_recycle_bin,
)
from better_rm.cli.display import describe_result, result_style
from better_rm.core.prompt import typer_confirm
from better_rm.recycle.store import RecycleStore
from better_rm.removal.engine import RemovalEngine, RemovalReport
from better_rm.removal.policy import InteractiveMode, RemovalOptions
from better_rm.removal.protection import ProtectionError, RootProtectionError
from better_rm.utils.formatting import console, err_console, print_failure

app = typer.Typer(
    name="better-rm",
    help="Remove files and directories, keeping them in a recycle bin.",
    add_completion=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"rm (better-rm) {__version__}")
        typer.echo("This is a better version of the GNU rm command.")
        raise typer.Exit()


def configure_logging(debug: bool) -> None:
    """Route log records to stderr through Rich."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=debug, markup=False)],
        force=True,
    )


def resolve_interactive(
    interactive: InteractiveMode | None,
    prompt_always: bool,
    prompt_once: bool,
) -> InteractiveMode | None:
    """Combine -i, -I and --interactive into a single mode.

    An explicit --interactive value takes precedence over -i, which takes
    precedence over -I.
    """
    if interactive is not None:
        return interactive
    if prompt_always:
        return InteractiveMode.ALWAYS
    if prompt_once:
        return InteractiveMode.ONCE
    return None


def expand_interactive(args: list[str]) -> list[str]:
    """Treat a bare --interactive as --interactive=always, as rm does.

    A value can only be attached with '=', so the argument after a bare
    --interactive stays an operand. Nothing after '--' is rewritten.
    """
    expanded: list[str] = []
    for index, arg in enumerate(args):
        if arg == "--":
            return expanded + args[index:]
        expanded.append("--interactive=always" if arg == "--interactive" else arg)
    return expanded


def print_report(report: RemovalReport, verbose: bool) -> None:
    """Print per-entry failures and, if verbose, what was removed."""
    for result in report.results:
        if not result.success:
            print_failure(result.error or f"cannot remove '{result.path}'")
            continue
        if verbose:
            message = describe_result(result)
            if message:
                style = result_style(result)
                console.print(f"[{style}]{escape(message)}[/]", soft_wrap=True)


@app.command()
def main(
    files: Annotated[
        list[str] | None,
        typer.Argument(help="Files and directories to remove.", show_default=False),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Ignore nonexistent files, never prompt."),
    ] = False,
    prompt_always: Annotated[
        bool,
        typer.Option("-i", help="Prompt before every removal."),
    ] = False,
    prompt_once: Annotated[
        bool,
        typer.Option(
            "-I",
            help="Prompt once before removing more than three files, or when removing recursively.",
        ),
    ] = False,
    interactive: Annotated[
        InteractiveMode | None,
        typer.Option(
            "--interactive",
            metavar="WHEN",
            case_sensitive=False,
            help="Prompt according to WHEN: never, once or always; without WHEN, always.",
        ),
    ] = None,
    recursive: Annotated[
        bool,
        typer.Option(
            "--recursive", "-r", "-R", help="Remove directories and their contents recursively."
        ),
    ] = False,
    dir_: Annotated[
        bool,
        typer.Option("--dir", "-d", help="Remove empty directories."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Explain what is being done."),
    ] = False,
    one_file_system: Annotated[
        bool,
        typer.Option(
            "--one-file-system",
            help="When removing recursively, skip directories on a different file system.",
        ),
    ] = False,
    preserve_root: Annotated[
        bool,
        typer.Option(
            "--preserve-root/--no-preserve-root",
            help="Do not remove '/'.",
        ),
    ] = True,
    preserve_root_all: Annotated[
        bool,
        typer.Option(
            "--preserve-root-all",
            help="Also reject arguments on a different device than their parent.",
        ),
    ] = False,
    permanent: Annotated[
        bool,
        typer.Option("--permanent", help="Delete permanently, bypassing the recycle bin."),
    ] = False,
    list_bin: Annotated[
        bool,
        typer.Option("--list-recycle-bin", help="List the contents of the recycle bin."),
    ] = False,
    clear_bin: Annotated[
        bool,
        typer.Option("--clear-recycle-bin", help="Permanently empty the recycle bin."),
    ] = False,
    setup_bin: Annotated[
        bool,
        typer.Option("--setup-recycle-bin", help="Configure the recycle bin."),
    ] = False,
    restore: Annotated[
        str | None,
        typer.Option(
            "--restore",
            metavar="PATH",
            help="Restore an item from the recycle bin to its original location.",
        ),
    ] = None,
    recycle_bin_days: Annotated[
        int | None,
        typer.Option(
            "--recycle-bin-days",
            min=1,
            metavar="N",
            help="Keep removed items for N days (this run only).",
        ),
    ] = None,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Log diagnostic details to stderr."),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
) -> None:
    """Remove (unlink) the FILE(s), moving them to a recycle bin by default.

    By default better-rm does not remove directories. Use --recursive to
    remove each listed directory too, along with all of its contents.
    Removed items are kept in the recycle bin for a number of days and can
    be restored with --restore.

    Examples:
        better-rm notes.txt             # Move to the recycle bin
        better-rm -r build/             # Move a whole directory
        better-rm --permanent -rf tmp/  # Delete for good
        better-rm --restore notes.txt   # Put it back
    """
    configure_logging(debug)

    if setup_bin:
        setup_recycle_bin()
        return

    config = load_config_or_exit(recycle_bin_days)
    initialize(config)

    if clear_bin:
        clear_entries(RecycleStore(config, confirm=typer_confirm))
        return

    if list_bin:
        list_entries(RecycleStore(config))
        return

    if restore is not None:
        restore_entry(RecycleStore(config, confirm=typer_confirm), restore)
        return

    if not files:
        print_failure("missing operand")
        err_console.print(
            "Try 'better-rm --help' for more information.", markup=False, soft_wrap=True
        )
        raise typer.Exit(code=1)

    options = RemovalOptions(
        force=force,
        interactive=resolve_interactive(interactive, prompt_always, prompt_once),
        recursive=recursive,
        dir=dir_,
        verbose=verbose,
        one_file_system=one_file_system,
        preserve_root=preserve_root,
        preserve_root_all=preserve_root_all,
        permanent=permanent,
    )
    engine = RemovalEngine(options, RecycleStore(config), confirm=typer_confirm)

    try:
        report = engine.run(files)
    except RootProtectionError as e:
        print_failure(str(e))
        err_console.print(
            "rm: use --no-preserve-root to override this failsafe", markup=False, soft_wrap=True
        )
        raise typer.Exit(code=1) from e
    except ProtectionError as e:
        print_failure(str(e))
        raise typer.Exit(code=1) from e

    print_report(report, verbose)
    raise typer.Exit(code=report.exit_code)


def run() -> None:
    """Console script entry point."""
    app(args=expand_interactive(sys.argv[1:]), prog_name="better-rm")


if __name__ == "__main__":
    run()

"""CLI handling for clipring.

This module provides the command-line interface for clipring, handling
argument parsing via click, logging configuration, and dispatching to
server, monitor or client mode.

Usage:
    clipring --server [--max-items N] [--no-monitor] [--verbose]
    clipring --monitor [--verbose]
    clipring COMMAND [ARGS]...
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from clipring.config import DEFAULT_MAX_ITEMS, Settings, default_data_dir, default_runtime_dir
from clipring.main_logging import configure_logging
from clipring.main_options import ModeOption


@click.command(context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.option(
    "--server",
    is_flag=True,
    cls=ModeOption,
    exclusive_with=["monitor"],
    help="Run the history server",
)
@click.option(
    "--monitor",
    is_flag=True,
    cls=ModeOption,
    exclusive_with=["server"],
    help="Run the X11 clipboard monitor",
)
@click.option(
    "--max-items",
    type=click.IntRange(min=0),
    default=DEFAULT_MAX_ITEMS,
    show_default=True,
    envvar="CLIPRING_MAX_ITEMS",
    help="History capacity (server mode)",
)
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="CLIPRING_DATA_DIR",
    help="Directory for the saved history",
)
@click.option(
    "--runtime-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="CLIPRING_RUNTIME_DIR",
    help="Directory for the server sockets",
)
@click.option(
    "--ignore-window",
    multiple=True,
    metavar="REGEX",
    help="Do not store content copied from windows matching REGEX (server mode)",
)
@click.option(
    "--no-monitor",
    is_flag=True,
    help="Do not start the clipboard monitor (server mode)",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write log records to this file",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable DEBUG-level logging",
)
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
def main(
    server: bool,
    monitor: bool,
    max_items: int,
    data_dir: Path | None,
    runtime_dir: Path | None,
    ignore_window: tuple[str, ...],
    no_monitor: bool,
    log_file: Path | None,
    verbose: bool,
    command: tuple[str, ...],
) -> None:
    """Clipboard history manager.

    Without --server or --monitor, COMMAND is sent to the running server
    (try "clipring help").
    """
    if (server or monitor) and command:
        mode = "server" if server else "monitor"
        raise click.UsageError(f"Option --{mode} does not take command arguments")

    configure_logging(verbose, log_file)

    if server:
        settings = Settings(
            max_items=max_items,
            data_dir=data_dir or default_data_dir(),
            runtime_dir=runtime_dir or default_runtime_dir(),
            ignore_windows=ignore_window,
            spawn_monitor=not no_monitor,
        )
        _run_server(settings)
    elif monitor:
        _run_monitor(runtime_dir)
    else:
        _run_client(list(command) or ["help"], runtime_dir)


def _run_server(settings: Settings) -> None:
    """Run server mode, exiting with 1 if a server is already running.

    Args:
        settings: Runtime settings.
    """
    from clipring.server import run_server

    if not asyncio.run(run_server(settings)):
        click.echo("Error: clipring server is already running", err=True)
        sys.exit(1)


def _run_monitor(runtime_dir: Path | None) -> None:
    """Run monitor mode.

    Args:
        runtime_dir: Directory holding the server sockets.
    """
    from clipring.monitor import run_monitor

    try:
        asyncio.run(run_monitor(runtime_dir))
    except ConnectionError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _run_client(args: list[str], runtime_dir: Path | None) -> None:
    """Send a command to the server and exit with its exit code.

    Args:
        args: Command name followed by its arguments.
        runtime_dir: Directory holding the server sockets.
    """
    from clipring.client import send_command
    from clipring.protocol import ProtocolError

    try:
        exit_code, output = asyncio.run(send_command(args, runtime_dir))
    except (ProtocolError, ConnectionError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    if output:
        click.echo(output, nl=False, err=exit_code != 0)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()

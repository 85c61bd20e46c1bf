#!/usr/bin/env python3
"""Clipboard monitor mode for clipring.

The monitor watches the X11 CLIPBOARD selection and forwards each new
snapshot to the server's monitor endpoint. It also sets the clipboard
whenever the server promotes an item. The server normally starts the
monitor itself; it can also be run by hand.

Usage:
    clipring --monitor
"""

from __future__ import annotations

import asyncio
import logging
import signal
from pathlib import Path

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from clipring.endpoint import endpoint_path, monitor_server_name
from clipring.monitor_loop import monitor_loop
from clipring.monitor_state import MonitorState
from clipring.x11_display import (
    create_hidden_window,
    get_display_fd,
    register_xfixes_events,
    validate_display,
)

logger = logging.getLogger(__name__)

# Retry parameters for reaching the server's monitor endpoint.
CONNECT_ATTEMPTS: int = 6
INITIAL_WAIT: float = 0.5
MAX_WAIT: float = 8.0
WAIT_MULTIPLIER: float = 2.0


@retry(
    wait=wait_exponential(multiplier=WAIT_MULTIPLIER, min=INITIAL_WAIT, max=MAX_WAIT),
    retry=retry_if_exception_type(ConnectionError),
    stop=stop_after_attempt(CONNECT_ATTEMPTS),
    reraise=True,
)
async def connect_to_monitor_endpoint(
    socket_path: str,
) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    """Connect to the server's monitor endpoint, retrying with backoff.

    Raises:
        ConnectionError: If every attempt fails.
    """
    try:
        return await asyncio.open_unix_connection(socket_path)
    except OSError as e:
        logger.warning("Connection to %s failed, will retry", socket_path)
        raise ConnectionError(f"Failed to connect to {socket_path}: {e}") from e


async def run_monitor(runtime_dir: str | Path | None = None) -> None:
    """Run the clipboard monitor until shutdown or server disconnect.

    Args:
        runtime_dir: Directory holding the server sockets.

    Raises:
        ConnectionError: If the server cannot be reached or disconnects.
    """
    display = validate_display()
    window = create_hidden_window(display)
    clipboard_atom = display.intern_atom("CLIPBOARD")
    register_xfixes_events(display, window, clipboard_atom)

    state = MonitorState(display=display, window=window, clipboard_atom=clipboard_atom)

    socket_path = endpoint_path(monitor_server_name(), runtime_dir)
    reader, writer = await connect_to_monitor_endpoint(socket_path)
    logger.debug("Connected to server at %s", socket_path)

    shutdown_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, shutdown_requested.set)
    loop.add_signal_handler(signal.SIGTERM, shutdown_requested.set)

    display_fd = get_display_fd(display)
    loop.add_reader(display_fd, state.x11_event.set)
    try:
        await monitor_loop(state, reader, writer, shutdown_requested)
    finally:
        loop.remove_reader(display_fd)
        loop.remove_signal_handler(signal.SIGINT)
        loop.remove_signal_handler(signal.SIGTERM)
        writer.close()
        await writer.wait_closed()

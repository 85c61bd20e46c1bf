#!/usr/bin/env python3
"""Server mode implementation for clipring.

The server owns the clipboard history. On startup it:
- restores the persisted history from the data directory
- binds the command endpoint, or exits if another server answers there
- binds the monitor endpoint and optionally starts the clipboard monitor
- serves client commands and monitor snapshots until SIGINT/SIGTERM

History changes are written to disk after a short delay, and once more on
shutdown.

Usage:
    clipring --server [--max-items N] [--no-monitor]
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
from contextlib import suppress
from functools import partial

from clipring.config import SAVE_DELAY, Settings
from clipring.endpoint import (
    AlreadyRunning,
    Bound,
    bind_or_detect_existing,
    command_server_name,
    monitor_server_name,
)
from clipring.history import ClipboardHistory
from clipring.persistence import load_history, save_history
from clipring.server_handler import apply_incoming, handle_command_client, handle_monitor
from clipring.server_state import ServerState

logger = logging.getLogger(__name__)

# Seconds to wait for the monitor subprocess to exit after SIGTERM.
MONITOR_STOP_TIMEOUT: float = 2.0


def save_now(state: ServerState) -> None:
    """Write the history to disk, cancelling any pending delayed save."""
    if state.save_handle is not None:
        state.save_handle.cancel()
        state.save_handle = None
    try:
        save_history(state.history, state.settings.history_path)
    except OSError as e:
        logger.error("Failed to save history to %s: %s", state.settings.history_path, e)


def schedule_save(state: ServerState) -> None:
    """Save the history SAVE_DELAY seconds from now unless already pending."""
    if state.save_handle is not None:
        return
    loop = asyncio.get_running_loop()
    state.save_handle = loop.call_later(SAVE_DELAY, save_now, state)


async def spawn_monitor(settings: Settings) -> asyncio.subprocess.Process | None:
    """Start the clipboard monitor as a child process.

    Returns:
        The process, or None if it could not be started.
    """
    args = [sys.executable, "-m", "clipring.main", "--monitor"]
    if logging.getLogger().isEnabledFor(logging.DEBUG):
        args.append("--verbose")
    env = dict(os.environ, CLIPRING_RUNTIME_DIR=str(settings.runtime_dir))
    try:
        process = await asyncio.create_subprocess_exec(*args, env=env)
    except OSError as e:
        logger.error("Failed to start clipboard monitor: %s", e)
        return None
    logger.debug("Started clipboard monitor (pid %d)", process.pid)
    return process


async def stop_monitor(process: asyncio.subprocess.Process) -> None:
    """Terminate the monitor child process, killing it if it lingers."""
    if process.returncode is not None:
        return
    process.terminate()
    try:
        await asyncio.wait_for(process.wait(), MONITOR_STOP_TIMEOUT)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()


async def run_server(settings: Settings) -> bool:
    """Run the server until a shutdown signal arrives.

    Args:
        settings: Runtime settings.

    Returns:
        False if another server already owns the command endpoint, True
        after a clean shutdown.
    """
    history = ClipboardHistory(settings.max_items)
    load_history(history, settings.history_path)
    state = ServerState(settings=settings, history=history)

    command = await bind_or_detect_existing(
        command_server_name(),
        partial(handle_command_client, state),
        settings.runtime_dir,
    )
    if isinstance(command, AlreadyRunning):
        logger.warning("Server already running on %s", command.path)
        return False

    monitor = await bind_or_detect_existing(
        monitor_server_name(),
        partial(handle_monitor, state),
        settings.runtime_dir,
    )
    if isinstance(monitor, AlreadyRunning):
        logger.warning("Monitor endpoint %s is busy, clipboard is not tracked", monitor.path)

    history.add_listener(lambda event: schedule_save(state))

    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, state.shutdown_requested.set)
    loop.add_signal_handler(signal.SIGTERM, state.shutdown_requested.set)

    consumer = asyncio.create_task(apply_incoming(state))
    process = None
    if settings.spawn_monitor and isinstance(monitor, Bound):
        process = await spawn_monitor(settings)

    try:
        await state.shutdown_requested.wait()
        logger.debug("Shutting down")
    finally:
        consumer.cancel()
        with suppress(asyncio.CancelledError):
            await consumer
        if process is not None:
            await stop_monitor(process)
        if isinstance(monitor, Bound):
            await monitor.close()
        await command.close()
        loop.remove_signal_handler(signal.SIGINT)
        loop.remove_signal_handler(signal.SIGTERM)
        save_now(state)
    return True

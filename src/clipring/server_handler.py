#!/usr/bin/env python3
"""Server connection handlers.

This module provides the coroutines run for connections accepted on the
server's two endpoints:

- handle_command_client: one request/response exchange with a client;
- handle_monitor: a long-lived connection with the clipboard monitor,
  which delivers new snapshots and receives "set clipboard" requests.

Monitor connections only enqueue snapshots; apply_incoming is the single
consumer inserting them into the history, so every history mutation runs
on the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import TYPE_CHECKING

from clipring.bundle import DataBundle
from clipring.codec import decode_arguments, decode_bundle, encode_bundle, encode_response
from clipring.filtering import should_ignore
from clipring.fingerprint import clone_bundle
from clipring.protocol import ProtocolError, is_ping, read_message, write_message
from clipring.server_commands import run_command

if TYPE_CHECKING:
    from clipring.item import ClipboardItem
    from clipring.server_state import ServerState

logger = logging.getLogger(__name__)


def _front(state: ServerState) -> ClipboardItem | None:
    return state.history[0] if len(state.history) else None


async def _close(writer: asyncio.StreamWriter) -> None:
    writer.close()
    with suppress(OSError):
        await writer.wait_closed()


async def update_clipboard(state: ServerState) -> None:
    """Ask every connected monitor to set the system clipboard to row 0."""
    front = _front(state)
    if front is None:
        return
    payload = encode_bundle(front.bundle)
    for writer in list(state.monitor_writers):
        try:
            await write_message(writer, payload)
        except (ConnectionError, OSError) as e:
            logger.warning("Failed to update monitor clipboard: %s", e)
            state.monitor_writers.discard(writer)


def store_snapshot(state: ServerState, bundle: DataBundle) -> bool:
    """Insert a snapshot from the system clipboard into the history.

    Transient formats are dropped first; empty snapshots, snapshots from
    ignored windows and duplicates of row 0 are not stored.

    Args:
        state: The server state.
        bundle: Snapshot delivered by a monitor.

    Returns:
        True if a new item was added.
    """
    bundle = clone_bundle(bundle)
    if not bundle:
        logger.debug("Ignoring empty snapshot")
        return False
    if should_ignore(bundle, state.settings.ignore_windows):
        logger.debug("Ignoring snapshot from an excluded window")
        return False
    added = state.history.insert_at_front(bundle)
    if added:
        logger.debug("Stored snapshot with formats %s", bundle.formats)
    return added


async def apply_incoming(state: ServerState) -> None:
    """Consume queued snapshots forever, storing each one."""
    while True:
        bundle = await state.incoming.get()
        try:
            store_snapshot(state, bundle)
        finally:
            state.incoming.task_done()


async def handle_command_client(
    state: ServerState,
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
) -> None:
    """Serve one client command.

    Reads a single argument-list frame, runs the command and answers with a
    response frame. A ping frame (sent by an instance that found this one
    already running) gets no answer. If the command changed row 0, the new
    current item is pushed to the monitors.

    Args:
        state: The server state.
        reader: The asyncio StreamReader for the connection.
        writer: The asyncio StreamWriter for the connection.
    """
    try:
        payload = await read_message(reader)
        if payload is None:
            logger.debug("Client closed connection before sending a command")
            return
        if is_ping(payload):
            logger.info("Another instance tried to start")
            return
        try:
            args = decode_arguments(payload)
        except ProtocolError as e:
            logger.warning("Malformed command: %s", e)
            await write_message(writer, encode_response(1, b"Malformed command\n"))
            return

        logger.debug("Command: %s", args)
        front = state.history.bundle_at(0)
        exit_code, output = run_command(state, args)
        await write_message(writer, encode_response(exit_code, output))
        if state.history.bundle_at(0) != front:
            await update_clipboard(state)
    except ConnectionError as e:
        logger.debug("Client connection error: %s", e)
    finally:
        await _close(writer)


async def handle_monitor(
    state: ServerState,
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
) -> None:
    """Receive clipboard snapshots from a monitor until it disconnects.

    Args:
        state: The server state.
        reader: The asyncio StreamReader for the connection.
        writer: The asyncio StreamWriter for the connection.
    """
    logger.debug("Monitor connected")
    state.monitor_writers.add(writer)
    try:
        while (payload := await read_message(reader, wait=True)) is not None:
            if is_ping(payload):
                continue
            try:
                bundle = decode_bundle(payload)
            except ProtocolError as e:
                logger.warning("Dropping malformed snapshot: %s", e)
                continue
            await state.incoming.put(bundle)
        logger.debug("Monitor disconnected")
    except ConnectionError as e:
        logger.debug("Monitor connection error: %s", e)
    finally:
        state.monitor_writers.discard(writer)
        await _close(writer)

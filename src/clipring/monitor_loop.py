#!/usr/bin/env python3
"""Clipboard monitor event loop.

This module relays between the X11 clipboard and the server:
- an XFixes owner change by another application -> read the snapshot and
  send it to the server as one frame
- a frame from the server -> take clipboard ownership and serve that
  bundle to other applications
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import TYPE_CHECKING, cast

from Xlib import X

from clipring.codec import decode_bundle, encode_bundle
from clipring.config import OWNER_WINDOW_TITLE_FORMAT
from clipring.protocol import ProtocolError, is_ping, read_message, write_message
from clipring.x11_display import current_window_title
from clipring.x11_read import read_data_bundle
from clipring.x11_serve import handle_selection_request, process_pending_events, take_ownership

if TYPE_CHECKING:
    from Xlib.protocol.event import SelectionRequest

    from clipring.monitor_state import MonitorState

logger = logging.getLogger(__name__)


async def handle_clipboard_change(
    state: MonitorState, writer: asyncio.StreamWriter
) -> None:
    """Read the new clipboard content and send it to the server.

    The title of the focused window is attached so the server can apply
    its ignore rules.

    Args:
        state: The monitor state.
        writer: The asyncio StreamWriter for the server connection.
    """
    bundle = await read_data_bundle(
        state.display, state.window, state.clipboard_atom, state.deferred_events
    )
    if state.deferred_events:
        state.x11_event.set()
    if bundle is None:
        logger.debug("Clipboard read returned nothing, skipping")
        return

    title = current_window_title(state.display)
    if title:
        bundle = bundle.with_format(OWNER_WINDOW_TITLE_FORMAT, title.encode("utf-8"))
    await write_message(writer, encode_bundle(bundle))
    logger.debug("Sent snapshot with formats %s", bundle.formats)


def handle_server_message(state: MonitorState, payload: bytes) -> None:
    """Set the clipboard to a bundle sent by the server.

    Args:
        state: The monitor state.
        payload: Frame payload holding a serialized bundle.
    """
    if is_ping(payload):
        return
    try:
        bundle = decode_bundle(payload)
    except ProtocolError as e:
        logger.warning("Dropping malformed clipboard update: %s", e)
        return
    state.bundle = bundle
    if take_ownership(state.display, state.window, state.clipboard_atom):
        logger.debug("Serving clipboard with formats %s", bundle.formats)


async def process_x11_events(
    state: MonitorState, writer: asyncio.StreamWriter
) -> None:
    """Handle pending SelectionRequest and XFixes owner-change events.

    Args:
        state: The monitor state.
        writer: The asyncio StreamWriter for the server connection.
    """
    for event in process_pending_events(state.display, state.deferred_events):
        if event.type == X.SelectionRequest:
            handle_selection_request(
                state.display,
                cast("SelectionRequest", event),
                state.bundle,
                state.acquisition_time,
            )
        elif type(event).__name__ == "SetSelectionOwnerNotify":
            if event.owner.id == state.window.id:
                state.acquisition_time = event.timestamp
                continue
            state.acquisition_time = None
            await handle_clipboard_change(state, writer)


async def monitor_loop(
    state: MonitorState,
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    shutdown_requested: asyncio.Event,
) -> None:
    """Wait for X11 events or server frames until shutdown.

    Args:
        state: The monitor state.
        reader: The asyncio StreamReader for the server connection.
        writer: The asyncio StreamWriter for the server connection.
        shutdown_requested: Event signaling graceful shutdown.

    Raises:
        ConnectionError: If the server closes the connection.
    """
    read_task = asyncio.create_task(read_message(reader, wait=True))
    shutdown_task = asyncio.create_task(shutdown_requested.wait())
    try:
        while True:
            x11_task = asyncio.create_task(state.x11_event.wait())
            done, _ = await asyncio.wait(
                {read_task, x11_task, shutdown_task},
                return_when=asyncio.FIRST_COMPLETED,
            )

            # x11_task is stateless (Event.wait); read_task is never
            # cancelled mid-frame
            with suppress(asyncio.CancelledError):
                x11_task.cancel()
                await x11_task

            if shutdown_task in done:
                logger.debug("Shutdown requested")
                return

            if x11_task in done:
                state.x11_event.clear()
                await process_x11_events(state, writer)

            if read_task in done:
                payload = read_task.result()
                if payload is None:
                    raise ConnectionError("Server closed the monitor connection")
                handle_server_message(state, payload)
                read_task = asyncio.create_task(read_message(reader, wait=True))
    finally:
        for task in (read_task, shutdown_task):
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

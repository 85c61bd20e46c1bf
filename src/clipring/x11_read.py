"""Reading clipboard snapshots from the X server.

This module converts the current selection into a DataBundle: it asks the
owner for TARGETS, then requests every target that looks like a MIME type
(lowercase first letter). UTF8_STRING is used for text/plain when the
owner does not offer text/plain itself.

Every conversion waits for SelectionNotify on a worker thread with a
timeout, so an unresponsive owner cannot hang the monitor. Transfers that
the owner answers with INCR are skipped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from Xlib import X

from clipring.bundle import TEXT_FORMAT, DataBundle

if TYPE_CHECKING:
    from Xlib.display import Display
    from Xlib.protocol.rq import Event
    from Xlib.xobject.drawable import Window

logger = logging.getLogger(__name__)

# Timeout in seconds for one selection conversion.
CLIPBOARD_TIMEOUT: float = 2.0

# Largest number of formats read from one snapshot.
MAX_FORMATS: int = 16

# Property used to receive converted selection data.
SELECTION_PROPERTY: str = "CLIPRING_SEL"


def wait_for_event_type(
    display: Display,
    target_event_type: int,
    deferred_events: list[Event],
) -> Event:
    """Block until an event of the target type arrives.

    SelectionRequest and XFixes owner-change events read meanwhile are
    kept in deferred_events for the main loop; others are dropped.

    Args:
        display: The X11 display connection.
        target_event_type: The X11 event type to wait for.
        deferred_events: List collecting events to process later.

    Returns:
        The matching event.
    """
    while True:
        event = display.next_event()
        if event.type == target_event_type:
            return event
        if event.type == X.SelectionRequest:
            deferred_events.append(event)
        elif type(event).__name__ == "SetSelectionOwnerNotify":
            deferred_events.append(event)


def _property_bytes(value: object) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)  # type: ignore[call-overload]


async def convert_selection(
    display: Display,
    window: Window,
    selection_atom: int,
    target_atom: int,
    deferred_events: list[Event],
) -> object | None:
    """Request one target of a selection and return the property value.

    Args:
        display: The X11 display connection.
        window: The window receiving the data.
        selection_atom: The selection to read.
        target_atom: The requested target.
        deferred_events: List collecting events deferred during the wait.

    Returns:
        The property value (bytes for 8-bit data, a sequence of ints for
        32-bit data), or None if refused, timed out or sent via INCR.
    """
    prop_atom = display.intern_atom(SELECTION_PROPERTY)
    window.convert_selection(selection_atom, target_atom, prop_atom, X.CurrentTime)
    display.flush()
    try:
        event = await asyncio.wait_for(
            asyncio.to_thread(
                wait_for_event_type, display, X.SelectionNotify, deferred_events
            ),
            timeout=CLIPBOARD_TIMEOUT,
        )
    except asyncio.TimeoutError:
        logger.debug("Timeout converting target %s", target_atom)
        return None
    if event.property == X.NONE:
        logger.debug("Owner refused target %s", target_atom)
        return None

    prop = window.get_full_property(prop_atom, X.AnyPropertyType)
    window.delete_property(prop_atom)
    display.flush()
    if prop is None:
        return None
    if prop.property_type == display.intern_atom("INCR"):
        logger.debug("Skipping INCR transfer for target %s", target_atom)
        return None
    return prop.value


async def read_data_bundle(
    display: Display,
    window: Window,
    selection_atom: int,
    deferred_events: list[Event],
) -> DataBundle | None:
    """Read every MIME format offered by the selection owner.

    Args:
        display: The X11 display connection.
        window: The window receiving the data.
        selection_atom: The selection to read.
        deferred_events: List collecting events deferred during reads.

    Returns:
        The snapshot, or None if there is no owner or nothing was read.
    """
    try:
        if display.get_selection_owner(selection_atom) == X.NONE:
            logger.debug("No selection owner for atom %s", selection_atom)
            return None

        targets = await convert_selection(
            display, window, selection_atom,
            display.intern_atom("TARGETS"), deferred_events,
        )
        if targets is None:
            return None
        names = [display.get_atom_name(atom) for atom in targets]
        formats = [name for name in names if name and name[0].islower()]

        items: list[tuple[str, bytes]] = []
        for fmt in formats[:MAX_FORMATS]:
            value = await convert_selection(
                display, window, selection_atom,
                display.intern_atom(fmt), deferred_events,
            )
            if value:
                items.append((fmt, _property_bytes(value)))

        if TEXT_FORMAT not in formats and "UTF8_STRING" in names:
            value = await convert_selection(
                display, window, selection_atom,
                display.intern_atom("UTF8_STRING"), deferred_events,
            )
            if value:
                items.append((TEXT_FORMAT, _property_bytes(value)))
    except Exception as e:
        logger.debug("Clipboard read failed: %s", e)
        return None

    if not items:
        return None
    return DataBundle(items)

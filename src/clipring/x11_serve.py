"""Serving the clipboard from the monitor's hidden window.

When the server promotes an item, the monitor takes ownership of the
CLIPBOARD selection and answers other applications' SelectionRequest
events from the promoted bundle.

The module handles:
- Taking selection ownership
- Responding to TARGETS, TIMESTAMP, UTF8_STRING/STRING and any MIME
  format present in the bundle
- Collecting pending X11 events without blocking the asyncio loop
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from Xlib import X, Xatom
from Xlib.protocol.event import SelectionNotify as SelectionNotifyEvent

from clipring.bundle import TEXT_FORMAT, DataBundle

if TYPE_CHECKING:
    from Xlib.display import Display
    from Xlib.protocol.event import SelectionRequest
    from Xlib.protocol.rq import Event
    from Xlib.xobject.drawable import Window

logger = logging.getLogger(__name__)

# Fraction of the maximum request size usable for one property write.
PROPERTY_SIZE_MARGIN: float = 0.9


def max_property_size(display: Display) -> int:
    """Largest payload in bytes that fits a single change_property."""
    # max_request_length is in 4-byte units
    return int(display.info.max_request_length * 4 * PROPERTY_SIZE_MARGIN)


def take_ownership(display: Display, window: Window, selection_atom: int) -> bool:
    """Make window the owner of a selection.

    Args:
        display: The X11 display connection.
        window: The window to own the selection.
        selection_atom: The selection to own.

    Returns:
        True if ownership was acquired.
    """
    try:
        window.set_selection_owner(selection_atom, X.CurrentTime)
        display.flush()
        if display.get_selection_owner(selection_atom) != window:
            logger.error("Failed to acquire selection ownership")
            return False
        return True
    except Exception as e:
        logger.error("Failed to set clipboard content: %s", e)
        return False


def _text_targets(display: Display) -> list[int]:
    return [display.intern_atom("UTF8_STRING"), Xatom.STRING]


def supported_targets(display: Display, bundle: DataBundle) -> list[int]:
    """Return the target atoms advertised for a bundle."""
    targets = [display.intern_atom("TARGETS"), display.intern_atom("TIMESTAMP")]
    targets.extend(display.intern_atom(fmt) for fmt in bundle)
    if TEXT_FORMAT in bundle:
        targets.extend(_text_targets(display))
    return targets


def _payload_for(display: Display, bundle: DataBundle, target: int) -> bytes | None:
    if target in _text_targets(display):
        return bundle.get(TEXT_FORMAT)
    try:
        name = display.get_atom_name(target)
    except Exception:
        return None
    return bundle.get(name)


def handle_selection_request(
    display: Display,
    event: SelectionRequest,
    bundle: DataBundle,
    acquisition_time: int | None,
) -> None:
    """Answer a SelectionRequest from the bundle being served.

    Unsupported targets, payloads too large for a single property and
    TIMESTAMP requests without a known acquisition time are refused with
    property=None.

    Args:
        display: The X11 display connection.
        event: The SelectionRequest event.
        bundle: The content currently served.
        acquisition_time: X server time when ownership was acquired.
    """
    targets_atom = display.intern_atom("TARGETS")
    timestamp_atom = display.intern_atom("TIMESTAMP")
    # obsolete requestors leave property unset
    prop = event.property if event.property != X.NONE else event.target

    if event.target == targets_atom:
        event.requestor.change_property(
            prop, Xatom.ATOM, 32, supported_targets(display, bundle)
        )
    elif event.target == timestamp_atom:
        if acquisition_time is None:
            prop = X.NONE
        else:
            event.requestor.change_property(prop, Xatom.INTEGER, 32, [acquisition_time])
    else:
        payload = _payload_for(display, bundle, event.target)
        if payload is None:
            prop = X.NONE
        elif len(payload) > max_property_size(display):
            logger.warning("Refusing %d byte transfer, too large", len(payload))
            prop = X.NONE
        else:
            event.requestor.change_property(prop, event.target, 8, payload)
    logger.debug("SelectionRequest target=%s answered property=%s", event.target, prop)

    event.requestor.send_event(
        SelectionNotifyEvent(
            time=event.time,
            requestor=event.requestor.id,
            selection=event.selection,
            target=event.target,
            property=prop,
        ),
        event_mask=0,
    )
    display.flush()


def process_pending_events(
    display: Display, deferred_events: list[Event] | None = None
) -> list[Event]:
    """Collect events already pending without blocking.

    Args:
        display: The X11 display connection.
        deferred_events: Events deferred during clipboard reads; drained
            and placed first in the result.

    Returns:
        SelectionRequest and XFixes owner-change events, in order.
    """
    events: list[Event] = []
    if deferred_events:
        events.extend(deferred_events)
        deferred_events.clear()
    while display.pending_events() > 0:
        event = display.next_event()
        if event.type == X.SelectionRequest:
            events.append(event)
        elif type(event).__name__ == "SetSelectionOwnerNotify":
            events.append(event)
    return events

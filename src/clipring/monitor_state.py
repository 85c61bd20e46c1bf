#!/usr/bin/env python3
"""Clipboard monitor state.

This module provides the MonitorState dataclass that groups all state the
clipboard monitor needs while it relays the X11 clipboard to the server.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from clipring.bundle import DataBundle

if TYPE_CHECKING:
    from Xlib.display import Display
    from Xlib.protocol.rq import Event
    from Xlib.xobject.drawable import Window


@dataclass
class MonitorState:
    """State for the clipboard monitor.

    Attributes:
        display: The X11 display connection.
        window: The hidden window for clipboard ownership.
        clipboard_atom: Cached CLIPBOARD atom.
        bundle: Content served while this monitor owns the clipboard.
        acquisition_time: X server timestamp when we acquired clipboard
            ownership, or None if we don't own it.
        deferred_events: X11 events deferred during clipboard reads.
        x11_event: Signaled when X11 events need processing.
    """

    display: Display
    window: Window
    clipboard_atom: int
    bundle: DataBundle = field(default_factory=DataBundle)
    acquisition_time: int | None = None
    deferred_events: list[Event] = field(default_factory=list)
    x11_event: asyncio.Event = field(default_factory=asyncio.Event)

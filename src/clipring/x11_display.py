"""X11 display setup for the clipboard monitor.

This module provides functions for connecting to the X server and
preparing it for clipboard monitoring using python-xlib with the XFixes
extension. XFixes provides true event-driven notification when clipboard
ownership changes, avoiding the need for polling.

The module handles:
- Validating X11 display connectivity
- Creating a hidden window for clipboard ownership
- Registering for XFixes selection owner notifications
- Querying the title of the focused window
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

from Xlib import X, Xatom

if TYPE_CHECKING:
    from Xlib.display import Display
    from Xlib.xobject.drawable import Window

logger = logging.getLogger(__name__)


def validate_display() -> Display:
    """Validate X11 connectivity and return Display object.

    Returns:
        Display object for X11 operations.

    Raises:
        SystemExit: If DISPLAY is unset or X11 connection fails.
    """
    display_name = os.environ.get("DISPLAY")
    if not display_name:
        print("Error: DISPLAY environment variable is not set.", file=sys.stderr)
        print("The clipboard monitor needs an X11 display.", file=sys.stderr)
        sys.exit(1)

    try:
        from Xlib.display import Display as XDisplay
        return XDisplay(display_name)
    except Exception as e:
        print(f"Error: Failed to connect to X11 display: {e}", file=sys.stderr)
        sys.exit(1)


def get_display_fd(display: Display) -> int:
    """Return the file descriptor of the X11 connection for loop.add_reader()."""
    return display.fileno()


def create_hidden_window(display: Display) -> Window:
    """Create a 1x1 unmapped window that can own the clipboard.

    Args:
        display: The X11 display connection.

    Returns:
        A Window object for owning and requesting selections.
    """
    screen = display.screen()
    return screen.root.create_window(
        0, 0, 1, 1, 0, screen.root_depth, event_mask=X.PropertyChangeMask,
    )


def register_xfixes_events(display: Display, window: Window, selection_atom: int) -> None:
    """Register for XFixes owner change notifications on one selection.

    Args:
        display: The X11 display connection.
        window: The window to receive selection events.
        selection_atom: The selection to watch (normally CLIPBOARD).
    """
    from Xlib.ext import xfixes

    xfixes.query_version(display)
    mask = xfixes.XFixesSetSelectionOwnerNotifyMask
    xfixes.select_selection_input(display, window.id, selection_atom, mask)
    display.flush()


def current_window_title(display: Display) -> str | None:
    """Return the title of the focused window, if the window manager says.

    Reads _NET_ACTIVE_WINDOW from the root window, then _NET_WM_NAME of
    that window.

    Args:
        display: The X11 display connection.

    Returns:
        The window title, or None if it cannot be determined.
    """
    root = display.screen().root
    active_atom = display.intern_atom("_NET_ACTIVE_WINDOW")
    name_atom = display.intern_atom("_NET_WM_NAME")
    utf8_atom = display.intern_atom("UTF8_STRING")
    try:
        active = root.get_full_property(active_atom, Xatom.WINDOW)
        if active is None or not active.value:
            return None
        window = display.create_resource_object("window", active.value[0])
        name = window.get_full_property(name_atom, utf8_atom)
    except Exception as e:
        logger.debug("Cannot read active window title: %s", e)
        return None
    if name is None:
        return None
    value = name.value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)

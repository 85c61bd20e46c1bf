#!/usr/bin/env python3
"""Configuration for clipring.

Module-level constants hold the defaults; the Settings dataclass carries
the values actually chosen on the command line (click options with
environment variable fallbacks) into the server and monitor.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

# Default history capacity.
DEFAULT_MAX_ITEMS: int = 100

# Seconds to wait after a history change before writing it to disk.
SAVE_DELAY: float = 1.0

# Name of the history file inside the data directory.
HISTORY_FILE_NAME: str = "history.dat"

# Formats included in an item's fingerprint.
HASHED_FORMATS: tuple[str, ...] = (
    "text/plain",
    "text/html",
    "text/uri-list",
    "image/png",
    "image/bmp",
    "image/jpeg",
    "image/gif",
    "image/svg+xml",
)

# Format carrying the title of the window that owned the copied content.
OWNER_WINDOW_TITLE_FORMAT: str = "application/x-clipring-owner-window-title"


def default_data_dir() -> Path:
    """Return the directory holding persisted history.

    Uses CLIPRING_DATA_DIR if set, else $XDG_DATA_HOME/clipring, else
    ~/.local/share/clipring.
    """
    explicit = os.environ.get("CLIPRING_DATA_DIR")
    if explicit:
        return Path(explicit)
    xdg = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / "clipring"


def default_runtime_dir() -> Path:
    """Return the directory holding the local socket files.

    Uses CLIPRING_RUNTIME_DIR if set, else $XDG_RUNTIME_DIR, else the
    system temporary directory.
    """
    explicit = os.environ.get("CLIPRING_RUNTIME_DIR")
    if explicit:
        return Path(explicit)
    xdg = os.environ.get("XDG_RUNTIME_DIR")
    if xdg:
        return Path(xdg)
    return Path(tempfile.gettempdir())


@dataclass
class Settings:
    """Runtime settings for the server process.

    Attributes:
        max_items: History capacity.
        data_dir: Directory for the persisted history file.
        runtime_dir: Directory for socket and lock files.
        ignore_windows: Regular expressions; content copied from a window
            whose title matches one of them is not stored.
        spawn_monitor: Start the X11 clipboard monitor as a subprocess.
    """

    max_items: int = DEFAULT_MAX_ITEMS
    data_dir: Path = field(default_factory=default_data_dir)
    runtime_dir: Path = field(default_factory=default_runtime_dir)
    ignore_windows: tuple[str, ...] = ()
    spawn_monitor: bool = True

    @property
    def history_path(self) -> Path:
        """Path of the persisted history file."""
        return self.data_dir / HISTORY_FILE_NAME

#!/usr/bin/env python3
"""Server state.

This module provides the ServerState dataclass grouping everything the
server's connection handlers share: the history, the settings, the
connected monitors and the queue of incoming clipboard snapshots.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from clipring.bundle import DataBundle
from clipring.config import Settings
from clipring.filtering import HistoryFilter
from clipring.history import ClipboardHistory


@dataclass
class ServerState:
    """State shared by the server's tasks.

    All fields are touched only from the event loop thread.

    Attributes:
        settings: Runtime settings.
        history: The clipboard history.
        history_filter: Filter used by the list command.
        incoming: Snapshots delivered by monitors, awaiting insertion.
        monitor_writers: Open connections to clipboard monitors.
        shutdown_requested: Set to stop the server.
        save_handle: Pending delayed save, if any.
    """

    settings: Settings
    history: ClipboardHistory
    history_filter: HistoryFilter = field(default_factory=HistoryFilter)
    incoming: asyncio.Queue[DataBundle] = field(default_factory=asyncio.Queue)
    monitor_writers: set[asyncio.StreamWriter] = field(default_factory=set)
    shutdown_requested: asyncio.Event = field(default_factory=asyncio.Event)
    save_handle: asyncio.TimerHandle | None = None

#!/usr/bin/env python3
"""Change notifications emitted by ClipboardHistory.

Listeners registered with ClipboardHistory.add_listener() receive one of
these events after each structural change. Row numbers refer to the
history as it is after the change (for removals: as it was before).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class RowsInserted:
    """Rows first..last (inclusive) were inserted."""

    first: int
    last: int


@dataclass(frozen=True)
class RowsRemoved:
    """Rows first..last (inclusive) were removed."""

    first: int
    last: int


@dataclass(frozen=True)
class RowMoved:
    """The item at row source now sits at row target."""

    source: int
    target: int


@dataclass(frozen=True)
class RowDataChanged:
    """The item shown at row changed (edited or replaced by a sort)."""

    row: int


HistoryEvent = RowsInserted | RowsRemoved | RowMoved | RowDataChanged

HistoryListener = Callable[[HistoryEvent], None]

#!/usr/bin/env python3
"""Ordered, capacity-bounded clipboard history.

Row 0 holds the current clipboard content; higher rows are older. Every
mutating operation re-establishes these invariants before returning:

- the number of items never exceeds max_items, and eviction always drops
  the highest (oldest) rows;
- inserting at the front content identical to row 0 is rejected unless
  forced;
- moves and sorts only change positions, never the set of items.

Out-of-range rows make an operation return False (or do nothing) without
touching the history. The history is not thread-safe: it assumes one
mutating thread, such as the asyncio event loop of the server.
"""

from __future__ import annotations

import locale
import logging
from collections.abc import Callable, Iterable, Iterator
from enum import Enum
from functools import cmp_to_key

from clipring.bundle import DataBundle
from clipring.config import DEFAULT_MAX_ITEMS
from clipring.history_events import (
    HistoryEvent,
    HistoryListener,
    RowDataChanged,
    RowMoved,
    RowsInserted,
    RowsRemoved,
)
from clipring.item import ClipboardItem

logger = logging.getLogger(__name__)

ComparisonItem = tuple[int, ClipboardItem]
Comparator = Callable[[ComparisonItem, ComparisonItem], int]


class MoveDirection(str, Enum):
    """Direction for batched moves of selected rows."""

    UP = "up"
    DOWN = "down"
    TO_START = "top"
    TO_END = "bottom"


def alphabetical_order(lhs: ComparisonItem, rhs: ComparisonItem) -> int:
    """Compare items by their text using the current locale collation."""
    return locale.strcoll(lhs[1].text, rhs[1].text)


def reverse_order(lhs: ComparisonItem, rhs: ComparisonItem) -> int:
    """Compare items so that sorting reverses their current row order."""
    return rhs[0] - lhs[0]


class ClipboardHistory:
    """Ordered collection of ClipboardItem with bounded capacity.

    Args:
        max_items: Maximum number of items kept; negative values mean 0.
    """

    def __init__(self, max_items: int = DEFAULT_MAX_ITEMS) -> None:
        self._items: list[ClipboardItem] = []
        self._max_items = max(0, max_items)
        self._listeners: list[HistoryListener] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ClipboardItem]:
        return iter(self._items)

    def __getitem__(self, row: int) -> ClipboardItem:
        if not self._valid(row):
            raise IndexError(f"row {row} out of range")
        return self._items[row]

    @property
    def max_items(self) -> int:
        """Current capacity."""
        return self._max_items

    def add_listener(self, listener: HistoryListener) -> None:
        """Register a callable receiving every HistoryEvent."""
        self._listeners.append(listener)

    def remove_listener(self, listener: HistoryListener) -> None:
        """Unregister a listener added with add_listener()."""
        self._listeners.remove(listener)

    def _emit(self, event: HistoryEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    def _valid(self, row: int) -> bool:
        return 0 <= row < len(self._items)

    def bundle_at(self, row: int) -> DataBundle | None:
        """Return the bundle at row, or None if row is out of range."""
        if not self._valid(row):
            return None
        return self._items[row].bundle

    def row_number(self, row: int, cycle: bool = False) -> int | None:
        """Map an arbitrary row number into the valid range.

        Args:
            row: Requested row, possibly negative or past the end.
            cycle: Wrap around instead of clamping to the nearest end.

        Returns:
            A valid row, or None if the history is empty.
        """
        count = len(self._items)
        if count == 0:
            return None
        if row >= count:
            return 0 if cycle else count - 1
        if row < 0:
            return count - 1 if cycle else 0
        return row

    def insert(self, row: int, bundle: DataBundle) -> ClipboardItem:
        """Insert a new item, then evict from the tail if over capacity.

        Args:
            row: Target row, clamped to 0..len(self).
            bundle: Content of the new item.

        Returns:
            The new item.
        """
        row = max(0, min(row, len(self._items)))
        item = ClipboardItem(bundle)
        self._items.insert(row, item)
        self._emit(RowsInserted(row, row))
        self._trim()
        return item

    def insert_at_front(self, bundle: DataBundle, force: bool = False) -> bool:
        """Add content as the new current clipboard item.

        Args:
            bundle: Content to add.
            force: Add even if identical to the current row 0.

        Returns:
            False if rejected as a duplicate of row 0, True otherwise.
        """
        if not force and self._items and self._items[0].has_same_data(bundle):
            logger.debug("Skipping content identical to current item")
            return False
        self.insert(0, bundle)
        return True

    def append(self, bundle: DataBundle) -> bool:
        """Add content as the oldest item.

        Returns:
            False if the history is already full.
        """
        if len(self._items) >= self._max_items:
            return False
        row = len(self._items)
        self._items.append(ClipboardItem(bundle))
        self._emit(RowsInserted(row, row))
        return True

    def _trim(self) -> None:
        count = len(self._items)
        if count <= self._max_items:
            return
        del self._items[self._max_items:]
        self._emit(RowsRemoved(self._max_items, count - 1))

    def set_max_items(self, max_items: int) -> None:
        """Change capacity, evicting the oldest items immediately if needed."""
        self._max_items = max(0, max_items)
        self._trim()

    def remove_rows(self, position: int, count: int = 1) -> bool:
        """Remove up to count items starting at position.

        Returns:
            False if position is out of range or count is not positive.
        """
        if not self._valid(position) or count <= 0:
            return False
        last = min(position + count, len(self._items)) - 1
        del self._items[position:last + 1]
        self._emit(RowsRemoved(position, last))
        return True

    def remove_at(self, row: int) -> bool:
        """Remove one item; False if row is out of range."""
        return self.remove_rows(row, 1)

    def clear(self) -> None:
        """Remove every item."""
        if self._items:
            self.remove_rows(0, len(self._items))

    def move(self, source: int, target: int) -> bool:
        """Move one item, keeping the relative order of all others.

        Returns:
            False if either row is out of range.
        """
        if not self._valid(source) or not self._valid(target):
            return False
        if source == target:
            return True
        self._items.insert(target, self._items.pop(source))
        self._emit(RowMoved(source, target))
        return True

    def move_to_front(self, row: int) -> bool:
        """Promote the item at row to row 0."""
        return self.move(row, 0)

    def move_selection_by(
        self, rows: Iterable[int], direction: MoveDirection
    ) -> bool:
        """Move several rows one step or to either end of the history.

        Rows are processed in descending order for DOWN and TO_END and in
        ascending order otherwise, so earlier moves do not disturb the
        positions still to be processed. Moving UP from row 0 or DOWN from
        the last row wraps around to the other end.

        Args:
            rows: Rows to move.
            direction: Where to move them.

        Returns:
            True if any move touched row 0 or crossed the end of the
            history, meaning the current clipboard item may have changed.
            False if nothing moved or any row was out of range.
        """
        rows = list(rows)
        if not rows or not all(self._valid(row) for row in rows):
            return False

        descending = direction in (MoveDirection.DOWN, MoveDirection.TO_END)
        ordered = sorted(set(rows), reverse=descending)
        count = len(self._items)
        changed = False
        shift = 0
        for i, row in enumerate(ordered):
            source = row + shift
            if direction is MoveDirection.DOWN:
                target = source + 1
            elif direction is MoveDirection.UP:
                target = source - 1
            elif direction is MoveDirection.TO_END:
                target = count - i - 1
            else:
                target = i

            # a wrapped move shifts every other row by one
            if target < 0:
                shift -= 1
            elif target >= count:
                shift += 1

            wrapped = self.row_number(target, cycle=True)
            if wrapped is None or not self.move(source, wrapped):
                return changed
            if not changed and source != wrapped:
                changed = target == 0 or source == 0 or target == count
        return changed

    def sort_subset(self, rows: Iterable[int], compare: Comparator) -> None:
        """Sort the items at the given rows among themselves.

        Only the listed slots are rewritten; every other item stays where
        it is. The sort is stable with respect to the order rows are given
        in. Nothing changes if any row is out of range.

        Args:
            rows: Rows to sort.
            compare: Three-way comparison of (row, item) pairs.
        """
        unique = list(dict.fromkeys(rows))
        if not all(self._valid(row) for row in unique):
            return
        pairs = [(row, self._items[row]) for row in unique]
        ordered = sorted(pairs, key=cmp_to_key(compare))
        for slot, (row, item) in zip(sorted(unique), ordered):
            if row != slot:
                self._items[slot] = item
                self._emit(RowDataChanged(slot))

    def find_by_fingerprint(self, value: int) -> int | None:
        """Return the lowest row whose item has the given fingerprint."""
        for row, item in enumerate(self._items):
            if item.fingerprint == value:
                return row
        return None

    def set_bundle(self, row: int, bundle: DataBundle) -> bool:
        """Replace the content of the item at row."""
        if not self._valid(row):
            return False
        self._items[row].bundle = bundle
        self._emit(RowDataChanged(row))
        return True

    def set_text(self, row: int, text: str) -> bool:
        """Replace the content of the item at row with plain text."""
        return self.set_bundle(row, DataBundle.from_text(text))

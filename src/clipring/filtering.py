#!/usr/bin/env python3
"""Filtered views over a clipboard history and ignore rules.

A HistoryFilter hides items whose text does not match a case-insensitive
regular expression. It never modifies the history; callers ask it which
rows are visible.

should_ignore() decides whether freshly copied content is stored at all,
based on the title of the window it was copied from.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from clipring.bundle import DataBundle
from clipring.config import OWNER_WINDOW_TITLE_FORMAT
from clipring.history import ClipboardHistory
from clipring.item import ClipboardItem

logger = logging.getLogger(__name__)


def _compile(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        logger.debug("Invalid filter %r (%s), matching it literally", pattern, e)
        return re.compile(re.escape(pattern), re.IGNORECASE)


class HistoryFilter:
    """Case-insensitive text filter for history rows.

    An empty pattern shows every row.
    """

    def __init__(self, pattern: str = "") -> None:
        self._pattern = pattern
        self._regex = _compile(pattern)

    @property
    def pattern(self) -> str:
        return self._pattern

    def set_pattern(self, pattern: str) -> bool:
        """Change the pattern; returns False if it is unchanged."""
        if pattern == self._pattern:
            return False
        self._pattern = pattern
        self._regex = _compile(pattern)
        return True

    def is_filtered(self, item: ClipboardItem) -> bool:
        """True if the item is hidden by the current pattern."""
        return self._regex.search(item.text) is None

    def hidden_rows(self, history: ClipboardHistory) -> list[int]:
        return [row for row, item in enumerate(history) if self.is_filtered(item)]

    def visible_rows(self, history: ClipboardHistory) -> list[int]:
        return [row for row, item in enumerate(history) if not self.is_filtered(item)]

    def first_visible(self, history: ClipboardHistory) -> int | None:
        """Lowest visible row, or None if every row is hidden."""
        for row, item in enumerate(history):
            if not self.is_filtered(item):
                return row
        return None


def window_title(bundle: DataBundle) -> str | None:
    """Title of the window the content was copied from, if recorded."""
    data = bundle.get(OWNER_WINDOW_TITLE_FORMAT)
    if data is None:
        return None
    return data.decode("utf-8", errors="replace")


def should_ignore(bundle: DataBundle, window_patterns: Iterable[str]) -> bool:
    """Check whether copied content must not be stored.

    Args:
        bundle: Newly copied content.
        window_patterns: Regular expressions matched against the owner
            window title (case-insensitive search).

    Returns:
        True if the bundle records an owner window whose title matches one
        of the patterns.
    """
    title = window_title(bundle)
    if title is None:
        return False
    return any(_compile(pattern).search(title) for pattern in window_patterns)

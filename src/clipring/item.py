#!/usr/bin/env python3
"""
A single clipboard history entry.

Items are owned by the ClipboardHistory holding them. Other code refers to
an item by its row in the history, never keeps one alive on its own.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from clipring.bundle import DataBundle
from clipring.config import HASHED_FORMATS
from clipring.fingerprint import fingerprint


@dataclass(eq=False)
class ClipboardItem:
    """
    History entry: one bundle plus its cached fingerprint.

    The fingerprint is computed over HASHED_FORMATS on first access and
    recomputed only after the bundle is replaced.

    Attributes:
        bundle: The clipboard snapshot stored in this entry.
    """

    bundle: DataBundle = field(default_factory=DataBundle)
    _fingerprint: int | None = field(default=None, init=False, repr=False)

    def __setattr__(self, name: str, value: object) -> None:
        if name == "bundle":
            object.__setattr__(self, "_fingerprint", None)
        object.__setattr__(self, name, value)

    @property
    def fingerprint(self) -> int:
        """Fingerprint of the bundle over HASHED_FORMATS."""
        if self._fingerprint is None:
            self._fingerprint = fingerprint(self.bundle, HASHED_FORMATS)
        return self._fingerprint

    @property
    def text(self) -> str:
        """Plain text of the entry, or an empty string if it has none."""
        return self.bundle.text or ""

    def has_same_data(self, bundle: DataBundle) -> bool:
        """
        Check whether this entry holds exactly the given content.

        Compares every format, not the fingerprint.

        Args:
            bundle: Bundle to compare against.

        Returns:
            True if the bundles are equal.
        """
        return self.bundle == bundle

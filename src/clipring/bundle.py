#!/usr/bin/env python3
"""Multi-format clipboard snapshot.

A DataBundle maps format identifiers (usually MIME types such as
"text/plain" or "image/png") to raw payload bytes. All representations in
one bundle describe the same logical clipboard content.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

TEXT_FORMAT: str = "text/plain"


class DataBundle(Mapping[str, bytes]):
    """Immutable ordered mapping from format name to payload bytes.

    Equality compares every format and payload; the order in which formats
    were added does not matter.
    """

    __slots__ = ("_data",)

    def __init__(
        self, data: Mapping[str, bytes] | Iterable[tuple[str, bytes]] = ()
    ) -> None:
        items = data.items() if isinstance(data, Mapping) else data
        self._data: dict[str, bytes] = {str(k): bytes(v) for k, v in items}

    @classmethod
    def from_text(cls, text: str) -> DataBundle:
        """Create a bundle holding only UTF-8 encoded text/plain."""
        return cls({TEXT_FORMAT: text.encode("utf-8")})

    def __getitem__(self, fmt: str) -> bytes:
        return self._data[fmt]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DataBundle):
            return self._data == other._data
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._data.items()))

    def __repr__(self) -> str:
        sizes = ", ".join(f"{fmt}: {len(data)} B" for fmt, data in self._data.items())
        return f"DataBundle({{{sizes}}})"

    @property
    def formats(self) -> list[str]:
        """Format names in insertion order."""
        return list(self._data)

    @property
    def text(self) -> str | None:
        """Decoded text/plain payload, or None if the bundle has no text."""
        data = self._data.get(TEXT_FORMAT)
        if data is None:
            return None
        return data.decode("utf-8", errors="replace")

    def with_format(self, fmt: str, data: bytes) -> DataBundle:
        """Return a copy with one format added or replaced."""
        items = dict(self._data)
        items[fmt] = data
        return DataBundle(items)

#!/usr/bin/env python3
"""
History persistence.

The whole history is stored as [>I item count] followed by each item's
bundle (see codec.encode_bundle), written from row 0 to the last row.
Loading appends items in the same order and never exceeds the capacity of
the target history.
"""
from __future__ import annotations

import logging
import os
import struct
from pathlib import Path

from clipring.codec import PayloadReader, encode_bundle, read_bundle
from clipring.history import ClipboardHistory
from clipring.protocol import ProtocolError

logger = logging.getLogger(__name__)


def serialize_history(history: ClipboardHistory) -> bytes:
    """
    Serialize every item of a history.

    Args:
        history: History to serialize.

    Returns:
        Item count followed by each bundle, front to back.
    """
    parts = [struct.pack(">I", len(history))]
    parts.extend(encode_bundle(item.bundle) for item in history)
    return b"".join(parts)


def deserialize_history(history: ClipboardHistory, data: bytes) -> int:
    """
    Append stored items to a history.

    Restores at most min(stored count, history.max_items) - len(history)
    items; the rest of the stored items are ignored.

    Args:
        history: History to fill.
        data: Output of serialize_history().

    Returns:
        Number of items restored.

    Raises:
        ProtocolError: If data is truncated or malformed. Items decoded
            before the error are kept.
    """
    reader = PayloadReader(data)
    stored = reader.take_uint()
    count = min(stored, history.max_items) - len(history)
    restored = 0
    for _ in range(count):
        history.append(read_bundle(reader))
        restored += 1
    return restored


def save_history(history: ClipboardHistory, path: Path) -> None:
    """
    Write a history to a file atomically.

    Writes to a temporary file next to path and renames it into place so a
    crash never leaves a half-written history behind.

    Args:
        history: History to save.
        path: Destination file.

    Raises:
        OSError: If the file cannot be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_bytes(serialize_history(history))
    os.replace(tmp_path, path)
    logger.debug("Saved %d items to %s", len(history), path)


def load_history(history: ClipboardHistory, path: Path) -> int:
    """
    Restore a history from a file written by save_history().

    A missing file restores nothing. A corrupt file is reported and the
    items decoded before the damage are kept.

    Args:
        history: History to fill.
        path: File to read.

    Returns:
        Number of items restored.
    """
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        logger.debug("No saved history at %s", path)
        return 0
    before = len(history)
    try:
        restored = deserialize_history(history, data)
    except ProtocolError as e:
        logger.warning("Saved history %s is corrupt: %s", path, e)
        return len(history) - before
    logger.debug("Loaded %d items from %s", restored, path)
    return restored

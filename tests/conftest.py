#!/usr/bin/env python3
"""Pytest fixtures for clipring tests.

Provides bundles, histories, a short temporary runtime directory for Unix
domain sockets, and a fixed OS user name.
"""

import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from clipring.bundle import DataBundle
from clipring.config import Settings
from clipring.history import ClipboardHistory
from clipring.server_state import ServerState


def text_bundle(text: str) -> DataBundle:
    """Create a text-only bundle."""
    return DataBundle.from_text(text)


@pytest.fixture
def rich_bundle() -> DataBundle:
    """Bundle with plain text, HTML and a transient uppercase format."""
    return DataBundle(
        [
            ("text/plain", b"hello"),
            ("text/html", b"<b>hello</b>"),
            ("TIMESTAMP", b"\x00\x01"),
        ]
    )


@pytest.fixture
def history() -> ClipboardHistory:
    """Create an empty history with capacity 3."""
    return ClipboardHistory(max_items=3)


@pytest.fixture
def abc_history() -> ClipboardHistory:
    """History holding texts a, b, c at rows 0, 1, 2 (capacity 10)."""
    history = ClipboardHistory(max_items=10)
    for text in ("c", "b", "a"):
        history.insert_at_front(text_bundle(text), force=True)
    return history


@pytest.fixture
def runtime_dir(monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Short temporary directory for sockets, with USER fixed to alice.

    Kept short because Unix socket paths are limited to about 100 bytes.
    """
    monkeypatch.setenv("USER", "alice")
    with tempfile.TemporaryDirectory(prefix="cr-", dir="/tmp") as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def server_state(tmp_path: Path, abc_history: ClipboardHistory) -> ServerState:
    """ServerState around abc_history with data stored under tmp_path."""
    settings = Settings(max_items=10, data_dir=tmp_path, runtime_dir=tmp_path)
    return ServerState(settings=settings, history=abc_history)

#!/usr/bin/env python3
"""
Unit tests for configuration defaults.
"""
import tempfile
from pathlib import Path

import pytest

from clipring.config import (
    HISTORY_FILE_NAME,
    Settings,
    default_data_dir,
    default_runtime_dir,
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every variable the defaults depend on."""
    for name in (
        "CLIPRING_DATA_DIR",
        "CLIPRING_RUNTIME_DIR",
        "XDG_DATA_HOME",
        "XDG_RUNTIME_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_data_dir_explicit(clean_env: pytest.MonkeyPatch) -> None:
    """Test CLIPRING_DATA_DIR wins over XDG_DATA_HOME."""
    clean_env.setenv("CLIPRING_DATA_DIR", "/data/clip")
    clean_env.setenv("XDG_DATA_HOME", "/xdg")
    assert default_data_dir() == Path("/data/clip")


def test_data_dir_xdg(clean_env: pytest.MonkeyPatch) -> None:
    """Test XDG_DATA_HOME is used with a clipring subdirectory."""
    clean_env.setenv("XDG_DATA_HOME", "/xdg")
    assert default_data_dir() == Path("/xdg/clipring")


def test_data_dir_home(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Test the fallback under ~/.local/share."""
    clean_env.setenv("HOME", str(tmp_path))
    assert default_data_dir() == tmp_path / ".local" / "share" / "clipring"


def test_runtime_dir_explicit(clean_env: pytest.MonkeyPatch) -> None:
    """Test CLIPRING_RUNTIME_DIR wins over XDG_RUNTIME_DIR."""
    clean_env.setenv("CLIPRING_RUNTIME_DIR", "/run/clip")
    clean_env.setenv("XDG_RUNTIME_DIR", "/run/user/1000")
    assert default_runtime_dir() == Path("/run/clip")


def test_runtime_dir_xdg(clean_env: pytest.MonkeyPatch) -> None:
    """Test XDG_RUNTIME_DIR is used directly."""
    clean_env.setenv("XDG_RUNTIME_DIR", "/run/user/1000")
    assert default_runtime_dir() == Path("/run/user/1000")


def test_runtime_dir_tempdir(clean_env: pytest.MonkeyPatch) -> None:
    """Test the fallback to the temporary directory."""
    assert default_runtime_dir() == Path(tempfile.gettempdir())


def test_settings_history_path(tmp_path: Path) -> None:
    """Test the history file lives in the data directory."""
    settings = Settings(data_dir=tmp_path, runtime_dir=tmp_path)
    assert settings.history_path == tmp_path / HISTORY_FILE_NAME
    assert settings.spawn_monitor is True
    assert settings.ignore_windows == ()

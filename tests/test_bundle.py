#!/usr/bin/env python3
"""
Unit tests for DataBundle.
"""
import pytest

from clipring.bundle import DataBundle


def test_from_text_encodes_utf8() -> None:
    """Test from_text stores UTF-8 text/plain."""
    bundle = DataBundle.from_text("café")
    assert bundle["text/plain"] == "café".encode("utf-8")
    assert bundle.text == "café"


def test_text_none_without_text_format() -> None:
    """Test text is None when the bundle has no text/plain."""
    assert DataBundle([("image/png", b"\x89PNG")]).text is None


def test_equality_ignores_format_order() -> None:
    """Test bundles with the same formats in another order are equal."""
    first = DataBundle([("a/x", b"1"), ("b/y", b"2")])
    second = DataBundle([("b/y", b"2"), ("a/x", b"1")])
    assert first == second
    assert hash(first) == hash(second)


def test_equality_compares_every_format() -> None:
    """Test a differing secondary format breaks equality."""
    first = DataBundle([("text/plain", b"a"), ("text/html", b"<i>a</i>")])
    second = DataBundle([("text/plain", b"a"), ("text/html", b"<b>a</b>")])
    assert first != second


def test_formats_keep_insertion_order(rich_bundle: DataBundle) -> None:
    """Test formats lists names in insertion order."""
    assert rich_bundle.formats == ["text/plain", "text/html", "TIMESTAMP"]


def test_bundle_is_read_only(rich_bundle: DataBundle) -> None:
    """Test item assignment is not supported."""
    with pytest.raises(TypeError):
        rich_bundle["text/plain"] = b"x"  # type: ignore[index]


def test_with_format_returns_copy(rich_bundle: DataBundle) -> None:
    """Test with_format leaves the original untouched."""
    updated = rich_bundle.with_format("text/plain", b"bye")
    assert updated["text/plain"] == b"bye"
    assert rich_bundle["text/plain"] == b"hello"

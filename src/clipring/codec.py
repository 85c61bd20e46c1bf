#!/usr/bin/env python3
"""
Binary payload codecs.

Payloads carried inside protocol frames, and the persisted history file,
use the same big-endian length-prefixed layout as the frames themselves:

- bundle:    [>I format count] then per format
             [>I name length][UTF-8 name][>I payload length][payload]
- arguments: [>I count] then per argument [>I length][UTF-8 text]
- response:  [>i exit code][output bytes]

Decoders raise ProtocolError on truncated or otherwise malformed input.
"""
from __future__ import annotations

import struct

from clipring.bundle import DataBundle
from clipring.protocol import ProtocolError

_UINT = struct.Struct(">I")
_INT = struct.Struct(">i")


class PayloadReader:
    """
    Sequential reader over a payload buffer.

    Tracks the read offset so several values (for example all bundles of a
    persisted history) can be decoded from one buffer.
    """

    def __init__(self, data: bytes, offset: int = 0) -> None:
        self.data = data
        self.offset = offset

    @property
    def at_end(self) -> bool:
        """True when every byte has been consumed."""
        return self.offset >= len(self.data)

    def take(self, size: int) -> bytes:
        """
        Consume size bytes.

        Raises:
            ProtocolError: If fewer than size bytes remain.
        """
        end = self.offset + size
        if end > len(self.data):
            raise ProtocolError(
                f"Truncated payload: need {size} bytes at offset {self.offset}, "
                f"have {len(self.data) - self.offset}"
            )
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def take_uint(self) -> int:
        """Consume one big-endian unsigned 32-bit integer."""
        return _UINT.unpack(self.take(_UINT.size))[0]

    def take_blob(self) -> bytes:
        """Consume a length-prefixed byte string."""
        return self.take(self.take_uint())

    def take_text(self) -> str:
        """
        Consume a length-prefixed UTF-8 string.

        Raises:
            ProtocolError: If the bytes are not valid UTF-8.
        """
        raw = self.take_blob()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolError(f"Invalid UTF-8 string: {e}") from e


def _blob(data: bytes) -> bytes:
    return _UINT.pack(len(data)) + data


def encode_bundle(bundle: DataBundle) -> bytes:
    """
    Serialize a bundle.

    Args:
        bundle: The bundle to serialize.

    Returns:
        Format-count-prefixed list of (name, payload) pairs.
    """
    parts = [_UINT.pack(len(bundle))]
    for fmt, data in bundle.items():
        parts.append(_blob(fmt.encode("utf-8")))
        parts.append(_blob(data))
    return b"".join(parts)


def read_bundle(reader: PayloadReader) -> DataBundle:
    """
    Decode one bundle at the reader's current offset.

    Args:
        reader: Payload reader positioned at a serialized bundle.

    Returns:
        The decoded bundle.

    Raises:
        ProtocolError: On truncated data or invalid format names.
    """
    count = reader.take_uint()
    items = []
    for _ in range(count):
        fmt = reader.take_text()
        items.append((fmt, reader.take_blob()))
    return DataBundle(items)


def decode_bundle(data: bytes) -> DataBundle:
    """
    Decode a payload holding exactly one bundle.

    Raises:
        ProtocolError: On malformed data or trailing bytes.
    """
    reader = PayloadReader(data)
    bundle = read_bundle(reader)
    if not reader.at_end:
        raise ProtocolError(f"{len(data) - reader.offset} trailing bytes after bundle")
    return bundle


def encode_arguments(args: list[str]) -> bytes:
    """Serialize a command argument list."""
    return _UINT.pack(len(args)) + b"".join(_blob(arg.encode("utf-8")) for arg in args)


def decode_arguments(data: bytes) -> list[str]:
    """
    Decode a command argument list.

    Raises:
        ProtocolError: On malformed data or trailing bytes.
    """
    reader = PayloadReader(data)
    args = [reader.take_text() for _ in range(reader.take_uint())]
    if not reader.at_end:
        raise ProtocolError(f"{len(data) - reader.offset} trailing bytes after arguments")
    return args


def encode_response(exit_code: int, output: bytes) -> bytes:
    """Serialize a command response."""
    return _INT.pack(exit_code) + output


def decode_response(data: bytes) -> tuple[int, bytes]:
    """
    Decode a command response into (exit_code, output).

    Raises:
        ProtocolError: If the payload is shorter than the exit code.
    """
    if len(data) < _INT.size:
        raise ProtocolError(f"Response too short: {len(data)} bytes")
    return _INT.unpack(data[:_INT.size])[0], data[_INT.size:]

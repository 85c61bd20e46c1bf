#!/usr/bin/env python3
"""
Length-prefixed message framing for local IPC.

Every message on a clipring socket is a frame: a 4-byte unsigned length in
network byte order followed by exactly that many payload bytes. A frame
with length 0 carries no body and serves as a "ping" (used to wake a
running instance).

Example: b"\\x00\\x00\\x00\\x05hello" encodes the 5-byte payload "hello".

Reads are fail-closed: a poll that times out, or a peer that closes before
the declared length arrives, makes the read return None and no partial
payload is handed to the caller. The stream is not resynchronized after
such a failure, so callers must close the connection.
"""
from __future__ import annotations

import asyncio
import struct

# Struct format of the length prefix.
LENGTH_FORMAT: str = ">I"

# Size of the length prefix in bytes.
LENGTH_SIZE: int = struct.calcsize(LENGTH_FORMAT)

# Seconds to wait for more bytes each time the read buffer runs dry.
READ_TIMEOUT: float = 1.0

# Largest payload accepted from a peer (128 MB).
# A larger declared length is treated as a malformed frame.
MAX_MESSAGE_SIZE: int = 134217728

# Ping message: a frame with zero-length payload.
PING_MESSAGE: bytes = b"\x00\x00\x00\x00"


class ProtocolError(Exception):
    """
    Exception raised for malformed message payloads.

    Framing failures never raise; this is raised by the payload codecs
    when a well-framed message cannot be decoded.
    """

    pass


def encode_message(payload: bytes) -> bytes:
    """
    Encode a payload as a single frame.

    Args:
        payload: Raw message bytes.

    Returns:
        Length prefix followed by the payload.
    """
    return struct.pack(LENGTH_FORMAT, len(payload)) + payload


def is_ping(payload: bytes) -> bool:
    """
    Check if a decoded payload is a ping (empty body).

    Args:
        payload: Decoded message payload.

    Returns:
        True if payload is empty bytes, False otherwise.
    """
    return payload == b""


async def write_message(writer: asyncio.StreamWriter, payload: bytes) -> None:
    """
    Write one frame and wait for the transport to accept it.

    The prefix and body go out in a single write so no other frame can be
    interleaved between them.

    Args:
        writer: asyncio StreamWriter to write to.
        payload: Raw message bytes.
    """
    writer.write(encode_message(payload))
    await writer.drain()


async def read_bytes(
    reader: asyncio.StreamReader, size: int, timeout: float = READ_TIMEOUT
) -> bytes | None:
    """
    Read exactly size bytes from a stream.

    Each time the buffered data is insufficient the stream is polled again
    with the given timeout, so a slow peer can stretch the whole read past
    the timeout as long as every single poll succeeds.

    Args:
        reader: asyncio StreamReader to read from.
        size: Number of bytes to read.
        timeout: Seconds allowed for each poll.

    Returns:
        The bytes read, or None on timeout or end of stream.
    """
    data = bytearray()
    while len(data) < size:
        try:
            chunk = await asyncio.wait_for(reader.read(size - len(data)), timeout)
        except asyncio.TimeoutError:
            return None
        if not chunk:
            return None
        data += chunk
    return bytes(data)


async def read_message(
    reader: asyncio.StreamReader,
    timeout: float = READ_TIMEOUT,
    *,
    wait: bool = False,
) -> bytes | None:
    """
    Read one frame and return its payload.

    Args:
        reader: asyncio StreamReader to read from.
        timeout: Seconds allowed for each poll.
        wait: If True, wait without a timeout for the first byte of the
            frame. Used on long-lived connections that sit idle between
            messages; the per-poll timeout applies once a frame starts.

    Returns:
        Payload bytes, or None on timeout, end of stream or an oversized
        length field.
    """
    prefix = b""
    if wait:
        prefix = await reader.read(LENGTH_SIZE)
        if not prefix:
            return None
    rest = await read_bytes(reader, LENGTH_SIZE - len(prefix), timeout)
    if rest is None:
        return None
    (length,) = struct.unpack(LENGTH_FORMAT, prefix + rest)
    if length > MAX_MESSAGE_SIZE:
        return None
    return await read_bytes(reader, length, timeout)

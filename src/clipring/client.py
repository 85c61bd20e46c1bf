#!/usr/bin/env python3
"""Command client for clipring.

Sends one command line to the running server over the command endpoint
and returns the server's exit code and output. The connect is retried a
few times with exponential backoff via tenacity, which covers a server
that is still starting up.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from clipring.codec import decode_response, encode_arguments
from clipring.endpoint import command_server_name, endpoint_path
from clipring.protocol import ProtocolError, read_message, write_message

logger = logging.getLogger(__name__)

# Connect attempts before giving up.
CONNECT_ATTEMPTS: int = 3

# Initial and maximum delay between connect attempts in seconds.
INITIAL_WAIT: float = 0.2
MAX_WAIT: float = 1.0

# Seconds allowed per read poll while waiting for the response.
# Longer than the protocol default: the server may be saving history.
RESPONSE_TIMEOUT: float = 5.0


@retry(
    wait=wait_exponential(multiplier=INITIAL_WAIT, min=INITIAL_WAIT, max=MAX_WAIT),
    retry=retry_if_exception_type(ConnectionError),
    stop=stop_after_attempt(CONNECT_ATTEMPTS),
    reraise=True,
)
async def connect_to_server(
    socket_path: str,
) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    """Connect to the server's command endpoint.

    Args:
        socket_path: Path to the Unix domain socket.

    Returns:
        Tuple of (StreamReader, StreamWriter) for the connection.

    Raises:
        ConnectionError: If every attempt fails.
    """
    logger.debug("Connecting to server at %s", socket_path)
    try:
        return await asyncio.open_unix_connection(socket_path)
    except OSError as e:
        raise ConnectionError(f"Failed to connect to {socket_path}: {e}") from e


async def send_command(
    args: list[str], runtime_dir: str | Path | None = None
) -> tuple[int, bytes]:
    """Run a command on the server.

    Args:
        args: Command name followed by its arguments.
        runtime_dir: Directory holding the server socket.

    Returns:
        Tuple of (exit code, output bytes) sent by the server.

    Raises:
        ConnectionError: If the server cannot be reached.
        ProtocolError: If the server closes without a valid response.
    """
    socket_path = endpoint_path(command_server_name(), runtime_dir)
    reader, writer = await connect_to_server(socket_path)
    try:
        await write_message(writer, encode_arguments(args))
        payload = await read_message(reader, RESPONSE_TIMEOUT)
    finally:
        writer.close()
        await writer.wait_closed()
    if payload is None:
        raise ProtocolError("Server closed connection without a response")
    return decode_response(payload)

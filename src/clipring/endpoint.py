#!/usr/bin/env python3
"""Named local endpoints and single-instance detection.

An endpoint is a Unix domain socket in the runtime directory whose name is
a fixed base name plus the current OS user, so several users on one host
never collide. bind_or_detect_existing() is the only way a process becomes
the owner of an endpoint:

- probe the name with a short client connect; if something answers, send
  it a ping frame and report AlreadyRunning;
- otherwise take an exclusive lock on "<socket>.lock", remove any stale
  socket file left by a crashed instance and listen on a fresh socket.

Two processes starting at the same moment can both see a failed probe.
Only one of them gets the lock; the other reports AlreadyRunning exactly
as if the probe had succeeded.
"""

from __future__ import annotations

import asyncio
import fcntl
import logging
import os
import socket
import sys
from collections.abc import Awaitable, Callable
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path

from clipring.config import default_runtime_dir
from clipring.protocol import write_message

logger = logging.getLogger(__name__)

# Seconds allowed for the liveness probe connect.
CONNECT_TIMEOUT: float = 2.0

# Base name of the command endpoint (clients -> server).
COMMAND_SERVER_BASE: str = "clipring_server"

# Base name of the monitor endpoint (clipboard monitor <-> server).
MONITOR_SERVER_BASE: str = "clipring_monitor_server"

ClientConnectedCallback = Callable[
    [asyncio.StreamReader, asyncio.StreamWriter], Awaitable[None]
]


@dataclass
class Bound:
    """This process owns the endpoint and is listening on it.

    Attributes:
        server: The listening asyncio server.
        path: Socket file path.
        lock_fd: Descriptor holding the endpoint lock.
    """

    server: asyncio.AbstractServer
    path: str
    lock_fd: int

    async def close(self) -> None:
        """Stop listening, remove the socket file and release the lock."""
        self.server.close()
        await self.server.wait_closed()
        cleanup_socket(self.path)
        _release_lock(self.lock_fd)


@dataclass(frozen=True)
class AlreadyRunning:
    """Another process owns the endpoint (or won the race to bind it)."""

    path: str


def user_identity() -> str:
    """Return the current OS user name from the environment."""
    env_name = "USERNAME" if sys.platform == "win32" else "USER"
    return os.environ.get(env_name, "")


def server_name(base: str) -> str:
    """Return the per-user endpoint name for a base name."""
    return f"{base}_{user_identity()}"


def command_server_name() -> str:
    return server_name(COMMAND_SERVER_BASE)


def monitor_server_name() -> str:
    return server_name(MONITOR_SERVER_BASE)


def endpoint_path(name: str, runtime_dir: str | Path | None = None) -> str:
    """Return the socket file path for an endpoint name.

    Args:
        name: Endpoint name from server_name().
        runtime_dir: Directory for socket files; defaults to
            config.default_runtime_dir().
    """
    directory = Path(runtime_dir) if runtime_dir is not None else default_runtime_dir()
    return str(directory / name)


async def probe_endpoint(path: str, timeout: float = CONNECT_TIMEOUT) -> bool:
    """Check whether a live process is listening on an endpoint.

    On success a ping frame is sent so the running instance learns that
    another one tried to start.

    Args:
        path: Socket file path.
        timeout: Seconds allowed for the connect.

    Returns:
        True if the connect succeeded, False on any failure or timeout.
    """
    try:
        _, writer = await asyncio.wait_for(asyncio.open_unix_connection(path), timeout)
    except (OSError, asyncio.TimeoutError) as e:
        logger.debug("No instance listening on %s: %s", path, e)
        return False
    try:
        await write_message(writer, b"")
    except OSError as e:
        logger.debug("Ping to %s failed: %s", path, e)
    finally:
        writer.close()
        with suppress(OSError):
            await writer.wait_closed()
    return True


def cleanup_socket(socket_path: str) -> None:
    """Remove a socket file if it exists."""
    try:
        os.unlink(socket_path)
    except FileNotFoundError:
        pass


def _acquire_lock(socket_path: str) -> int | None:
    try:
        fd = os.open(socket_path + ".lock", os.O_RDWR | os.O_CREAT, 0o600)
    except OSError as e:
        logger.warning("Cannot open lock file for %s: %s", socket_path, e)
        return None
    try:
        fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        os.close(fd)
        return None
    return fd


def _release_lock(fd: int) -> None:
    with suppress(OSError):
        fcntl.flock(fd, fcntl.LOCK_UN)
    os.close(fd)


def _listening_socket(socket_path: str) -> socket.socket:
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.bind(socket_path)
        os.chmod(socket_path, 0o600)
        sock.listen()
        sock.setblocking(False)
    except OSError:
        sock.close()
        raise
    return sock


async def bind_or_detect_existing(
    name: str,
    client_connected_cb: ClientConnectedCallback,
    runtime_dir: str | Path | None = None,
    connect_timeout: float = CONNECT_TIMEOUT,
) -> Bound | AlreadyRunning:
    """Become the owner of an endpoint or detect the current owner.

    Args:
        name: Endpoint name from server_name().
        client_connected_cb: Coroutine run for every accepted connection.
        runtime_dir: Directory for socket files.
        connect_timeout: Seconds allowed for the liveness probe.

    Returns:
        Bound if this process now listens on the endpoint, AlreadyRunning
        if another process answered the probe or won the race to bind.
    """
    path = endpoint_path(name, runtime_dir)
    if await probe_endpoint(path, connect_timeout):
        logger.debug("Instance already running on %s", path)
        return AlreadyRunning(path)

    Path(path).parent.mkdir(parents=True, exist_ok=True)
    lock_fd = _acquire_lock(path)
    if lock_fd is None:
        logger.debug("Lost the race to bind %s", path)
        return AlreadyRunning(path)

    cleanup_socket(path)
    try:
        sock = _listening_socket(path)
        try:
            server = await asyncio.start_unix_server(client_connected_cb, sock=sock)
        except OSError:
            sock.close()
            raise
    except OSError as e:
        logger.warning("Cannot listen on %s: %s", path, e)
        _release_lock(lock_fd)
        return AlreadyRunning(path)

    logger.debug("Listening on %s", path)
    return Bound(server=server, path=path, lock_fd=lock_fd)

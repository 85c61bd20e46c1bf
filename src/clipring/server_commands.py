#!/usr/bin/env python3
"""Client command execution.

A client sends its command line as an argument list; run_command() applies
it to the server's history and returns an exit code plus output bytes,
which the client prints and exits with.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from clipring.bundle import DataBundle
from clipring.history import MoveDirection, alphabetical_order, reverse_order

if TYPE_CHECKING:
    from clipring.server_state import ServerState

logger = logging.getLogger(__name__)

# Characters of an item shown by the list command.
PREVIEW_LENGTH: int = 80

USAGE = """\
Commands:
  ping                         check that the server is running
  add TEXT...                  add items (the first one ends on top)
  read [ROW...]                print item text (default: row 0)
  size                         print number of items
  list [REGEX]                 print rows whose text matches REGEX
  select ROW                   move item to the top and set the clipboard
  remove [ROW...]              remove items (default: row 0)
  clear                        remove all items
  move up|down|top|bottom ROW...
                               move items
  sort ROW...                  sort items alphabetically
  reverse ROW...               reverse order of items
  hash [ROW]                   print item fingerprint (default: row 0)
  find FINGERPRINT             print row of the item with the fingerprint
  edit ROW TEXT                replace item content with TEXT
  config max_items [N]         print or set history capacity
"""


class CommandError(Exception):
    """Raised for invalid command arguments; the message is shown to the user."""

    pass


def _parse_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise CommandError(f"Invalid number: {value!r}") from None


def _parse_rows(state: ServerState, args: list[str], default: list[int]) -> list[int]:
    rows = [_parse_int(arg) for arg in args] if args else default
    for row in rows:
        if not 0 <= row < len(state.history):
            raise CommandError(f"Row {row} out of range")
    return rows


def _require(args: list[str], count: int, usage: str) -> None:
    if len(args) < count:
        raise CommandError(f"Usage: {usage}")


def _preview(text: str) -> str:
    line = text.strip().splitlines()[0] if text.strip() else ""
    if len(line) > PREVIEW_LENGTH:
        line = line[:PREVIEW_LENGTH - 3] + "..."
    return line


def _cmd_ping(state: ServerState, args: list[str]) -> str:
    return ""


def _cmd_help(state: ServerState, args: list[str]) -> str:
    return USAGE


def _cmd_add(state: ServerState, args: list[str]) -> str:
    _require(args, 1, "add TEXT...")
    for text in reversed(args):
        state.history.insert_at_front(DataBundle.from_text(text), force=True)
    return ""


def _cmd_read(state: ServerState, args: list[str]) -> str:
    rows = [_parse_int(arg) for arg in args] if args else [0]
    texts = []
    for row in rows:
        bundle = state.history.bundle_at(row)
        texts.append((bundle.text or "") if bundle is not None else "")
    return "\n".join(texts)


def _cmd_size(state: ServerState, args: list[str]) -> str:
    return f"{len(state.history)}\n"


def _cmd_list(state: ServerState, args: list[str]) -> str:
    state.history_filter.set_pattern(args[0] if args else "")
    lines = [
        f"{row}\t{_preview(state.history[row].text)}\n"
        for row in state.history_filter.visible_rows(state.history)
    ]
    return "".join(lines)


def _cmd_select(state: ServerState, args: list[str]) -> str:
    _require(args, 1, "select ROW")
    (row,) = _parse_rows(state, args[:1], [])
    state.history.move_to_front(row)
    return ""


def _cmd_remove(state: ServerState, args: list[str]) -> str:
    if not len(state.history):
        raise CommandError("History is empty")
    rows = _parse_rows(state, args, [0])
    for row in sorted(set(rows), reverse=True):
        state.history.remove_at(row)
    return ""


def _cmd_clear(state: ServerState, args: list[str]) -> str:
    state.history.clear()
    return ""


def _cmd_move(state: ServerState, args: list[str]) -> str:
    _require(args, 2, "move up|down|top|bottom ROW...")
    try:
        direction = MoveDirection(args[0])
    except ValueError:
        raise CommandError(f"Unknown direction: {args[0]!r}") from None
    rows = _parse_rows(state, args[1:], [])
    state.history.move_selection_by(rows, direction)
    return ""


def _cmd_sort(state: ServerState, args: list[str]) -> str:
    _require(args, 1, "sort ROW...")
    state.history.sort_subset(_parse_rows(state, args, []), alphabetical_order)
    return ""


def _cmd_reverse(state: ServerState, args: list[str]) -> str:
    _require(args, 1, "reverse ROW...")
    state.history.sort_subset(_parse_rows(state, args, []), reverse_order)
    return ""


def _cmd_hash(state: ServerState, args: list[str]) -> str:
    (row,) = _parse_rows(state, args[:1], [0])
    return f"{state.history[row].fingerprint}\n"


def _cmd_find(state: ServerState, args: list[str]) -> str:
    _require(args, 1, "find FINGERPRINT")
    row = state.history.find_by_fingerprint(_parse_int(args[0]))
    if row is None:
        raise CommandError(f"No item with fingerprint {args[0]}")
    return f"{row}\n"


def _cmd_edit(state: ServerState, args: list[str]) -> str:
    _require(args, 2, "edit ROW TEXT")
    (row,) = _parse_rows(state, args[:1], [])
    state.history.set_text(row, args[1])
    return ""


def _cmd_config(state: ServerState, args: list[str]) -> str:
    _require(args, 1, "config max_items [N]")
    if args[0] != "max_items":
        raise CommandError(f"Unknown option: {args[0]!r}")
    if len(args) > 1:
        max_items = _parse_int(args[1])
        state.history.set_max_items(max_items)
        state.settings.max_items = state.history.max_items
        return ""
    return f"{state.history.max_items}\n"


COMMANDS: dict[str, Callable[[ServerState, list[str]], str]] = {
    "ping": _cmd_ping,
    "help": _cmd_help,
    "add": _cmd_add,
    "read": _cmd_read,
    "size": _cmd_size,
    "list": _cmd_list,
    "select": _cmd_select,
    "remove": _cmd_remove,
    "clear": _cmd_clear,
    "move": _cmd_move,
    "sort": _cmd_sort,
    "reverse": _cmd_reverse,
    "hash": _cmd_hash,
    "find": _cmd_find,
    "edit": _cmd_edit,
    "config": _cmd_config,
}


def run_command(state: ServerState, args: list[str]) -> tuple[int, bytes]:
    """Execute one client command against the server state.

    Args:
        state: The server state.
        args: Command name followed by its arguments; empty means ping.

    Returns:
        Tuple of (exit code, UTF-8 encoded output).
    """
    if not args:
        return 0, b""
    handler = COMMANDS.get(args[0])
    if handler is None:
        return 1, f"Unknown command: {args[0]!r}\n\n{USAGE}".encode("utf-8")
    try:
        output = handler(state, args[1:])
    except CommandError as e:
        logger.debug("Command %s failed: %s", args[0], e)
        return 1, f"{e}\n".encode("utf-8")
    return 0, output.encode("utf-8")

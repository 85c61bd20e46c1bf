#!/usr/bin/env python3
"""
Unit tests for client command execution on the server.

Uses the server_state fixture, whose history holds a, b, c at rows 0-2.
"""
import pytest

from clipring.config import HASHED_FORMATS
from clipring.fingerprint import fingerprint
from clipring.server_commands import USAGE, run_command
from clipring.server_state import ServerState
from conftest import text_bundle


def texts(state: ServerState) -> list[str]:
    """Return the text of every history item, row 0 first."""
    return [item.text for item in state.history]


def test_empty_arguments_succeed(server_state: ServerState) -> None:
    """Test an empty command line behaves like ping."""
    assert run_command(server_state, []) == (0, b"")


def test_ping(server_state: ServerState) -> None:
    """Test ping succeeds without output."""
    assert run_command(server_state, ["ping"]) == (0, b"")


def test_help(server_state: ServerState) -> None:
    """Test help prints usage."""
    assert run_command(server_state, ["help"]) == (0, USAGE.encode("utf-8"))


def test_unknown_command(server_state: ServerState) -> None:
    """Test an unknown command fails with usage."""
    code, output = run_command(server_state, ["frobnicate"])
    assert code == 1
    assert b"Unknown command: 'frobnicate'" in output
    assert USAGE.encode("utf-8") in output


def test_add_first_argument_on_top(server_state: ServerState) -> None:
    """Test add inserts arguments so the first ends at row 0."""
    assert run_command(server_state, ["add", "x", "y"]) == (0, b"")
    assert texts(server_state)[:3] == ["x", "y", "a"]


def test_add_forces_duplicate(server_state: ServerState) -> None:
    """Test add stores text equal to row 0 anyway."""
    run_command(server_state, ["add", "a"])
    assert texts(server_state) == ["a", "a", "b", "c"]


def test_add_without_text_fails(server_state: ServerState) -> None:
    """Test add needs at least one argument."""
    assert run_command(server_state, ["add"]) == (1, b"Usage: add TEXT...\n")


@pytest.mark.parametrize(
    "args, expected",
    [
        (["read"], b"a"),
        (["read", "2"], b"c"),
        (["read", "0", "1"], b"a\nb"),
        (["read", "9"], b""),
    ],
)
def test_read(server_state: ServerState, args: list, expected: bytes) -> None:
    """Test read prints the text of the requested rows."""
    assert run_command(server_state, args) == (0, expected)


def test_read_invalid_number(server_state: ServerState) -> None:
    """Test read rejects a non-numeric row."""
    assert run_command(server_state, ["read", "x"]) == (1, b"Invalid number: 'x'\n")


def test_size(server_state: ServerState) -> None:
    """Test size prints the item count."""
    assert run_command(server_state, ["size"]) == (0, b"3\n")


def test_list_all(server_state: ServerState) -> None:
    """Test list prints each row with a preview."""
    assert run_command(server_state, ["list"]) == (0, b"0\ta\n1\tb\n2\tc\n")


def test_list_filtered(server_state: ServerState) -> None:
    """Test list applies the filter and remembers it."""
    server_state.history.insert_at_front(text_bundle("Banana\nsecond line"))
    assert run_command(server_state, ["list", "ban"]) == (0, b"0\tBanana\n")
    assert server_state.history_filter.pattern == "ban"


def test_list_long_preview_truncated(server_state: ServerState) -> None:
    """Test long items are shortened in the listing."""
    server_state.history.insert_at_front(text_bundle("x" * 200))
    _, output = run_command(server_state, ["list", "^x"])
    line = output.decode("utf-8").rstrip("\n").split("\t", 1)[1]
    assert len(line) == 80
    assert line.endswith("...")


def test_select(server_state: ServerState) -> None:
    """Test select moves an item to the top."""
    assert run_command(server_state, ["select", "2"]) == (0, b"")
    assert texts(server_state) == ["c", "a", "b"]


def test_select_out_of_range(server_state: ServerState) -> None:
    """Test select rejects an invalid row."""
    assert run_command(server_state, ["select", "3"]) == (1, b"Row 3 out of range\n")


def test_remove_default_row(server_state: ServerState) -> None:
    """Test remove without rows removes the current item."""
    assert run_command(server_state, ["remove"]) == (0, b"")
    assert texts(server_state) == ["b", "c"]


def test_remove_several_rows(server_state: ServerState) -> None:
    """Test remove handles rows given in any order."""
    assert run_command(server_state, ["remove", "0", "2"]) == (0, b"")
    assert texts(server_state) == ["b"]


def test_remove_empty_history(server_state: ServerState) -> None:
    """Test remove on an empty history fails."""
    server_state.history.clear()
    assert run_command(server_state, ["remove"]) == (1, b"History is empty\n")


def test_clear(server_state: ServerState) -> None:
    """Test clear removes everything."""
    assert run_command(server_state, ["clear"]) == (0, b"")
    assert len(server_state.history) == 0


def test_move(server_state: ServerState) -> None:
    """Test move applies a direction to rows."""
    assert run_command(server_state, ["move", "bottom", "0"]) == (0, b"")
    assert texts(server_state) == ["b", "c", "a"]


def test_move_unknown_direction(server_state: ServerState) -> None:
    """Test move rejects an unknown direction."""
    code, output = run_command(server_state, ["move", "sideways", "0"])
    assert code == 1
    assert b"Unknown direction" in output


def test_sort(server_state: ServerState) -> None:
    """Test sort orders rows alphabetically."""
    run_command(server_state, ["reverse", "0", "1", "2"])
    assert texts(server_state) == ["c", "b", "a"]
    assert run_command(server_state, ["sort", "0", "1", "2"]) == (0, b"")
    assert texts(server_state) == ["a", "b", "c"]


def test_hash_and_find(server_state: ServerState) -> None:
    """Test hash prints a fingerprint that find maps back to its row."""
    code, output = run_command(server_state, ["hash", "1"])
    assert code == 0
    value = int(output)
    assert value == fingerprint(text_bundle("b"), HASHED_FORMATS)
    assert run_command(server_state, ["find", str(value)]) == (0, b"1\n")


def test_find_missing(server_state: ServerState) -> None:
    """Test find fails for an unknown fingerprint."""
    code, _ = run_command(server_state, ["find", "1"])
    assert code == 1


def test_hash_empty_history(server_state: ServerState) -> None:
    """Test hash fails when there is no item."""
    server_state.history.clear()
    assert run_command(server_state, ["hash"]) == (1, b"Row 0 out of range\n")


def test_edit(server_state: ServerState) -> None:
    """Test edit replaces the text of a row."""
    assert run_command(server_state, ["edit", "1", "B!"]) == (0, b"")
    assert texts(server_state) == ["a", "B!", "c"]


def test_config_max_items(server_state: ServerState) -> None:
    """Test reading and changing the history capacity."""
    assert run_command(server_state, ["config", "max_items"]) == (0, b"10\n")
    assert run_command(server_state, ["config", "max_items", "2"]) == (0, b"")
    assert texts(server_state) == ["a", "b"]
    assert server_state.settings.max_items == 2


def test_config_unknown_option(server_state: ServerState) -> None:
    """Test config rejects unknown option names."""
    assert run_command(server_state, ["config", "color"]) == (
        1,
        b"Unknown option: 'color'\n",
    )

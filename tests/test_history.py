#!/usr/bin/env python3
"""
Unit tests for ClipboardHistory.

Covers insertion with duplicate rejection and capacity eviction, removal,
moves including batched wrap-around moves, subset sorting, fingerprint
lookup and the change events listeners receive.
"""
import pytest

from clipring.bundle import DataBundle
from clipring.fingerprint import fingerprint
from clipring.config import HASHED_FORMATS
from clipring.history import (
    ClipboardHistory,
    MoveDirection,
    alphabetical_order,
    reverse_order,
)
from clipring.history_events import (
    RowDataChanged,
    RowMoved,
    RowsInserted,
    RowsRemoved,
)
from conftest import text_bundle


def texts(history: ClipboardHistory) -> list[str]:
    """Return the text of every item, row 0 first."""
    return [item.text for item in history]


def letters_history(letters: str, max_items: int = 10) -> ClipboardHistory:
    """Create a history whose rows hold the given letters in order."""
    history = ClipboardHistory(max_items=max_items)
    for letter in letters:
        history.append(text_bundle(letter))
    return history


class TestInsert:
    """Tests for insert_at_front, insert and append."""

    def test_capacity_keeps_newest(self, history: ClipboardHistory) -> None:
        """Test adding four items to a capacity-3 history drops the oldest."""
        for text in "ABCD":
            assert history.insert_at_front(text_bundle(text)) is True
        assert texts(history) == ["D", "C", "B"]

    def test_duplicate_of_front_rejected(self, history: ClipboardHistory) -> None:
        """Test content equal to row 0 is not added twice."""
        history.insert_at_front(text_bundle("x"))
        assert history.insert_at_front(text_bundle("x")) is False
        assert len(history) == 1

    def test_duplicate_of_front_forced(self, history: ClipboardHistory) -> None:
        """Test force adds content even when equal to row 0."""
        history.insert_at_front(text_bundle("x"))
        assert history.insert_at_front(text_bundle("x"), force=True) is True
        assert texts(history) == ["x", "x"]

    def test_duplicate_of_older_row_added(self, abc_history: ClipboardHistory) -> None:
        """Test only row 0 is checked for duplicates."""
        assert abc_history.insert_at_front(text_bundle("b")) is True
        assert texts(abc_history) == ["b", "a", "b", "c"]

    def test_duplicate_check_uses_all_formats(self, history: ClipboardHistory) -> None:
        """Test same text with different HTML is not a duplicate."""
        history.insert_at_front(DataBundle([("text/plain", b"x"), ("text/html", b"1")]))
        added = history.insert_at_front(
            DataBundle([("text/plain", b"x"), ("text/html", b"2")])
        )
        assert added is True

    def test_insert_clamps_row(self, abc_history: ClipboardHistory) -> None:
        """Test insert past the end appends."""
        abc_history.insert(99, text_bundle("z"))
        assert texts(abc_history) == ["a", "b", "c", "z"]

    def test_insert_returns_item(self, abc_history: ClipboardHistory) -> None:
        """Test insert returns the stored item."""
        item = abc_history.insert(1, text_bundle("m"))
        assert abc_history[1] is item

    def test_append_refuses_when_full(self, history: ClipboardHistory) -> None:
        """Test append fails once the history is full."""
        for text in "abc":
            assert history.append(text_bundle(text)) is True
        assert history.append(text_bundle("d")) is False
        assert texts(history) == ["a", "b", "c"]

    def test_zero_capacity_keeps_nothing(self) -> None:
        """Test a history with capacity 0 stays empty."""
        history = ClipboardHistory(max_items=0)
        history.insert_at_front(text_bundle("a"))
        assert len(history) == 0

    def test_negative_capacity_is_zero(self) -> None:
        """Test a negative capacity is treated as 0."""
        assert ClipboardHistory(max_items=-5).max_items == 0


class TestAccess:
    """Tests for row access helpers."""

    def test_getitem_out_of_range(self, abc_history: ClipboardHistory) -> None:
        """Test indexing outside the history raises IndexError."""
        with pytest.raises(IndexError):
            abc_history[3]
        with pytest.raises(IndexError):
            abc_history[-1]

    def test_bundle_at(self, abc_history: ClipboardHistory) -> None:
        """Test bundle_at returns None out of range."""
        assert abc_history.bundle_at(1) == text_bundle("b")
        assert abc_history.bundle_at(3) is None

    @pytest.mark.parametrize(
        "row, cycle, expected",
        [(1, False, 1), (5, False, 2), (-1, False, 0), (3, True, 0), (-1, True, 2)],
    )
    def test_row_number(
        self, abc_history: ClipboardHistory, row: int, cycle: bool, expected: int
    ) -> None:
        """Test row_number clamps or wraps."""
        assert abc_history.row_number(row, cycle) == expected

    def test_row_number_empty(self, history: ClipboardHistory) -> None:
        """Test row_number on an empty history."""
        assert history.row_number(0) is None


class TestCapacity:
    """Tests for set_max_items."""

    def test_shrink_evicts_highest_rows(self, abc_history: ClipboardHistory) -> None:
        """Test shrinking keeps rows 0..n-1."""
        abc_history.set_max_items(1)
        assert texts(abc_history) == ["a"]

    def test_grow_keeps_items(self, abc_history: ClipboardHistory) -> None:
        """Test growing does not change content."""
        abc_history.set_max_items(50)
        assert abc_history.max_items == 50
        assert texts(abc_history) == ["a", "b", "c"]


class TestRemove:
    """Tests for remove_rows, remove_at and clear."""

    def test_remove_at(self, abc_history: ClipboardHistory) -> None:
        """Test removing a middle row."""
        assert abc_history.remove_at(1) is True
        assert texts(abc_history) == ["a", "c"]

    def test_remove_out_of_range(self, abc_history: ClipboardHistory) -> None:
        """Test removal of an invalid row fails without change."""
        assert abc_history.remove_at(3) is False
        assert abc_history.remove_rows(0, 0) is False
        assert len(abc_history) == 3

    def test_remove_rows_clamps_count(self, abc_history: ClipboardHistory) -> None:
        """Test a count past the end removes to the end."""
        assert abc_history.remove_rows(1, 10) is True
        assert texts(abc_history) == ["a"]

    def test_clear(self, abc_history: ClipboardHistory) -> None:
        """Test clear empties the history."""
        abc_history.clear()
        assert len(abc_history) == 0


class TestMove:
    """Tests for move and move_to_front."""

    def test_move_to_front_then_find(self, history: ClipboardHistory) -> None:
        """Test promoting B in [D, C, B] and finding D afterwards."""
        for text in "ABCD":
            history.insert_at_front(text_bundle(text))
        assert history.move_to_front(2) is True
        assert texts(history) == ["B", "D", "C"]
        d_print = fingerprint(text_bundle("D"), HASHED_FORMATS)
        assert history.find_by_fingerprint(d_print) == 1

    def test_move_to_front_of_front(self, abc_history: ClipboardHistory) -> None:
        """Test moving row 0 to the front changes nothing."""
        assert abc_history.move_to_front(0) is True
        assert texts(abc_history) == ["a", "b", "c"]

    def test_move_down(self, abc_history: ClipboardHistory) -> None:
        """Test moving towards higher rows."""
        assert abc_history.move(0, 2) is True
        assert texts(abc_history) == ["b", "c", "a"]

    def test_move_invalid(self, abc_history: ClipboardHistory) -> None:
        """Test moving from or to an invalid row fails."""
        assert abc_history.move(3, 0) is False
        assert abc_history.move(0, 3) is False
        assert texts(abc_history) == ["a", "b", "c"]


class TestMoveSelection:
    """Tests for move_selection_by."""

    def test_down(self) -> None:
        """Test moving two rows one step down."""
        history = letters_history("abcde")
        assert history.move_selection_by([1, 3], MoveDirection.DOWN) is False
        assert texts(history) == ["a", "c", "b", "e", "d"]

    def test_up_from_front_wraps(self) -> None:
        """Test moving row 0 up wraps it to the end."""
        history = letters_history("abcde")
        assert history.move_selection_by([0], MoveDirection.UP) is True
        assert texts(history) == ["b", "c", "d", "e", "a"]

    def test_up_block_from_front_wraps_in_order(self) -> None:
        """Test a wrapped block keeps its internal order."""
        history = letters_history("abcde")
        assert history.move_selection_by([0, 1], MoveDirection.UP) is True
        assert texts(history) == ["c", "d", "e", "a", "b"]

    def test_down_from_end_wraps(self) -> None:
        """Test moving the last row down wraps it to row 0."""
        history = letters_history("abcde")
        assert history.move_selection_by([4], MoveDirection.DOWN) is True
        assert texts(history) == ["e", "a", "b", "c", "d"]

    def test_up_into_front(self) -> None:
        """Test moving rows up so one lands at row 0."""
        history = letters_history("abcde")
        assert history.move_selection_by([2, 1], MoveDirection.UP) is True
        assert texts(history) == ["b", "c", "a", "d", "e"]

    def test_to_start(self) -> None:
        """Test moving rows to the top keeps their order."""
        history = letters_history("abcde")
        assert history.move_selection_by([4, 2], MoveDirection.TO_START) is True
        assert texts(history) == ["c", "e", "a", "b", "d"]

    def test_to_end(self) -> None:
        """Test moving rows to the bottom keeps their order."""
        history = letters_history("abcde")
        assert history.move_selection_by([0, 2], MoveDirection.TO_END) is True
        assert texts(history) == ["b", "d", "e", "a", "c"]

    def test_front_to_start_reports_no_change(self) -> None:
        """Test moving row 0 to the start leaves the history as it was."""
        history = letters_history("abc")
        assert history.move_selection_by([0], MoveDirection.TO_START) is False
        assert texts(history) == ["a", "b", "c"]

    def test_single_item_up_reports_no_change(self) -> None:
        """Test wrapping the only item onto itself is not a change."""
        history = letters_history("a")
        assert history.move_selection_by([0], MoveDirection.UP) is False
        assert texts(history) == ["a"]

    def test_invalid_row_no_change(self) -> None:
        """Test an out-of-range row aborts before moving anything."""
        history = letters_history("abc")
        assert history.move_selection_by([0, 7], MoveDirection.DOWN) is False
        assert texts(history) == ["a", "b", "c"]

    def test_empty_selection(self) -> None:
        """Test an empty selection is a no-op."""
        history = letters_history("abc")
        assert history.move_selection_by([], MoveDirection.UP) is False
        assert texts(history) == ["a", "b", "c"]

    def test_direction_from_string(self) -> None:
        """Test MoveDirection values match command names."""
        assert MoveDirection("top") is MoveDirection.TO_START
        assert MoveDirection("bottom") is MoveDirection.TO_END


class TestSort:
    """Tests for sort_subset."""

    def test_alphabetical(self) -> None:
        """Test sorting every row by text."""
        history = letters_history("cab")
        history.sort_subset([0, 1, 2], alphabetical_order)
        assert texts(history) == ["a", "b", "c"]

    def test_subset_only(self) -> None:
        """Test rows outside the subset stay in place."""
        history = letters_history("dzcya")
        history.sort_subset([0, 2, 4], alphabetical_order)
        assert texts(history) == ["a", "z", "c", "y", "d"]

    def test_reverse(self, abc_history: ClipboardHistory) -> None:
        """Test reverse_order reverses the selected rows."""
        abc_history.sort_subset([0, 1, 2], reverse_order)
        assert texts(abc_history) == ["c", "b", "a"]

    def test_stable_for_equal_items(self) -> None:
        """Test equal items keep the order rows were given in."""
        history = letters_history("bab")
        first_b, second_b = history[0], history[2]
        history.sort_subset([0, 1, 2], alphabetical_order)
        assert history[1] is first_b
        assert history[2] is second_b

    def test_invalid_row_no_change(self, abc_history: ClipboardHistory) -> None:
        """Test an invalid row leaves the history untouched."""
        abc_history.sort_subset([0, 5], reverse_order)
        assert texts(abc_history) == ["a", "b", "c"]


class TestEdit:
    """Tests for find_by_fingerprint, set_bundle and set_text."""

    def test_find_missing(self, abc_history: ClipboardHistory) -> None:
        """Test an unknown fingerprint returns None."""
        missing = fingerprint(text_bundle("nope"), HASHED_FORMATS)
        assert abc_history.find_by_fingerprint(missing) is None

    def test_find_lowest_row(self) -> None:
        """Test the lowest matching row is returned."""
        history = letters_history("xax")
        x_print = fingerprint(text_bundle("x"), HASHED_FORMATS)
        assert history.find_by_fingerprint(x_print) == 0

    def test_set_text_updates_fingerprint(self, abc_history: ClipboardHistory) -> None:
        """Test editing an item makes it findable by its new content."""
        assert abc_history.set_text(1, "new") is True
        new_print = fingerprint(text_bundle("new"), HASHED_FORMATS)
        assert abc_history.find_by_fingerprint(new_print) == 1

    def test_set_bundle_invalid_row(self, abc_history: ClipboardHistory) -> None:
        """Test editing an invalid row fails."""
        assert abc_history.set_bundle(3, text_bundle("x")) is False


class TestEvents:
    """Tests for change notifications."""

    @pytest.fixture
    def events(self, abc_history: ClipboardHistory) -> list:
        """Collect events emitted by abc_history."""
        collected: list = []
        abc_history.add_listener(collected.append)
        return collected

    def test_insert_event(self, abc_history: ClipboardHistory, events: list) -> None:
        """Test insertion emits RowsInserted."""
        abc_history.insert_at_front(text_bundle("z"))
        assert events == [RowsInserted(0, 0)]

    def test_eviction_event(self, abc_history: ClipboardHistory, events: list) -> None:
        """Test eviction emits RowsRemoved for the dropped tail."""
        abc_history.set_max_items(1)
        assert events == [RowsRemoved(1, 2)]

    def test_insert_over_capacity_events(self, history: ClipboardHistory) -> None:
        """Test an insert into a full history reports both changes."""
        for text in "abc":
            history.append(text_bundle(text))
        events: list = []
        history.add_listener(events.append)
        history.insert_at_front(text_bundle("d"))
        assert events == [RowsInserted(0, 0), RowsRemoved(3, 3)]

    def test_move_event(self, abc_history: ClipboardHistory, events: list) -> None:
        """Test move emits RowMoved."""
        abc_history.move(2, 0)
        assert events == [RowMoved(2, 0)]

    def test_sort_events_only_changed_rows(
        self, abc_history: ClipboardHistory, events: list
    ) -> None:
        """Test sorting reports only slots that received another item."""
        abc_history.sort_subset([0, 1, 2], reverse_order)
        assert events == [RowDataChanged(0), RowDataChanged(2)]

    def test_remove_listener(self, abc_history: ClipboardHistory, events: list) -> None:
        """Test a removed listener receives nothing."""
        abc_history.remove_listener(events.append)
        abc_history.clear()
        assert events == []

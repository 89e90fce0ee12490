"""Tests for column sort directions and the multi-column SortState."""

from __future__ import annotations

import pytest

from rowwindow.domain.models.sort import ColumnSort, SortEntry, SortState

ASC = ColumnSort.ASCENDING
DESC = ColumnSort.DESCENDING


# ---------------------------------------------------------------------------
# ColumnSort
# ---------------------------------------------------------------------------


class TestColumnSort:
    def test_cycle(self):
        assert ColumnSort.NONE.next() is ASC
        assert ASC.next() is DESC
        assert DESC.next() is ColumnSort.NONE

    def test_as_sql(self):
        assert ASC.as_sql() == "ASC"
        assert DESC.as_sql() == "DESC"
        assert ColumnSort.NONE.as_sql() is None

    def test_as_class(self):
        assert ASC.as_class() == "sort-asc"
        assert DESC.as_class() == "sort-desc"
        assert ColumnSort.NONE.as_class() == ""

    @pytest.mark.parametrize(
        "text, expected",
        [("asc", ASC), ("Descending", DESC), (" desc ", DESC), ("", ColumnSort.NONE)],
    )
    def test_parse(self, text, expected):
        assert ColumnSort.parse(text) is expected

    def test_parse_rejects_unknown(self):
        with pytest.raises(ValueError):
            ColumnSort.parse("sideways")


# ---------------------------------------------------------------------------
# SortState
# ---------------------------------------------------------------------------


class TestSortState:
    def test_empty_state_is_falsy(self):
        assert not SortState()
        assert len(SortState()) == 0

    def test_duplicate_columns_rejected(self):
        with pytest.raises(ValueError):
            SortState.of(("name", ASC), ("name", DESC))

    def test_none_direction_rejected(self):
        with pytest.raises(ValueError):
            SortState((SortEntry("name", ColumnSort.NONE),))

    def test_lookup_helpers(self):
        state = SortState.of(("name", ASC), ("score", DESC))
        assert state.columns == ("name", "score")
        assert state.direction_for("score") is DESC
        assert state.direction_for("other") is ColumnSort.NONE
        assert state.priority_of("score") == 1
        assert state.priority_of("other") is None

    def test_equality_and_hash(self):
        a = SortState.of(("name", ASC))
        b = SortState.of(("name", ASC))
        assert a == b
        assert hash(a) == hash(b)
        assert a != SortState.of(("name", DESC))

    def test_as_sql(self):
        state = SortState.of(("name", ASC), ("score", DESC))
        assert state.as_sql() == "name ASC, score DESC"
        assert SortState().as_sql() == ""


class TestToggle:
    def test_single_toggle_cycles_one_column(self):
        state = SortState()
        state = state.toggle("name")
        assert state == SortState.of(("name", ASC))
        state = state.toggle("name")
        assert state == SortState.of(("name", DESC))
        state = state.toggle("name")
        assert state == SortState()

    def test_single_toggle_replaces_other_columns(self):
        state = SortState.of(("name", DESC), ("score", ASC))
        assert state.toggle("score") == SortState.of(("score", DESC))
        assert state.toggle("id") == SortState.of(("id", ASC))

    def test_multi_toggle_appends_new_column_last(self):
        state = SortState.of(("name", ASC)).toggle_multi("score")
        assert state == SortState.of(("name", ASC), ("score", ASC))

    def test_multi_toggle_keeps_priority_when_cycling(self):
        state = SortState.of(("name", ASC), ("score", ASC)).toggle_multi("name")
        assert state == SortState.of(("name", DESC), ("score", ASC))

    def test_multi_toggle_removes_column_cycled_to_none(self):
        state = SortState.of(("name", DESC), ("score", ASC)).toggle_multi("name")
        assert state == SortState.of(("score", ASC))

    def test_toggle_returns_new_instance(self):
        state = SortState.of(("name", ASC))
        state.toggle_multi("score")
        assert state == SortState.of(("name", ASC))

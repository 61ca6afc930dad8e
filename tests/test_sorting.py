"""Tests for the sort engine."""

from datagrid_view.columns import ColumnRegistry
from datagrid_view.rows import Row
from datagrid_view.sorting import SortState, normalize_sort_value, parse_date_text, sort_rows


def _rows(*values: str) -> list[Row]:
    return [Row(cells=[value]) for value in values]


def _texts(rows: list[Row]) -> list[str]:
    return [row.cell(0) for row in rows]


def test_numbers_strip_separators():
    assert normalize_sort_value("1,200") == (0, 1200.0)
    assert normalize_sort_value("-4.5") == (0, -4.5)


def test_dates_need_a_separator():
    assert parse_date_text("2024-01-05") is not None
    assert parse_date_text("03/04/2024") is not None
    assert parse_date_text("January") is None
    assert parse_date_text("2024-99-99") is None


def test_natural_order_for_embedded_numbers():
    assert _texts(sort_rows(_rows("item10", "item2", "Item1"), 0)) == ["Item1", "item2", "item10"]


def test_numbers_sort_before_text():
    assert _texts(sort_rows(_rows("b", "10", "2", "a"), 0)) == ["2", "10", "a", "b"]


def test_dates_compare_chronologically():
    ordered = sort_rows(_rows("2024-01-05", "2023-12-31", "2024-01-01"), 0)
    assert _texts(ordered) == ["2023-12-31", "2024-01-01", "2024-01-05"]


def test_text_ignores_case_and_accents():
    assert _texts(sort_rows(_rows("eve", "Émile", "adam"), 0)) == ["adam", "Émile", "eve"]


def test_sort_is_stable_in_both_directions():
    rows = [
        Row(cells=["1"], row_id="a"),
        Row(cells=["2"], row_id="b"),
        Row(cells=["1"], row_id="c"),
        Row(cells=["2"], row_id="d"),
    ]
    asc = sort_rows(rows, 0, "asc")
    desc = sort_rows(rows, 0, "desc")
    assert [r.row_id for r in asc] == ["a", "c", "b", "d"]
    assert [r.row_id for r in desc] == ["b", "d", "a", "c"]


def test_negative_column_keeps_order():
    rows = _rows("b", "a")
    assert sort_rows(rows, -1) == rows


def test_toggle_policy():
    state = SortState()
    assert state.request("name") == "asc"
    assert state.request("name") == "desc"
    assert state.request("name") == "asc"
    state.request("name")
    assert state.request("role") == "asc"
    assert state.column_key == "role"


def test_retain_drops_undeclared_column():
    registry = ColumnRegistry(["Name", "Role"])
    state = SortState(column_key="role", direction="desc")
    registry.move(1, 0)
    assert state.column_index(registry) == 0
    registry.declare(["Name"])
    state.retain(registry)
    assert not state.active
    assert state.direction == "asc"

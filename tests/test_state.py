"""Tests for the session binding, using a plain dict as the session."""

import polars as pl
import pytest

from datagrid_view.state import TableViewBinding


@pytest.fixture
def binding(people_columns, people_rows) -> TableViewBinding:
    bound = TableViewBinding("people", session={})
    bound.load_table(
        people_columns,
        people_rows,
        attributes={"sortable": True, "selectable": True, "multi-select": True},
    )
    return bound


def _event_names(binding: TableViewBinding) -> list[str]:
    return [event["name"] for event in binding.state["events"]]


def test_load_mirrors_snapshot(binding):
    assert binding.loaded
    assert "tv_view_people" in binding.session
    state = binding.session["tv_state_people"]
    assert state["summary"] == "Showing 1-3 of 3"
    assert state["columnOrder"] == "name,email,role"
    assert state["stats"] == "3 of 3 rows"


def test_handlers_update_mirrored_state(binding):
    binding.handle_sort("name")
    assert binding.state["sortKey"] == "name"
    assert binding.state["last_event"]["name"] == "sort-changed"

    binding.handle_filter_query("admin")
    assert binding.state["filteredRows"] == 2

    binding.handle_row_click(0)
    assert binding.state["selectedCount"] == 1
    assert binding.state["selected_info"] == "Row 1: name: Ava, email: ava@example.com, role: Admin"
    assert binding.state["bulk"]["label"] == "1 selected"

    binding.clear_selection()
    assert binding.state["selectedCount"] == 0
    assert "bulk-cleared" in _event_names(binding)


def test_column_handlers(binding):
    binding.handle_move_column("name", 2)
    assert binding.state["columnOrder"] == "email,role,name"
    binding.handle_resize_column("email", 200)
    assert binding.state["columns"][0]["width"] == 200
    binding.handle_pin_columns("left:email")
    assert binding.state["pinSpec"] == "left:email"
    assert binding.state["columns"][0]["pinSide"] == "left"


def test_page_handlers(binding):
    binding.handle_page_size(2)
    assert binding.state["pageCount"] == 2
    binding.handle_page(2)
    assert binding.state["page"] == 2
    assert len(binding.state["rows"]) == 1
    binding.handle_page(99)
    assert binding.state["page"] == 2
    assert "page-normalized" in _event_names(binding)


def test_filter_rules_handler(binding):
    binding.handle_filter_rules([{"column": "role", "op": "neq", "value": "admin"}])
    assert binding.state["filteredRows"] == 1
    assert binding.state["last_event"]["detail"]["filtered"] == 1


def test_unloaded_binding_ignores_handlers():
    binding = TableViewBinding("nothing", session={})
    binding.handle_sort("name")
    binding.handle_scroll(100)
    assert not binding.loaded
    assert binding.view is None


def test_load_dataframe_and_unload():
    session = {}
    binding = TableViewBinding("frame", session=session)
    binding.load_dataframe(pl.DataFrame({"city": ["Oslo", "Lima", "Rome"]}), limit=2)
    assert binding.state["totalRows"] == 2
    assert binding.state["columns"][0]["headerName"] == "City"
    binding.unload()
    assert "tv_view_frame" not in session
    assert not binding.loaded


def test_bindings_do_not_share_state(people_columns, people_rows):
    session = {}
    first = TableViewBinding("a", session=session)
    second = TableViewBinding("b", session=session)
    first.load_table(people_columns, people_rows, attributes={"sortable": True})
    second.load_table(people_columns, people_rows[:1])
    first.handle_sort("name")
    assert second.state["sortKey"] is None
    assert second.state["totalRows"] == 1

"""Example Streamlit page demonstrating the table view engine.

Two tabs:
  1. Employees -- a generated polars DataFrame with sorting, free-text
     search, multi-select and a bulk-action bar.
  2. Virtualized -- 5,000 generated rows with windowing on, showing the
     materialised range as the slider "scrolls" the table.

Run with::

    streamlit run examples/table_view_demo/app.py
"""

import random

import polars as pl
import streamlit as st

from datagrid_view import (
    TableViewBinding,
    table_view,
    table_view_bulk_bar,
    table_view_detail_box,
    table_view_stats_bar,
)

_FIRST_NAMES = ["Ava", "Liam", "Mia", "Noah", "Emma", "Oliver", "Sophia", "Lucas"]
_DEPARTMENTS = ["Engineering", "Sales", "Marketing", "Support", "Finance"]
_ROLES = ["Admin", "Editor", "Viewer"]


def _employees(n: int, seed: int = 7) -> pl.DataFrame:
    rng = random.Random(seed)
    return pl.DataFrame(
        {
            "employee_id": list(range(1, n + 1)),
            "first_name": [rng.choice(_FIRST_NAMES) for _ in range(n)],
            "department": [rng.choice(_DEPARTMENTS) for _ in range(n)],
            "role": [rng.choice(_ROLES) for _ in range(n)],
            "salary": [rng.randrange(40_000, 160_000, 500) for _ in range(n)],
        }
    )


st.set_page_config(page_title="Table View Demo", layout="wide")
st.title("Table View Demo")

employees_tab, virtual_tab = st.tabs(["Employees", "Virtualized"])

with employees_tab:
    binding = TableViewBinding("employees")
    if not binding.loaded:
        binding.load_dataframe(
            _employees(120),
            attributes={
                "sortable": True,
                "selectable": True,
                "multi-select": True,
                "page-size": 25,
                "pin-columns": "left:employee_id",
            },
        )
    table_view_stats_bar(binding)
    table_view_bulk_bar(binding)
    table_view(binding)
    table_view_detail_box(binding)

with virtual_tab:
    virtual = TableViewBinding("virtual")
    if not virtual.loaded:
        virtual.load_dataframe(
            _employees(5_000, seed=11),
            attributes={
                "sortable": True,
                "virtualize": True,
                "row-height": 36,
                "overscan": 4,
                "page-size": 5_000,
            },
        )
        virtual.handle_scroll(0, 36 * 12)

    def _on_scroll() -> None:
        virtual.handle_scroll(st.session_state["virtual_offset"] * 36, 36 * 12)

    st.slider("Scroll position (rows)", 0, 4_988, key="virtual_offset", on_change=_on_scroll)
    window = virtual.state["window"]
    st.caption(
        f"Materialised rows {window['start']}-{window['end']} of {window['total']} "
        f"(top spacer {window['topSpacer']}px, bottom spacer {window['bottomSpacer']}px)"
    )
    table_view(virtual, show_controls=False)

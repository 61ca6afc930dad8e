"""Streamlit rendering helpers for a :class:`TableViewBinding`.

The helpers only read the mirrored state dict and wire widget callbacks to
the binding's ``handle_*`` methods; no view logic lives here.
"""

from typing import Any

import streamlit as st

from datagrid_view.state import TableViewBinding

_PAGE_SIZE_OPTIONS: tuple[int, ...] = (10, 25, 50, 100, 500)
_SORT_ARROWS: dict[str, str] = {"asc": " ▲", "desc": " ▼"}


def _header_label(column: dict[str, Any], state: dict[str, Any]) -> str:
    label = column["headerName"] or column["key"]
    if column["sorted"]:
        label += _SORT_ARROWS.get(state.get("sortDirection", "asc"), "")
    if column["pinSide"]:
        label = f"\U0001f4cc {label}"
    return label


def table_view_controls(binding: TableViewBinding) -> None:
    """Query box and page-size picker."""
    state = binding.state
    query_key = f"{binding.key}_query"
    size_key = f"{binding.key}_page_size"

    def on_query_change() -> None:
        binding.handle_filter_query(st.session_state[query_key])

    def on_size_change() -> None:
        binding.handle_page_size(st.session_state[size_key])

    col1, col2 = st.columns([3, 1])
    with col1:
        st.text_input("Search", placeholder="Search rows...", key=query_key, on_change=on_query_change)
    with col2:
        page_size = state.get("pageSize", _PAGE_SIZE_OPTIONS[0])
        options = sorted(set(_PAGE_SIZE_OPTIONS) | {page_size})
        st.selectbox(
            "Rows per page",
            options,
            index=options.index(page_size),
            key=size_key,
            on_change=on_size_change,
        )


def table_view(binding: TableViewBinding, show_controls: bool = True) -> None:
    """Render the controls, header, materialised rows and pager.

    Args:
        binding: A loaded :class:`TableViewBinding`.
        show_controls: Render the search box and page-size picker.
    """
    if not binding.loaded:
        st.info("No table loaded.")
        return
    state = binding.state
    view = binding.view

    if show_controls:
        table_view_controls(binding)

    columns = state["columns"]
    selectable = view is not None and view.has_attribute("selectable")
    widths = ([0.5] if selectable else []) + [max(1, (c["width"] or 120) / 120) for c in columns]

    header = st.columns(widths)
    offset = 1 if selectable else 0
    for i, column in enumerate(columns):
        with header[i + offset]:
            st.button(
                _header_label(column, state),
                key=f"{binding.key}_header_{column['key']}",
                on_click=binding.handle_sort,
                args=(column["key"],),
                use_container_width=True,
            )

    if state.get("emptyMessage"):
        st.info(state["emptyMessage"])
    for i, row in enumerate(state["rows"]):
        cells = st.columns(widths)
        if selectable:
            row_obj = view.window_rows[i] if view is not None and i < len(view.window_rows) else None
            selected = bool(row_obj is not None and row_obj in view.selection)
            with cells[0]:
                st.checkbox(
                    "select",
                    value=selected,
                    key=f"{binding.key}_row_{state['page']}_{state['window']['start'] + i}_{selected}",
                    on_change=binding.handle_row_click,
                    args=(i,),
                    label_visibility="collapsed",
                )
        for j, column in enumerate(columns):
            with cells[j + offset]:
                st.write(row.get(column["key"], ""))

    table_view_pager(binding)


def table_view_pager(binding: TableViewBinding) -> None:
    """Previous/next buttons around the page indicator."""
    state = binding.state
    page = state.get("page", 1)
    page_count = state.get("pageCount", 1)
    col1, col2, col3 = st.columns([1, 2, 1])
    with col1:
        st.button(
            "Previous",
            key=f"{binding.key}_prev",
            disabled=page <= 1,
            on_click=binding.handle_page,
            args=(page - 1,),
        )
    with col2:
        st.caption(f"Page {page} of {page_count}")
    with col3:
        st.button(
            "Next",
            key=f"{binding.key}_next",
            disabled=page >= page_count,
            on_click=binding.handle_page,
            args=(page + 1,),
        )


def table_view_stats_bar(binding: TableViewBinding) -> None:
    """Summary line plus row/selection counts."""
    state = binding.state
    if state.get("stats"):
        st.caption(f"{state.get('summary', '')} | {state['stats']}")
    else:
        st.caption(state.get("summary", "No records"))


def table_view_bulk_bar(binding: TableViewBinding) -> None:
    """Bulk-action bar; shown only while rows are selected."""
    bulk = binding.state.get("bulk") or {}
    if not bulk.get("visible"):
        return
    col1, col2 = st.columns([3, 1])
    with col1:
        st.markdown(f"**{bulk['label']}**")
    with col2:
        st.button(bulk["clearLabel"], key=f"{binding.key}_bulk_clear", on_click=binding.clear_selection)


def table_view_detail_box(binding: TableViewBinding) -> None:
    """The selected row's fields."""
    st.info(binding.state.get("selected_info", ""))

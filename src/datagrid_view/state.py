"""Session binding: one :class:`TableView` per table key in Streamlit session state.

The view holds rows and callables, so it is kept as an object in the
session mapping under ``tv_view_{key}``.  After every handler the snapshot
is mirrored into a plain dict under ``tv_state_{key}``; widgets read only
the mirrored dict.  Notifications the view emits are appended to the
mirrored ``events`` list, newest last.

Example::

    binding = TableViewBinding("people")
    if not binding.loaded:
        binding.load_dataframe(pl.read_csv("people.csv"), attributes={"sortable": True})
    table_view(binding)
"""

import logging
import time
from typing import Any, Iterable, Mapping, MutableMapping, Sequence

import polars as pl
import streamlit as st

from datagrid_view.events import ViewEvent
from datagrid_view.frames import dataframe_to_table
from datagrid_view.models import ColumnDef
from datagrid_view.rows import Row
from datagrid_view.view import TableView

logger = logging.getLogger(__name__)

_MAX_EVENT_LOG: int = 200
_DEFAULT_SELECTED_INFO: str = "Click a row to see details."


def _empty_state() -> dict[str, Any]:
    return {
        "loaded": False,
        "stats": "",
        "selected_info": _DEFAULT_SELECTED_INFO,
        "events": [],
        "last_event": None,
    }


class TableViewBinding:
    """Handlers that drive a session-held :class:`TableView`.

    Args:
        key: Table identifier; several tables on one page use different keys.
        session: Mapping to keep state in.  Defaults to ``st.session_state``.
    """

    def __init__(self, key: str, session: MutableMapping[str, Any] | None = None) -> None:
        self.key = key
        self._session = session

    @property
    def session(self) -> MutableMapping[str, Any]:
        if self._session is None:
            self._session = st.session_state
        return self._session

    @property
    def view_key(self) -> str:
        return f"tv_view_{self.key}"

    @property
    def state_key(self) -> str:
        return f"tv_state_{self.key}"

    @property
    def view(self) -> TableView | None:
        return self.session.get(self.view_key)

    @property
    def state(self) -> dict[str, Any]:
        """Mirrored snapshot plus binding bookkeeping."""
        if self.state_key not in self.session:
            self.session[self.state_key] = _empty_state()
        return self.session[self.state_key]

    @property
    def loaded(self) -> bool:
        return self.view is not None and bool(self.state.get("loaded"))

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_table(
        self,
        columns: Iterable[ColumnDef | str],
        rows: Iterable[Row | Sequence[Any] | Mapping[str, Any]],
        attributes: Mapping[str, Any] | None = None,
    ) -> TableView:
        """Create (or replace) the view for this key and mirror its first slice."""
        previous = self.view
        if previous is not None:
            previous.detach()

        view = TableView(attributes=attributes)
        state = _empty_state()
        self.session[self.state_key] = state
        self.session[self.view_key] = view
        view.subscribe(self._make_recorder())
        view.attach(list(columns), list(rows))
        state["loaded"] = True
        self._mirror()
        return view

    def load_dataframe(
        self,
        data: pl.DataFrame | pl.LazyFrame,
        limit: int | None = None,
        descriptions: dict[str, str] | None = None,
        attributes: Mapping[str, Any] | None = None,
    ) -> TableView:
        """Render a polars frame into rows and load it."""
        t0 = time.perf_counter()
        column_defs, rows = dataframe_to_table(data, limit=limit, descriptions=descriptions)
        view = self.load_table(column_defs, rows, attributes=attributes)
        logger.debug(
            "[TableView] %s: loaded %d rows in %.2fms",
            self.key,
            len(rows),
            (time.perf_counter() - t0) * 1000,
        )
        return view

    def unload(self) -> None:
        view = self.view
        if view is not None:
            view.detach()
        self.session.pop(self.view_key, None)
        self.session[self.state_key] = _empty_state()

    def _make_recorder(self):
        session = self.session
        state_key = self.state_key

        def record(event: ViewEvent) -> None:
            state = session.get(state_key)
            if state is None:
                return
            entry = {"name": event.name, "detail": event.detail}
            state["events"] = (state.get("events", []) + [entry])[-_MAX_EVENT_LOG:]
            state["last_event"] = entry

        return record

    def _mirror(self) -> None:
        view = self.view
        state = self.state
        if view is None:
            return
        state.update(view.snapshot().to_dict())
        page = view.page_state
        stats = f"{page.filtered_rows:,} of {page.total_rows:,} rows"
        if len(view.selection):
            stats += f" | {len(view.selection)} selected"
        state["stats"] = stats

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def handle_sort(self, column: Any) -> None:
        view = self.view
        if view is None:
            return
        view.request_sort(column)
        self._mirror()

    def handle_filter_query(self, query: str, column: Any = None) -> None:
        view = self.view
        if view is None:
            return
        view.set_filter(query=query, column=column)
        self._mirror()

    def handle_filter_rules(self, rules: Any) -> None:
        view = self.view
        if view is None:
            return
        view.set_filter(rules=rules)
        self._mirror()

    def handle_page(self, page: int) -> None:
        view = self.view
        if view is None:
            return
        view.set_page(page)
        self._mirror()

    def handle_page_size(self, page_size: int) -> None:
        view = self.view
        if view is None:
            return
        view.set_page_size(page_size)
        self._mirror()

    def handle_row_click(self, index: int) -> None:
        """Toggle the row at *index* of the materialised window and describe it."""
        view = self.view
        if view is None:
            return
        rows = view.window_rows
        if not 0 <= index < len(rows):
            return
        row = rows[index]
        if view.toggle_row(row):
            snapshot = view.row_snapshot(row)
            parts = [f"{k}: {v}" for k, v in list(snapshot.items())[:5]]
            state = view.row_state(row)
            position = state.position if state is not None else index + 1
            self.state["selected_info"] = f"Row {position}: " + ", ".join(parts)
        self._mirror()

    def clear_selection(self) -> None:
        view = self.view
        if view is None:
            return
        view.clear_selection()
        self.state["selected_info"] = _DEFAULT_SELECTED_INFO
        self._mirror()

    def handle_move_column(self, source: Any, target: Any) -> None:
        view = self.view
        if view is None:
            return
        view.move_column(source, target)
        self._mirror()

    def handle_resize_column(self, column: Any, width: float) -> None:
        view = self.view
        if view is None:
            return
        view.resize_column(column, width)
        self._mirror()

    def handle_pin_columns(self, spec: str | None) -> None:
        view = self.view
        if view is None:
            return
        view.set_attribute("pin-columns", spec or None)
        self._mirror()

    def handle_scroll(self, offset: float, viewport_size: float | None = None) -> None:
        view = self.view
        if view is None:
            return
        view.scroll(offset, viewport_size)
        self._mirror()

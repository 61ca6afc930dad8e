"""View Coordinator: one consistent visible slice from rows, columns and parameters.

:class:`TableView` owns a row collection, a :class:`ColumnRegistry` and the
parameter map (the data-table element's attributes).  Every change reruns a
fixed pipeline::

    column order -> filter -> sort -> pagination -> selection pruning
        -> pin offsets -> virtual window

and publishes one notification per logical change through an
:class:`EventBus`.  Values the view normalises itself (a clamped page, the
order string after a move) are written back as *internal* attribute
writes, which never re-enter the pipeline.

Example::

    view = TableView(
        ["Name", "Email", "Role"],
        [["Ava", "ava@example.com", "Admin"], ["Liam", "liam@example.com", "Editor"]],
        attributes={"sortable": True, "page-size": 25},
    )
    view.subscribe(print, "sort-changed")
    view.request_sort("name")
    snapshot = view.snapshot()
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Sequence

from datagrid_view import events
from datagrid_view.columns import Column, ColumnRegistry
from datagrid_view.events import EventBus, Listener, ViewEvent
from datagrid_view.filtering import FilterState, build_filter_state
from datagrid_view.models import ColumnDef
from datagrid_view.pagination import PageState, paginate, parse_page, parse_page_size, summary_text
from datagrid_view.rows import Row
from datagrid_view.selection import BulkState, SelectionManager
from datagrid_view.sorting import SortDirection, SortState, sort_rows
from datagrid_view.transforms import (
    ColumnTransformManager,
    DragSession,
    GestureHost,
    PinLayout,
    ResizeSession,
    format_pin_spec,
)
from datagrid_view.virtualization import (
    FrameScheduler,
    ImmediateFrameScheduler,
    ScrollThrottle,
    VirtualWindow,
    compute_window,
    full_window,
    parse_overscan,
    parse_row_height,
)

logger = logging.getLogger(__name__)

_DEFAULT_EMPTY_TEXT: str = "No data available."
_NO_MATCH_TEXT: str = "No matching records."

_ACTIVATION_KEYS = frozenset({"Enter", " ", "Space", "Spacebar"})

# Attributes whose change reruns the pipeline.
_OBSERVED_ATTRIBUTES = frozenset(
    {
        "sortable",
        "selectable",
        "multi-select",
        "filter-query",
        "filter-column",
        "filters",
        "column-order",
        "pin-columns",
        "draggable-columns",
        "resizable-columns",
        "virtualize",
        "row-height",
        "overscan",
        "page",
        "page-size",
        "empty-text",
        "bulk-actions-label",
        "bulk-clear-label",
        "dir",
    }
)

_UNSET: Any = object()


@dataclass(frozen=True)
class RowState:
    """Why a row is or is not rendered.

    Attributes:
        hidden_by_filter: The row failed the query or a rule.
        hidden_by_page: The row passed the filter but is on another page.
        hidden_by_virtual: The row is on the page but outside the window.
        selected: The row is in the selection set.
        position: 1-based position in the filtered list, ``None`` when
            filtered out.
    """

    hidden_by_filter: bool = False
    hidden_by_page: bool = False
    hidden_by_virtual: bool = False
    selected: bool = False
    position: int | None = None

    @property
    def visible(self) -> bool:
        return not (self.hidden_by_filter or self.hidden_by_page or self.hidden_by_virtual)


@dataclass(frozen=True)
class ViewSnapshot:
    """Everything a rendering surface needs to paint the table once."""

    columns: list[Column] = field(default_factory=list)
    rows: list[Row] = field(default_factory=list)
    window: VirtualWindow = field(default_factory=VirtualWindow)
    page: PageState = field(default_factory=PageState)
    sort_key: str | None = None
    sort_direction: SortDirection = "asc"
    sort_index: int = -1
    selected_count: int = 0
    bulk: BulkState = field(default_factory=BulkState)
    summary: str = "No records"
    empty_message: str | None = None
    column_order: str = ""
    pin_spec: str = ""
    header_shortcuts: str = ""
    direction: str = "ltr"

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form for session state and JSON."""
        snapshot_keys = {column.key: column.source_index for column in self.columns}
        return {
            "columns": [
                {
                    "index": column.index,
                    "key": column.key,
                    "headerName": column.header_name,
                    "width": column.width,
                    "pinSide": column.pin_side,
                    "pinOffset": column.pin_offset,
                    "pinEdge": column.pin_edge,
                    "sorted": column.key == self.sort_key,
                }
                for column in self.columns
            ],
            "rows": [
                {key: row.cell(source) for key, source in snapshot_keys.items()}
                for row in self.rows
            ],
            "window": {
                "start": self.window.start_index,
                "end": self.window.end_index,
                "topSpacer": self.window.top_spacer,
                "bottomSpacer": self.window.bottom_spacer,
                "total": self.window.total,
                "virtualized": self.window.virtualized,
            },
            "page": self.page.page,
            "pageCount": self.page.page_count,
            "pageSize": self.page.page_size,
            "totalRows": self.page.total_rows,
            "filteredRows": self.page.filtered_rows,
            "sortKey": self.sort_key,
            "sortDirection": self.sort_direction,
            "selectedCount": self.selected_count,
            "bulk": {
                "visible": self.bulk.visible,
                "count": self.bulk.count,
                "label": self.bulk.label,
                "clearLabel": self.bulk.clear_label,
            },
            "summary": self.summary,
            "emptyMessage": self.empty_message,
            "columnOrder": self.column_order,
            "pinSpec": self.pin_spec,
            "headerShortcuts": self.header_shortcuts,
            "dir": self.direction,
        }


def _as_row(value: Row | Sequence[Any] | Mapping[str, Any], fields: Sequence[tuple[str, ...]]) -> Row:
    if isinstance(value, Row):
        return value
    if isinstance(value, Mapping):
        return Row(cells=[next((value[n] for n in names if n in value), None) for names in fields])
    return Row(cells=list(value))


def _attribute_text(value: Any) -> str:
    if value is True:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)) and all(isinstance(v, (str, int)) for v in value):
        return ",".join(str(v) for v in value)
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return str(value)


class TableView:
    """View Coordinator for one table.

    Args:
        columns: Declared columns (:class:`ColumnDef` or header text).
        rows: Row collection (:class:`Row`, cell sequences, or dicts keyed
            by column key).
        attributes: Initial parameter map, see :meth:`set_attribute`.
        frame_scheduler: Coalesces scroll recomputes; runs synchronously
            when omitted.
        gesture_host: Binds global pointer listeners for resize/drag
            sessions.
        clock: Monotonic clock in seconds, for activation suppression.
    """

    def __init__(
        self,
        columns: Iterable[ColumnDef | str] = (),
        rows: Iterable[Row | Sequence[Any] | Mapping[str, Any]] = (),
        *,
        attributes: Mapping[str, Any] | None = None,
        frame_scheduler: FrameScheduler | None = None,
        gesture_host: GestureHost | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.registry = ColumnRegistry()
        self.sort = SortState()
        self.selection = SelectionManager()
        self.transforms = ColumnTransformManager(self.registry, gesture_host=gesture_host, clock=clock)
        self._bus = EventBus()
        self._throttle = ScrollThrottle(frame_scheduler or ImmediateFrameScheduler(), self._on_scroll_frame)

        self._attributes: dict[str, str] = {}
        self._rows: list[Row] = []
        self._attached = False
        self._suppress_attribute_sync = False
        self._is_syncing = False
        self.recompute_count = 0

        self._scroll_offset = 0.0
        self._viewport_size: float | None = None

        # Derived state, rebuilt by _sync.
        self._filter_state = FilterState()
        self._arranged: list[Row] = []
        self._filtered: list[Row] = []
        self._page_rows: list[Row] = []
        self._page_state = PageState()
        self._pin_layout = PinLayout()
        self._window = VirtualWindow()
        self._row_states: dict[Row, RowState] = {}
        self._last_range: tuple[int, int, int] | None = None

        for name, value in (attributes or {}).items():
            if value is not None and value is not False:
                self._attributes[name] = _attribute_text(value)

        columns = list(columns)
        rows = list(rows)
        if columns or rows:
            self.attach(columns, rows)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def attached(self) -> bool:
        return self._attached

    def attach(
        self,
        columns: Iterable[ColumnDef | str] | None = None,
        rows: Iterable[Row | Sequence[Any] | Mapping[str, Any]] | None = None,
    ) -> None:
        """Take the row/column collections and derive the first slice."""
        if columns is not None:
            self.registry.declare(columns)
        if rows is not None:
            self._rows = self._coerce_rows(rows)
        self._attached = True
        self._sync()

    def detach(self) -> None:
        """Tear down: cancel pending frame work and release gesture listeners."""
        self._throttle.cancel()
        released = self.transforms.release_all()
        self._attached = False
        logger.debug("[TableView] detached (released %d gesture session(s))", released)

    def set_rows(self, rows: Iterable[Row | Sequence[Any] | Mapping[str, Any]]) -> None:
        """Replace the row collection (the collection-changed entry point)."""
        self._rows = self._coerce_rows(rows)
        self._sync()

    def set_columns(self, columns: Iterable[ColumnDef | str]) -> None:
        self.registry.declare(columns)
        self._sync()

    def refresh(self) -> None:
        """Re-derive everything from the current collections."""
        self._sync()

    @property
    def rows(self) -> list[Row]:
        """The row collection in insertion order."""
        return list(self._rows)

    def _coerce_rows(self, rows: Iterable[Row | Sequence[Any] | Mapping[str, Any]]) -> list[Row]:
        fields = self.registry.field_names()
        return [_as_row(row, fields) for row in rows]

    # ------------------------------------------------------------------
    # Attribute binding
    # ------------------------------------------------------------------

    def get_attribute(self, name: str) -> str | None:
        return self._attributes.get(name)

    def has_attribute(self, name: str) -> bool:
        return name in self._attributes

    @property
    def attributes(self) -> dict[str, str]:
        return dict(self._attributes)

    def set_attribute(self, name: str, value: Any) -> None:
        """Set a parameter by its attribute name.

        ``None`` and ``False`` remove the attribute, ``True`` sets a boolean
        attribute, lists become comma lists (or JSON for ``filters``).
        """
        if value is None or value is False:
            self.remove_attribute(name)
            return
        text = json.dumps(value) if name == "filters" and not isinstance(value, str) else _attribute_text(value)
        old = self._attributes.get(name)
        self._attributes[name] = text
        self._attribute_changed(name, old, text)

    def remove_attribute(self, name: str) -> None:
        old = self._attributes.pop(name, None)
        if old is not None:
            self._attribute_changed(name, old, None)

    def _attribute_changed(self, name: str, old: str | None, new: str | None) -> None:
        if self._suppress_attribute_sync or not self._attached:
            return
        if name not in _OBSERVED_ATTRIBUTES:
            return
        self._sync()

    def _write_internal(self, name: str, value: Any) -> None:
        """Reflect a value the view computed itself without re-running the pipeline."""
        self._suppress_attribute_sync = True
        try:
            self.set_attribute(name, value)
        finally:
            self._suppress_attribute_sync = False

    @property
    def rtl(self) -> bool:
        return (self.get_attribute("dir") or "").strip().lower() == "rtl"

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _sync(self) -> None:
        if self._is_syncing:
            logger.debug("[TableView] recompute requested while recomputing; ignored")
            return
        if not self._attached:
            return

        t0 = time.perf_counter()
        self._is_syncing = True
        normalized: dict[str, Any] | None = None
        try:
            self.recompute_count += 1
            # 1. columns
            self.registry.apply_order(self.get_attribute("column-order"))
            self.sort.retain(self.registry)
            self.selection.multi_select = self.has_attribute("multi-select")

            # 2. filter, 3. sort
            self._filter_state = build_filter_state(
                self.registry,
                self.get_attribute("filter-query"),
                self.get_attribute("filter-column"),
                self.get_attribute("filters"),
            )
            sort_index = self.sort.column_index(self.registry)
            if sort_index >= 0:
                self._arranged = sort_rows(self._rows, self.registry.source_index(sort_index), self.sort.direction)
            else:
                self._arranged = list(self._rows)
            if self._filter_state.active:
                self._filtered = [row for row in self._arranged if self._filter_state.matches(row)]
            else:
                self._filtered = list(self._arranged)

            # 4. pagination
            requested = parse_page(self.get_attribute("page"))
            self._page_state = paginate(
                len(self._rows),
                len(self._filtered),
                requested,
                parse_page_size(self.get_attribute("page-size")),
            )
            if self._page_state.normalized:
                self._write_internal("page", self._page_state.page)
                normalized = {
                    "requested": requested,
                    "page": self._page_state.page,
                    "pageCount": self._page_state.page_count,
                }
                logger.debug("[TableView] page %d clamped to %d", requested, self._page_state.page)
            self._page_rows = self._page_state.slice(self._filtered)

            # 5. selection
            self.selection.prune(self._rows)

            # 6. pins
            pin_spec = self.get_attribute("pin-columns")
            self._pin_layout = self.transforms.pin_layout(pin_spec) if pin_spec else PinLayout()

            # 7. window
            self._window = self._compute_window()
            self._rebuild_row_states()
        finally:
            self._is_syncing = False

        elapsed = time.perf_counter() - t0
        logger.debug(
            "[TableView] recompute: total=%d, filtered=%d, page=%d/%d, elapsed=%.2fms",
            len(self._rows),
            len(self._filtered),
            self._page_state.page,
            self._page_state.page_count,
            elapsed * 1000,
        )
        if normalized is not None:
            self._emit(events.PAGE_NORMALIZED, normalized)
        self._emit_range_if_changed()

    def _compute_window(self) -> VirtualWindow:
        if not self.has_attribute("virtualize"):
            return full_window(len(self._page_rows))
        return compute_window(
            len(self._page_rows),
            self._scroll_offset,
            self._viewport_size,
            parse_row_height(self.get_attribute("row-height")),
            parse_overscan(self.get_attribute("overscan")),
        )

    def _rebuild_row_states(self) -> None:
        positions = {row: i for i, row in enumerate(self._filtered)}
        start = self._page_state.start
        end = self._page_state.end
        states: dict[Row, RowState] = {}
        for row in self._rows:
            position = positions.get(row)
            if position is None:
                states[row] = RowState(hidden_by_filter=True, selected=row in self.selection)
                continue
            on_page = start <= position < end
            states[row] = RowState(
                hidden_by_page=not on_page,
                hidden_by_virtual=on_page and not self._window.contains(position - start),
                selected=row in self.selection,
                position=position + 1,
            )
        self._row_states = states

    def _emit_range_if_changed(self) -> None:
        window = self._window
        if not window.virtualized:
            self._last_range = None
            return
        current = (window.start_index, window.end_index, window.total)
        if current == self._last_range:
            return
        self._last_range = current
        self._emit(
            events.VIRTUAL_RANGE_CHANGED,
            {
                "start": window.start_index,
                "end": window.last_index,
                "visible": window.visible_count,
                "total": window.total,
            },
        )

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener, name: str | None = None) -> Callable[[], None]:
        """Listen to every notification, or only to *name*; returns an unsubscribe callable."""
        return self._bus.subscribe(listener, name)

    def _emit(self, name: str, detail: dict[str, Any]) -> ViewEvent:
        return self._bus.emit(name, detail)

    # ------------------------------------------------------------------
    # Sort
    # ------------------------------------------------------------------

    def request_sort(self, column: Any) -> SortDirection | None:
        """Sort by *column*: the sorted column toggles, another column starts ascending."""
        index = self.registry.resolve(column)
        key = self.registry.key_at(index)
        if key is None:
            return None
        direction = self.sort.request(key)
        self._sync()
        self._emit_sort_changed()
        return direction

    def set_sort(self, column: Any, direction: SortDirection = "asc") -> bool:
        index = self.registry.resolve(column)
        key = self.registry.key_at(index)
        if key is None:
            return False
        self.sort.set(key, direction)
        self._sync()
        self._emit_sort_changed()
        return True

    def clear_sort(self) -> None:
        if not self.sort.active:
            return
        self.sort.clear()
        self._sync()
        self._emit_sort_changed()

    def _emit_sort_changed(self) -> None:
        self._emit(
            events.SORT_CHANGED,
            {
                "columnIndex": self.sort.column_index(self.registry),
                "key": self.sort.column_key,
                "direction": self.sort.direction,
                "page": self._page_state.page,
            },
        )

    # ------------------------------------------------------------------
    # Filter / pagination
    # ------------------------------------------------------------------

    def set_filter(self, query: Any = _UNSET, column: Any = _UNSET, rules: Any = _UNSET) -> FilterState:
        """Update any of query, query column and rules with a single recompute."""
        self._suppress_attribute_sync = True
        try:
            if query is not _UNSET:
                self.set_attribute("filter-query", query or None)
            if column is not _UNSET:
                self.set_attribute("filter-column", None if column in (None, "") else column)
            if rules is not _UNSET:
                self.set_attribute("filters", rules or None)
        finally:
            self._suppress_attribute_sync = False
        self._sync()
        self._emit(
            events.FILTER_CHANGED,
            {
                "query": self.get_attribute("filter-query") or "",
                "filters": self._filter_state.rule_summary(),
                "total": self._page_state.total_rows,
                "filtered": self._page_state.filtered_rows,
                "page": self._page_state.page,
                "count": self._page_state.page_count,
            },
        )
        return self._filter_state

    def set_page(self, page: Any) -> PageState:
        if parse_page(page) == self._page_state.page and self.has_attribute("page"):
            return self._page_state
        self._write_internal("page", parse_page(page))
        self._sync()
        self._emit_page_changed()
        return self._page_state

    def set_page_size(self, page_size: Any) -> PageState:
        self._write_internal("page-size", parse_page_size(page_size))
        self._sync()
        self._emit_page_changed()
        return self._page_state

    def _emit_page_changed(self) -> None:
        state = self._page_state
        self._emit(
            events.PAGE_CHANGED,
            {
                "page": state.page,
                "count": state.page_count,
                "pageSize": state.page_size,
                "total": state.filtered_rows,
                "start": state.display_start,
                "end": state.display_end,
            },
        )

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def _resolve_row(self, row: Row | int) -> Row | None:
        if isinstance(row, Row):
            return row if row in self._row_states else None
        if isinstance(row, int) and 0 <= row < len(self._page_rows):
            return self._page_rows[row]
        return None

    def toggle_row(self, row: Row | int) -> bool:
        """Apply a selection intent to a rendered row.

        *row* is a :class:`Row` or an index into the current page.  Requires
        the ``selectable`` attribute; rows hidden by the filter or on another
        page are ignored.

        Returns:
            ``True`` when the intent was applied.
        """
        if not self.has_attribute("selectable"):
            return False
        target = self._resolve_row(row)
        if target is None:
            return False
        state = self._row_states[target]
        if state.hidden_by_filter or state.hidden_by_page:
            return False
        selected = self.selection.toggle(target)
        self._rebuild_row_states()
        self._emit(
            events.ROW_SELECTED,
            {
                "index": self._arranged.index(target),
                "selected": selected,
                "indices": self.selected_indices,
                "rows": [self.row_snapshot(r) for r in self._arranged if r in self.selection],
                "page": self._page_state.page,
            },
        )
        return True

    def clear_selection(self) -> int:
        """Empty the selection; returns (and reports) the prior count."""
        count = self.selection.clear()
        if count:
            self._rebuild_row_states()
            self._emit(events.BULK_CLEARED, {"count": count, "page": self._page_state.page})
        return count

    @property
    def selected_indices(self) -> list[int]:
        """Positions of the selected rows in the current sorted order."""
        return [i for i, row in enumerate(self._arranged) if row in self.selection]

    def row_snapshot(self, row: Row) -> dict[str, str]:
        """Slugged column key -> cell text, in display order."""
        return {
            key: row.cell(self.registry.source_index(i))
            for i, key in enumerate(self.registry.snapshot_keys())
        }

    # ------------------------------------------------------------------
    # Column transforms
    # ------------------------------------------------------------------

    def move_column(self, source: Any, target: Any) -> bool:
        """Move a column (by index or key) to display position *target*."""
        source_index = self.registry.resolve(source)
        target_index = self.registry.resolve(target)
        if not self.transforms.move(source_index, target_index):
            return False
        self._write_internal("column-order", self.registry.order_string())
        self._sync()
        self._emit(
            events.COLUMN_ORDER_CHANGED,
            {
                "sourceIndex": source_index,
                "targetIndex": target_index,
                "order": self.registry.order_string(),
                "keys": self.registry.keys(),
            },
        )
        return True

    def resize_column(self, column: Any, width: float) -> int | None:
        """Set a column width (clamped to its minimum) and report it."""
        key = self.registry.key_at(self.registry.resolve(column))
        if key is None:
            return None
        stored = self.transforms.apply_width(key, width)
        self._commit_width(key, stored)
        return stored

    def _preview_width(self, key: str, width: int) -> None:
        self._sync()

    def _commit_width(self, key: str, width: int) -> None:
        self._sync()
        self._emit(
            events.COLUMN_RESIZED,
            {"columnIndex": self.registry.index_of_key(key), "key": key, "width": width},
        )

    def begin_resize(self, column: Any, pointer_x: float) -> ResizeSession | None:
        """Open a pointer resize session; ``None`` unless ``resizable-columns`` is set."""
        if not (self._attached and self.has_attribute("resizable-columns")):
            return None
        return self.transforms.begin_resize(
            self.registry.resolve(column),
            pointer_x,
            rtl=self.rtl,
            on_preview=self._preview_width,
            on_commit=self._commit_width,
        )

    def begin_drag(self, column: Any) -> DragSession | None:
        """Open a header drag session; ``None`` unless ``draggable-columns`` is set."""
        if not (self._attached and self.has_attribute("draggable-columns")):
            return None
        return self.transforms.begin_drag(self.registry.resolve(column), self.move_column)

    def pin_columns(self, left: Sequence[Any] = (), right: Sequence[Any] = ()) -> PinLayout:
        """Pin columns (keys, headers or indices) to the leading/trailing edge."""
        spec = format_pin_spec(
            [self.registry.key_at(self.registry.resolve(c)) or str(c) for c in left],
            [self.registry.key_at(self.registry.resolve(c)) or str(c) for c in right],
        )
        self.set_attribute("pin-columns", spec or None)
        return self._pin_layout

    @property
    def pin_layout(self) -> PinLayout:
        return self._pin_layout

    # ------------------------------------------------------------------
    # Virtualization / layout
    # ------------------------------------------------------------------

    def set_virtualization(self, enabled: bool, row_height: Any = None, overscan: Any = None) -> VirtualWindow:
        self._suppress_attribute_sync = True
        try:
            self.set_attribute("virtualize", bool(enabled))
            if row_height is not None:
                self.set_attribute("row-height", row_height)
            if overscan is not None:
                self.set_attribute("overscan", overscan)
        finally:
            self._suppress_attribute_sync = False
        self._sync()
        return self._window

    def set_direction(self, direction: str) -> None:
        self.set_attribute("dir", "rtl" if str(direction).lower() == "rtl" else "ltr")

    def scroll(self, offset: float, viewport_size: float | None = None) -> None:
        """Record a scroll position; the window is recomputed on the next frame."""
        if not self._attached:
            return
        self._scroll_offset = offset
        if viewport_size is not None:
            self._viewport_size = viewport_size
        if not self.has_attribute("virtualize"):
            return
        self._throttle.schedule()

    def _on_scroll_frame(self) -> None:
        if not self._attached or self._is_syncing:
            return
        self._window = self._compute_window()
        self._rebuild_row_states()
        self._emit_range_if_changed()

    # ------------------------------------------------------------------
    # Pointer / keyboard
    # ------------------------------------------------------------------

    def click_header(self, column: Any) -> SortDirection | None:
        """Header activation: sorts when ``sortable`` and not just after a move."""
        if self.transforms.activation_suppressed():
            return None
        if not self.has_attribute("sortable"):
            return None
        index = self.registry.resolve(column)
        col_def = self.registry.column_def(index)
        if col_def is None or not col_def.sortable:
            return None
        return self.request_sort(index)

    def click_row(self, row: Row | int) -> bool:
        return self.toggle_row(row)

    def handle_header_key(self, index: int, key: str, alt: bool = False) -> int | None:
        """Keyboard on a header cell; returns the header index to focus."""
        count = len(self.registry)
        if not 0 <= index < count:
            return None
        if key == "Escape":
            self.clear_selection()
            return index
        if key in ("ArrowLeft", "ArrowRight"):
            target = self.transforms.keyboard_target(index, key, count, rtl=self.rtl)
            if alt:
                if not self.has_attribute("draggable-columns") or target is None:
                    return index
                if self.move_column(index, target):
                    self.transforms.suppress_activation()
                    return target
                return index
            return target
        if key == "Home":
            return 0
        if key == "End":
            return count - 1
        if key in _ACTIVATION_KEYS:
            self.click_header(index)
            return index
        return None

    def handle_row_key(self, row: Row | int, key: str) -> Row | None:
        """Keyboard on a body row; returns the row to focus."""
        target = self._resolve_row(row)
        if target is None or target not in self._page_rows:
            return None
        if key == "Escape":
            self.clear_selection()
            return target
        position = self._page_rows.index(target)
        if key == "ArrowDown":
            return self._page_rows[min(len(self._page_rows) - 1, position + 1)]
        if key == "ArrowUp":
            return self._page_rows[max(0, position - 1)]
        if key == "Home":
            return self._page_rows[0]
        if key == "End":
            return self._page_rows[-1]
        if key in _ACTIVATION_KEYS:
            self.toggle_row(target)
            return target
        return None

    def header_shortcuts(self) -> str:
        """Keyboard shortcuts a header cell advertises."""
        shortcuts = ["ArrowRight", "ArrowLeft"] if self.rtl else ["ArrowLeft", "ArrowRight"]
        shortcuts += ["Home", "End"]
        if self.has_attribute("sortable"):
            shortcuts += ["Enter", "Space"]
        if self.has_attribute("draggable-columns"):
            shortcuts += (
                ["Alt+ArrowRight", "Alt+ArrowLeft"] if self.rtl else ["Alt+ArrowLeft", "Alt+ArrowRight"]
            )
        return " ".join(shortcuts)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    @property
    def page_state(self) -> PageState:
        return self._page_state

    @property
    def window(self) -> VirtualWindow:
        return self._window

    @property
    def filter_state(self) -> FilterState:
        return self._filter_state

    @property
    def arranged_rows(self) -> list[Row]:
        """Every row in the current sort order, filtered or not."""
        return list(self._arranged)

    @property
    def filtered_rows(self) -> list[Row]:
        return list(self._filtered)

    @property
    def page_rows(self) -> list[Row]:
        """Rows of the active page."""
        return list(self._page_rows)

    @property
    def window_rows(self) -> list[Row]:
        """Rows materialised by the virtual window."""
        return self._page_rows[self._window.start_index:self._window.end_index]

    def row_state(self, row: Row) -> RowState | None:
        return self._row_states.get(row)

    def empty_message(self) -> str | None:
        if self._page_rows:
            return None
        if self._filter_state.tokens:
            return _NO_MATCH_TEXT
        return self.get_attribute("empty-text") or _DEFAULT_EMPTY_TEXT

    def columns(self) -> list[Column]:
        """Columns in display order, with pin placement applied."""
        result = []
        for column in self.registry.columns():
            pinned = self._pin_layout.for_index(column.index)
            if pinned is not None:
                column = Column(
                    index=column.index,
                    key=column.key,
                    header_name=column.header_name,
                    source_index=column.source_index,
                    width=column.width,
                    pin_side=pinned.side,
                    pin_offset=pinned.offset,
                    pin_edge=pinned.edge,
                )
            result.append(column)
        return result

    def snapshot(self) -> ViewSnapshot:
        """The current visible slice plus everything derived alongside it."""
        return ViewSnapshot(
            columns=self.columns(),
            rows=self.window_rows,
            window=self._window,
            page=self._page_state,
            sort_key=self.sort.column_key,
            sort_direction=self.sort.direction,
            sort_index=self.sort.column_index(self.registry),
            selected_count=len(self.selection),
            bulk=self.selection.bulk_state(
                self.has_attribute("selectable"),
                self.get_attribute("bulk-actions-label"),
                self.get_attribute("bulk-clear-label"),
            ),
            summary=summary_text(self._page_state),
            empty_message=self.empty_message(),
            column_order=self.registry.order_string(),
            pin_spec=self._pin_layout.spec(),
            header_shortcuts=self.header_shortcuts(),
            direction="rtl" if self.rtl else "ltr",
        )

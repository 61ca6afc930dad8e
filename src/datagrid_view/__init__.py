"""datagrid-view – tabular view engine for data-grid widgets.

Turns rows, declared columns and view parameters (sort, filter, page,
column order/pins/widths, selection, scroll) into one consistent visible
slice, with change notifications for the rendering surface::

    pip install datagrid-view

Polars frames load through :func:`dataframe_to_table`; Streamlit pages
bind a view through :class:`TableViewBinding` and the ``table_view*``
helpers.
"""

from datagrid_view.columns import Column, ColumnRegistry
from datagrid_view.components import (
    table_view,
    table_view_bulk_bar,
    table_view_controls,
    table_view_detail_box,
    table_view_pager,
    table_view_stats_bar,
)
from datagrid_view.events import EventBus, ViewEvent
from datagrid_view.filtering import FilterRule, FilterState, build_filter_state, filter_rows, parse_rules
from datagrid_view.frames import dataframe_to_table, scan_file
from datagrid_view.models import ColumnDef
from datagrid_view.pagination import PageState, paginate, summary_text
from datagrid_view.rows import Row, rows_from_records
from datagrid_view.selection import BulkState, SelectionManager
from datagrid_view.sorting import SortState, normalize_sort_value, sort_rows
from datagrid_view.state import TableViewBinding
from datagrid_view.transforms import (
    ColumnTransformManager,
    DragSession,
    PinLayout,
    ResizeSession,
    parse_pin_spec,
)
from datagrid_view.view import RowState, TableView, ViewSnapshot
from datagrid_view.virtualization import (
    ImmediateFrameScheduler,
    ManualFrameScheduler,
    VirtualWindow,
    compute_window,
)

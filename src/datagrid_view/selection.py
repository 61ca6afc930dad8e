"""Selection Manager: selected row identities and bulk-action state."""

from dataclasses import dataclass
from typing import Iterable

from datagrid_view.rows import Row

_DEFAULT_BULK_LABEL: str = "{count} selected"
_DEFAULT_BULK_CLEAR_LABEL: str = "Clear selection"


@dataclass(frozen=True)
class BulkState:
    """What the bulk-action bar shows."""

    visible: bool = False
    count: int = 0
    label: str = ""
    clear_label: str = _DEFAULT_BULK_CLEAR_LABEL


class SelectionManager:
    """Tracks selected rows by identity.

    Selection survives filtering and paging: a selected row that is hidden
    stays selected.  Rows are only dropped autonomously by :meth:`prune`,
    when they have left the row collection altogether.
    """

    def __init__(self, *, multi_select: bool = False) -> None:
        # dict as an insertion-ordered set
        self._selected: dict[Row, None] = {}
        self._multi_select = multi_select

    @property
    def multi_select(self) -> bool:
        return self._multi_select

    @multi_select.setter
    def multi_select(self, enabled: bool) -> None:
        self._multi_select = bool(enabled)
        if not self._multi_select and len(self._selected) > 1:
            # keep the most recently selected row
            last = next(reversed(self._selected))
            self._selected = {last: None}

    def __len__(self) -> int:
        return len(self._selected)

    def __contains__(self, row: object) -> bool:
        return row in self._selected

    @property
    def rows(self) -> list[Row]:
        """Selected rows in selection order."""
        return list(self._selected)

    def toggle(self, row: Row) -> bool:
        """Apply a selection intent for *row* and return its new state.

        Single-select replaces the selection with *row* (re-selecting the
        selected row keeps it selected).  Multi-select flips *row* and leaves
        other rows alone.
        """
        was_selected = row in self._selected
        if not self._multi_select:
            self._selected.clear()
        if was_selected and self._multi_select:
            del self._selected[row]
            return False
        self._selected[row] = None
        return True

    def select(self, row: Row) -> None:
        if not self._multi_select:
            self._selected.clear()
        self._selected[row] = None

    def clear(self) -> int:
        """Empty the selection and return how many rows were selected."""
        count = len(self._selected)
        self._selected.clear()
        return count

    def prune(self, present: Iterable[Row]) -> int:
        """Drop rows no longer in the collection; returns how many were dropped."""
        alive = set(present)
        stale = [row for row in self._selected if row not in alive]
        for row in stale:
            del self._selected[row]
        return len(stale)

    def bulk_state(
        self,
        selectable: bool,
        label: str | None = None,
        clear_label: str | None = None,
    ) -> BulkState:
        """Bulk bar: visible iff ``selectable`` and something is selected."""
        count = len(self._selected)
        visible = selectable and count > 0
        template = label or _DEFAULT_BULK_LABEL
        return BulkState(
            visible=visible,
            count=count,
            label=template.replace("{count}", str(count)) if visible else "",
            clear_label=clear_label or _DEFAULT_BULK_CLEAR_LABEL,
        )

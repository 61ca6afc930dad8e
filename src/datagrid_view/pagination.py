"""Pagination Engine: clamp the requested page and slice the filtered rows."""

import math
from dataclasses import dataclass
from typing import Any, Sequence, TypeVar

from datagrid_view.text_utils import coerce_finite

T = TypeVar("T")

_DEFAULT_PAGE_SIZE: int = 10


def parse_page_size(raw: Any) -> int:
    """``page-size`` parameter -> int >= 1 (non-numeric or < 1 falls back to 10)."""
    number = coerce_finite(raw) if raw is not None else None
    if number is None or number < 1:
        return _DEFAULT_PAGE_SIZE
    return int(math.floor(number))


def parse_page(raw: Any) -> int:
    """``page`` parameter -> int >= 1 (non-numeric or < 1 falls back to 1)."""
    number = coerce_finite(raw) if raw is not None else None
    if number is None or number < 1:
        return 1
    return int(math.floor(number))


@dataclass(frozen=True)
class PageState:
    """Pagination outcome for one recompute.

    Attributes:
        page: Clamped 1-based page.
        page_size: Rows per page.
        page_count: ``max(1, ceil(filtered_rows / page_size))``.
        total_rows: Rows in the collection.
        filtered_rows: Rows that passed the filter.
        requested_page: The page asked for before clamping.
    """

    page: int = 1
    page_size: int = _DEFAULT_PAGE_SIZE
    page_count: int = 1
    total_rows: int = 0
    filtered_rows: int = 0
    requested_page: int = 1

    @property
    def start(self) -> int:
        """Index of the first row of the page in the filtered list."""
        return (self.page - 1) * self.page_size

    @property
    def end(self) -> int:
        """Exclusive end index of the page in the filtered list."""
        return min(self.start + self.page_size, self.filtered_rows)

    @property
    def normalized(self) -> bool:
        """``True`` when clamping changed the requested page."""
        return self.page != self.requested_page

    @property
    def display_start(self) -> int:
        """1-based first row number for range labels (0 when nothing matches)."""
        return 0 if self.filtered_rows == 0 else self.start + 1

    @property
    def display_end(self) -> int:
        return self.end

    def slice(self, rows: Sequence[T]) -> list[T]:
        return list(rows[self.start:self.start + self.page_size])


def paginate(total_rows: int, filtered_rows: int, requested_page: int, page_size: int) -> PageState:
    """Clamp *requested_page* into ``[1, page_count]`` for *filtered_rows*."""
    page_size = max(1, int(page_size))
    filtered_rows = max(0, int(filtered_rows))
    page_count = max(1, math.ceil(filtered_rows / page_size))
    page = min(page_count, max(1, int(requested_page)))
    return PageState(
        page=page,
        page_size=page_size,
        page_count=page_count,
        total_rows=max(0, int(total_rows)),
        filtered_rows=filtered_rows,
        requested_page=int(requested_page),
    )


def summary_text(state: PageState) -> str:
    """Range label shown under the table."""
    if not state.total_rows or not state.filtered_rows:
        return "No records"
    start = state.display_start
    end = state.display_end
    if state.filtered_rows == state.total_rows:
        return f"Showing {start}-{end} of {state.total_rows}"
    return f"Showing {start}-{end} of {state.filtered_rows} filtered records ({state.total_rows} total)"

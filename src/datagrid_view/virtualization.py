"""Virtualization Window: which active rows to materialise for a viewport.

Only a contiguous window of the active (filtered, paged) rows is
materialised.  Two spacers stand in for the rows above and below it, so
the scrollable extent still matches the full active row count.

Scroll-driven recomputes are coalesced through a :class:`FrameScheduler`
so at most one is pending at a time; the pending recompute always reads
the latest scroll position when it runs.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from datagrid_view.text_utils import coerce_finite

_DEFAULT_ROW_HEIGHT: int = 44
_MIN_ROW_HEIGHT: int = 20
_DEFAULT_OVERSCAN: int = 6
_FALLBACK_VIEWPORT_ROWS: int = 8


def parse_row_height(raw: Any) -> int:
    """``row-height`` parameter -> px (non-finite or < 20 falls back to 44)."""
    number = coerce_finite(raw) if raw is not None else None
    if number is None or number < _MIN_ROW_HEIGHT:
        return _DEFAULT_ROW_HEIGHT
    return int(round(number))


def parse_overscan(raw: Any) -> int:
    """``overscan`` parameter -> rows (non-finite or negative falls back to 6)."""
    number = coerce_finite(raw) if raw is not None else None
    if number is None or number < 0:
        return _DEFAULT_OVERSCAN
    return int(math.floor(number))


@dataclass(frozen=True)
class VirtualWindow:
    """Materialised range ``[start_index, end_index)`` over the active rows.

    Attributes:
        start_index: First materialised active row.
        end_index: One past the last materialised active row.
        top_spacer: Height standing in for rows before the window.
        bottom_spacer: Height standing in for rows after the window.
        total: Number of active rows.
        virtualized: ``False`` when windowing is off (the window is everything).
    """

    start_index: int = 0
    end_index: int = 0
    top_spacer: int = 0
    bottom_spacer: int = 0
    total: int = 0
    virtualized: bool = False

    @property
    def visible_count(self) -> int:
        return max(0, self.end_index - self.start_index)

    @property
    def last_index(self) -> int:
        """Index of the last materialised row, as range notifications report it."""
        return max(self.start_index, self.end_index - 1)

    def contains(self, index: int) -> bool:
        return self.start_index <= index < self.end_index


def full_window(active_count: int) -> VirtualWindow:
    """Window covering every active row, no spacers."""
    return VirtualWindow(start_index=0, end_index=max(0, active_count), total=max(0, active_count))


def compute_window(
    active_count: int,
    scroll_offset: float,
    viewport_size: float | None,
    row_height: int,
    overscan: int,
) -> VirtualWindow:
    """Compute the materialised window for a scroll position.

    ``start = max(0, floor(offset / row_height) - overscan)`` and
    ``end = min(count, ceil((offset + viewport) / row_height) + overscan)``.
    A missing or non-positive viewport is treated as eight rows tall.
    """
    if active_count <= 0:
        return full_window(0)
    offset = coerce_finite(scroll_offset)
    offset = max(0.0, offset) if offset is not None else 0.0
    viewport = coerce_finite(viewport_size) if viewport_size is not None else None
    if viewport is None or viewport <= 0:
        viewport = float(row_height * _FALLBACK_VIEWPORT_ROWS)

    start = max(0, math.floor(offset / row_height) - overscan)
    end = min(active_count, math.ceil((offset + viewport) / row_height) + overscan)
    start = min(start, end)
    return VirtualWindow(
        start_index=start,
        end_index=end,
        top_spacer=start * row_height,
        bottom_spacer=max(0, (active_count - end) * row_height),
        total=active_count,
        virtualized=True,
    )


class FrameScheduler(Protocol):
    """Animation-frame style scheduling supplied by the rendering surface."""

    def request(self, callback: Callable[[], None]) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class ImmediateFrameScheduler:
    """Runs callbacks synchronously; for surfaces that already throttle scroll."""

    def request(self, callback: Callable[[], None]) -> Any:
        callback()
        return None

    def cancel(self, handle: Any) -> None:
        return None


class ManualFrameScheduler:
    """Queues callbacks until :meth:`flush`, like frames that have not painted yet."""

    def __init__(self) -> None:
        self._callbacks: dict[int, Callable[[], None]] = {}
        self._next_handle = 1

    @property
    def pending(self) -> int:
        return len(self._callbacks)

    def request(self, callback: Callable[[], None]) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._callbacks[handle] = callback
        return handle

    def cancel(self, handle: Any) -> None:
        self._callbacks.pop(handle, None)

    def flush(self) -> int:
        """Run every queued callback once; returns how many ran."""
        callbacks = list(self._callbacks.values())
        self._callbacks.clear()
        for callback in callbacks:
            callback()
        return len(callbacks)


class ScrollThrottle:
    """Keeps at most one recompute scheduled on a :class:`FrameScheduler`.

    A new :meth:`schedule` cancels the one still pending; the callback reads
    whatever scroll state is current when it finally runs.
    """

    def __init__(self, scheduler: FrameScheduler, callback: Callable[[], None]) -> None:
        self._scheduler = scheduler
        self._callback = callback
        self._handle: Any = None
        self._pending = False

    @property
    def pending(self) -> bool:
        return self._pending

    def schedule(self) -> None:
        self.cancel()
        self._pending = True
        handle = self._scheduler.request(self._run)
        if self._pending:
            self._handle = handle

    def cancel(self) -> None:
        if self._pending:
            self._scheduler.cancel(self._handle)
        self._handle = None
        self._pending = False

    def _run(self) -> None:
        self._handle = None
        self._pending = False
        self._callback()

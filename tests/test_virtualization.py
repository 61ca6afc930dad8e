"""Tests for the virtualization window and scroll throttling."""

import math

import pytest

from datagrid_view.virtualization import (
    ImmediateFrameScheduler,
    ManualFrameScheduler,
    ScrollThrottle,
    compute_window,
    full_window,
    parse_overscan,
    parse_row_height,
)


def test_window_for_scrolled_viewport():
    window = compute_window(120, 480, 240, 40, 2)
    assert window.start_index == 10
    assert window.end_index == 20
    assert window.top_spacer == 400
    assert window.bottom_spacer == 4000
    assert window.visible_count == 10
    assert window.last_index == 19
    assert window.virtualized


def test_missing_viewport_falls_back_to_eight_rows():
    window = compute_window(100, 0, None, 40, 0)
    assert (window.start_index, window.end_index) == (0, 8)


def test_offset_past_the_end_yields_empty_window():
    window = compute_window(10, 10_000, 200, 40, 2)
    assert window.visible_count == 0
    assert window.end_index == 10
    assert window.bottom_spacer == 0


def test_negative_offset_is_clamped():
    assert compute_window(50, -300, 200, 40, 1).start_index == 0


def test_full_window():
    window = full_window(7)
    assert (window.start_index, window.end_index, window.top_spacer, window.bottom_spacer) == (0, 7, 0, 0)
    assert not window.virtualized


@pytest.mark.parametrize("overscan", [0, 3])
@pytest.mark.parametrize("viewport", [40, 190, 400])
def test_window_always_covers_the_viewport(overscan, viewport):
    count, row_height = 60, 40
    for offset in range(0, count * row_height + 1, 7):
        window = compute_window(count, offset, viewport, row_height, overscan)
        first = offset // row_height
        last = min(count, math.ceil((offset + viewport) / row_height))
        if first < count:
            assert window.start_index <= first
        assert window.end_index >= last


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, 44), ("10", 44), ("abc", 44), ("inf", 44), ("30.6", 31), (20, 20)],
)
def test_parse_row_height(raw, expected):
    assert parse_row_height(raw) == expected


@pytest.mark.parametrize(("raw", "expected"), [(None, 6), ("-1", 6), ("0", 0), ("2.9", 2), ("x", 6)])
def test_parse_overscan(raw, expected):
    assert parse_overscan(raw) == expected


def test_throttle_coalesces_to_one_pending_frame():
    scheduler = ManualFrameScheduler()
    calls = []
    throttle = ScrollThrottle(scheduler, lambda: calls.append(1))
    for _ in range(3):
        throttle.schedule()
    assert scheduler.pending == 1
    assert throttle.pending
    assert scheduler.flush() == 1
    assert calls == [1]
    assert not throttle.pending


def test_cancelled_frame_never_runs():
    scheduler = ManualFrameScheduler()
    calls = []
    throttle = ScrollThrottle(scheduler, lambda: calls.append(1))
    throttle.schedule()
    throttle.cancel()
    assert scheduler.flush() == 0
    assert calls == []


def test_immediate_scheduler_runs_synchronously():
    calls = []
    throttle = ScrollThrottle(ImmediateFrameScheduler(), lambda: calls.append(1))
    throttle.schedule()
    throttle.schedule()
    assert calls == [1, 1]
    assert not throttle.pending

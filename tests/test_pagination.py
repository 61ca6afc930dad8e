"""Tests for the pagination engine."""

import math

import pytest

from datagrid_view.pagination import paginate, parse_page, parse_page_size, summary_text


def test_out_of_range_page_normalizes():
    state = paginate(3, 3, 9999, 500)
    assert state.page == 1
    assert state.page_count == 1
    assert state.normalized


def test_empty_collection_has_one_page():
    state = paginate(0, 0, 1, 10)
    assert state.page_count == 1
    assert state.start == 0
    assert state.end == 0
    assert state.display_start == 0
    assert not state.normalized


def test_last_page_bounds():
    state = paginate(25, 25, 3, 10)
    assert (state.start, state.end) == (20, 25)
    assert (state.display_start, state.display_end) == (21, 25)
    assert state.slice(list(range(25))) == [20, 21, 22, 23, 24]


@pytest.mark.parametrize("filtered", [0, 1, 9, 10, 11, 99])
@pytest.mark.parametrize("page_size", [1, 3, 10])
@pytest.mark.parametrize("requested", [-5, 0, 1, 2, 50])
def test_clamp_keeps_page_in_range(filtered, page_size, requested):
    state = paginate(filtered, filtered, requested, page_size)
    assert 1 <= state.page <= max(1, math.ceil(filtered / page_size))


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, 10), ("abc", 10), ("0", 10), ("12.9", 12), (25, 25), ("inf", 10)],
)
def test_parse_page_size(raw, expected):
    assert parse_page_size(raw) == expected


@pytest.mark.parametrize(("raw", "expected"), [(None, 1), ("-2", 1), ("3.7", 3), ("x", 1), (4, 4)])
def test_parse_page(raw, expected):
    assert parse_page(raw) == expected


def test_summary_text():
    assert summary_text(paginate(25, 25, 1, 10)) == "Showing 1-10 of 25"
    assert summary_text(paginate(25, 5, 1, 10)) == "Showing 1-5 of 5 filtered records (25 total)"
    assert summary_text(paginate(25, 0, 1, 10)) == "No records"
    assert summary_text(paginate(0, 0, 1, 10)) == "No records"

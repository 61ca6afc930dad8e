"""Tests for the filter engine."""

import pytest

from datagrid_view.columns import ColumnRegistry
from datagrid_view.filtering import build_filter_state, filter_rows, parse_rules, rule_passes
from datagrid_view.rows import Row


@pytest.fixture
def registry() -> ColumnRegistry:
    return ColumnRegistry(["Name", "Role", "Age"])


@pytest.fixture
def rows() -> list[Row]:
    return [
        Row(cells=["Ava", "Admin", "34"]),
        Row(cells=["Liam", "Editor", "28"]),
        Row(cells=["Mia", "Admin", "1,041"]),
        Row(cells=["Noah", "", "n/a"]),
    ]


@pytest.mark.parametrize(
    ("cell", "op", "value", "expected"),
    [
        ("Admin", "equals", "admin", True),
        ("Admin", "eq", "ADMIN", True),
        ("Admin", "neq", "admin", False),
        ("Admin", "not-equals", "editor", True),
        ("Alexander", "startswith", "al", True),
        ("Alexander", "starts-with", "x", False),
        ("report.pdf", "endswith", ".PDF", True),
        ("report.pdf", "ends-with", ".doc", False),
        ("Editor", "in", ["admin", "editor"], True),
        ("Editor", "in", "admin, viewer", False),
        ("1,200", "gt", 1000, True),
        ("1,200", "gte", "1200", True),
        ("5", "lt", 5, False),
        ("5", "lte", 5, True),
        ("n/a", "gt", 1, False),
        ("5", "gt", "abc", False),
        ("35", "between", [40, 30], True),
        ("45", "between", "30,40", False),
        ("35", "between", [30], False),
        ("   ", "empty", None, True),
        ("x", "empty", None, False),
        ("x", "notempty", None, True),
        ("", "not-empty", None, False),
        ("Hello World", "contains", "lo w", True),
        ("Hello", "no-such-op", "ELL", True),
    ],
)
def test_rule_operators(cell, op, value, expected):
    assert rule_passes(cell, op, value) is expected


def test_parse_rules_accepts_aliases_and_drops_unknown_columns(registry):
    rules = parse_rules(
        '[{"field": "role", "operator": "eq", "value": "Admin"},'
        ' {"column": "salary", "op": "gt", "value": 1},'
        ' "not a rule"]',
        registry,
    )
    assert len(rules) == 1
    assert rules[0].column_key == "role"
    assert rules[0].source_index == 1
    assert rules[0].op == "eq"


@pytest.mark.parametrize("payload", ["{not json", '{"column": "role"}', "", None, 42])
def test_malformed_rule_payloads_fail_open(registry, payload):
    assert parse_rules(payload, registry) == []


def test_query_tokens_must_all_match(registry, rows):
    state = build_filter_state(registry, "ava admin")
    assert [r.cell(0) for r in filter_rows(rows, state)] == ["Ava"]

    state = build_filter_state(registry, "ava editor")
    assert filter_rows(rows, state) == []


def test_query_scoped_to_column(registry, rows):
    state = build_filter_state(registry, "a", query_column="role")
    assert [r.cell(0) for r in filter_rows(rows, state)] == ["Ava", "Mia"]


def test_unresolvable_query_column_searches_all_columns(registry, rows):
    state = build_filter_state(registry, "liam", query_column="nope")
    assert state.query_source_index == -1
    assert [r.cell(0) for r in filter_rows(rows, state)] == ["Liam"]


def test_empty_haystack_is_excluded_by_active_query(registry):
    state = build_filter_state(registry, "a", query_column="role")
    assert state.matches(Row(cells=["Noah", "", ""])) is False


def test_rules_and_query_combine_by_conjunction(registry, rows):
    rules = [{"column": "role", "op": "equals", "value": "Admin"}]
    both = build_filter_state(registry, "mia", rules=rules)
    assert [r.cell(0) for r in filter_rows(rows, both)] == ["Mia"]

    rules_only = build_filter_state(registry, None, rules=rules)
    assert [r.cell(0) for r in filter_rows(rows, rules_only)] == ["Ava", "Mia"]


def test_removing_a_rule_never_shrinks_the_result(registry, rows):
    rules = [
        {"column": "role", "op": "equals", "value": "Admin"},
        {"column": "age", "op": "gt", "value": 30},
    ]
    full = filter_rows(rows, build_filter_state(registry, None, rules=rules))
    for i in range(len(rules)):
        fewer = rules[:i] + rules[i + 1:]
        relaxed = filter_rows(rows, build_filter_state(registry, None, rules=fewer))
        assert set(full) <= set(relaxed)


def test_inactive_state_keeps_everything(registry, rows):
    state = build_filter_state(registry, "   ")
    assert not state.active
    assert filter_rows(rows, state) == rows

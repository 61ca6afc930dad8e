"""Filter Engine: free-text query plus structured per-column rules.

A row is included iff it passes the free-text query (when one is set) AND
every rule.  There is no OR across rules; the ``in`` operator covers the
"any of these values" case.

Rule payloads are the JSON the ``filters`` parameter carries::

    [
        {"column": "role", "op": "equals", "value": "Admin"},
        {"field": "age", "operator": "between", "value": [30, 40]},
    ]

Malformed payloads fail open (no rules); a rule that cannot be evaluated
for a particular row fails closed (the row is excluded).
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from datagrid_view.columns import ColumnRegistry
from datagrid_view.rows import Row
from datagrid_view.text_utils import coerce_finite, parse_numeric_text

logger = logging.getLogger(__name__)

# Operator aliases accepted in rule payloads -> canonical operator.
_OPERATOR_ALIASES: dict[str, str] = {
    "equals": "equals",
    "eq": "equals",
    "neq": "neq",
    "not-equals": "neq",
    "startswith": "startswith",
    "starts-with": "startswith",
    "endswith": "endswith",
    "ends-with": "endswith",
    "in": "in",
    "gt": "gt",
    "gte": "gte",
    "lt": "lt",
    "lte": "lte",
    "between": "between",
    "empty": "empty",
    "notempty": "notempty",
    "not-empty": "notempty",
    "contains": "contains",
}

_NUMERIC_OPERATORS = frozenset({"gt", "gte", "lt", "lte", "between"})


@dataclass(frozen=True)
class FilterRule:
    """One structured rule, resolved against the current columns.

    Attributes:
        column_key: Key of the column the rule reads.
        source_index: Declared position of that column (index into cells).
        op: Operator as given (lower-cased).  Unknown operators behave as
            ``contains``.
        value: Operand; ignored by ``empty`` / ``notempty``.
    """

    column_key: str
    source_index: int
    op: str = "contains"
    value: Any = None

    def summary(self) -> dict[str, Any]:
        return {"column": self.column_key, "op": self.op, "value": self.value}


def parse_query(raw: str | None) -> list[str]:
    """Split a free-text query into lower-cased whitespace tokens."""
    return (raw or "").strip().lower().split()


def parse_rules(raw: Any, registry: ColumnRegistry) -> list[FilterRule]:
    """Parse a rule payload (JSON text or an already-decoded list).

    Entries that are not objects, or whose column cannot be resolved, are
    dropped.  Anything that is not a JSON array yields no rules.
    """
    if raw is None or raw == "":
        return []
    payload = raw
    if isinstance(raw, (str, bytes)):
        try:
            payload = json.loads(raw)
        except ValueError:
            logger.debug("[TableView] filters: ignoring malformed JSON %r", raw)
            return []
    if not isinstance(payload, list):
        return []

    rules: list[FilterRule] = []
    for entry in payload:
        if not isinstance(entry, dict):
            continue
        token = entry.get("column", entry.get("field", entry.get("key")))
        index = registry.resolve(token)
        if index < 0:
            logger.debug("[TableView] filters: dropping rule on unknown column %r", token)
            continue
        op = str(entry.get("op") or entry.get("operator") or "contains").strip().lower()
        rules.append(
            FilterRule(
                column_key=registry.key_at(index) or "",
                source_index=registry.source_index(index),
                op=op,
                value=entry.get("value"),
            )
        )
    return rules


def _value_list(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [str(item).strip().lower() for item in value]
    return [item.strip().lower() for item in str(value if value is not None else "").split(",") if item.strip()]


def _between_bounds(value: Any) -> tuple[float, float] | None:
    bounds = list(value) if isinstance(value, (list, tuple)) else str(value if value is not None else "").split(",")
    if len(bounds) < 2:
        return None
    low = coerce_finite(bounds[0])
    high = coerce_finite(bounds[1])
    if low is None or high is None:
        return None
    return min(low, high), max(low, high)


def rule_passes(cell_text: str, op: str, value: Any) -> bool:
    """Evaluate one operator against one cell's text."""
    normalized = cell_text.strip()
    lower = normalized.lower()
    canonical = _OPERATOR_ALIASES.get(op, "contains")
    operand = str(value if value is not None else "").lower()

    if canonical == "empty":
        return len(normalized) == 0
    if canonical == "notempty":
        return len(normalized) > 0
    if canonical == "equals":
        return lower == operand
    if canonical == "neq":
        return lower != operand
    if canonical == "startswith":
        return lower.startswith(operand)
    if canonical == "endswith":
        return lower.endswith(operand)
    if canonical == "in":
        return lower in _value_list(value)

    if canonical in _NUMERIC_OPERATORS:
        subject = parse_numeric_text(normalized)
        if subject is None:
            return False
        if canonical == "between":
            bounds = _between_bounds(value)
            if bounds is None:
                return False
            return bounds[0] <= subject <= bounds[1]
        target = coerce_finite(value)
        if target is None:
            return False
        if canonical == "gt":
            return subject > target
        if canonical == "gte":
            return subject >= target
        if canonical == "lt":
            return subject < target
        return subject <= target

    return operand in lower


@dataclass
class FilterState:
    """Resolved filter parameters.

    Attributes:
        query: Raw query text as set by the caller.
        tokens: Lower-cased query tokens; all must occur in the row text.
        query_source_index: Declared column the query is scoped to, or
            ``-1`` for the whole row.
        rules: Structured rules, combined by AND.
    """

    query: str = ""
    tokens: list[str] = field(default_factory=list)
    query_source_index: int = -1
    rules: list[FilterRule] = field(default_factory=list)

    @property
    def active(self) -> bool:
        return bool(self.tokens or self.rules)

    def matches_query(self, row: Row) -> bool:
        if not self.tokens:
            return True
        if self.query_source_index >= 0:
            haystack = row.cell(self.query_source_index)
        else:
            haystack = " ".join(row.cells)
        if not haystack:
            return False
        haystack = haystack.lower()
        return all(token in haystack for token in self.tokens)

    def matches(self, row: Row) -> bool:
        """``True`` iff *row* passes the query and every rule."""
        if not self.matches_query(row):
            return False
        return all(rule_passes(row.cell(rule.source_index), rule.op, rule.value) for rule in self.rules)

    def rule_summary(self) -> list[dict[str, Any]]:
        return [rule.summary() for rule in self.rules]


def build_filter_state(
    registry: ColumnRegistry,
    query: str | None,
    query_column: Any = None,
    rules: Any = None,
) -> FilterState:
    """Resolve raw filter parameters against *registry*.

    An unresolvable ``query_column`` falls back to searching all columns.
    """
    source = -1
    if query_column not in (None, ""):
        index = registry.resolve(query_column)
        source = registry.source_index(index) if index >= 0 else -1
    return FilterState(
        query=query or "",
        tokens=parse_query(query),
        query_source_index=source,
        rules=parse_rules(rules, registry),
    )


def filter_rows(rows: Sequence[Row], state: FilterState) -> list[Row]:
    """Rows of *rows* that *state* includes, in their given order."""
    if not state.active:
        return list(rows)
    return [row for row in rows if state.matches(row)]

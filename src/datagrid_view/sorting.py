"""Sort Engine: stable single-key ordering over rendered cell text.

Cell text is normalised before comparison:

* thousands separators are stripped and plain integers/decimals compare
  numerically;
* date-like text (it must contain ``-`` or ``/``) compares as a POSIX
  timestamp, on the same numeric scale;
* everything else compares as case- and accent-insensitive text with
  embedded digit runs compared by value, so ``"item2"`` < ``"item10"``.

Numbers and dates sort before text.  Ties keep the incoming row order in
both directions.
"""

import re
import unicodedata
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal, Sequence

from datagrid_view.columns import ColumnRegistry
from datagrid_view.rows import Row
from datagrid_view.text_utils import parse_numeric_text

SortDirection = Literal["asc", "desc"]

_DIGITS_RE = re.compile(r"(\d+)")
_DATE_HINT_RE = re.compile(r"[-/]")
_DATE_FORMATS: tuple[str, ...] = (
    "%m/%d/%Y",
    "%m/%d/%y",
    "%Y/%m/%d",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%d-%b-%Y",
    "%d-%B-%Y",
    "%b-%d-%Y",
)


def parse_date_text(text: str) -> float | None:
    """Resolve date-like text to a POSIX timestamp (naive values read as UTC)."""
    if not _DATE_HINT_RE.search(text):
        return None
    candidate = text.strip()
    parsed: datetime | None = None
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(candidate, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text.casefold())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def natural_key(text: str) -> tuple[str | int, ...]:
    """Collation key: folded text runs alternating with integer digit runs."""
    parts = _DIGITS_RE.split(_fold(text))
    return tuple(int(part) if i % 2 else part for i, part in enumerate(parts))


def normalize_sort_value(text: str) -> tuple[int, float | tuple[str | int, ...]]:
    """Sort key for one cell: ``(0, number)`` for numbers/dates, ``(1, text key)`` otherwise."""
    number = parse_numeric_text(text)
    if number is not None:
        return 0, number
    timestamp = parse_date_text(text)
    if timestamp is not None:
        return 0, timestamp
    return 1, natural_key(text)


def sort_rows(rows: Sequence[Row], source_index: int, direction: SortDirection = "asc") -> list[Row]:
    """Return *rows* ordered by the declared column *source_index*.

    The sort is stable: rows whose keys compare equal keep their relative
    order from *rows*, for ``"desc"`` as well as ``"asc"``.
    """
    if source_index < 0:
        return list(rows)
    keyed = [(normalize_sort_value(row.cell(source_index)), row) for row in rows]
    keyed.sort(key=lambda pair: pair[0], reverse=direction == "desc")
    return [row for _, row in keyed]


@dataclass
class SortState:
    """Active sort key, tracked by column key so it survives reordering.

    Attributes:
        column_key: Key of the sorted column, ``None`` when unsorted.
        direction: ``"asc"`` or ``"desc"``.
    """

    column_key: str | None = None
    direction: SortDirection = "asc"

    @property
    def active(self) -> bool:
        return self.column_key is not None

    def request(self, column_key: str) -> SortDirection:
        """Apply a sort request: same column toggles, a new column starts ascending."""
        if self.column_key == column_key:
            self.direction = "desc" if self.direction == "asc" else "asc"
        else:
            self.column_key = column_key
            self.direction = "asc"
        return self.direction

    def set(self, column_key: str | None, direction: SortDirection = "asc") -> None:
        self.column_key = column_key
        self.direction = "desc" if direction == "desc" else "asc"

    def clear(self) -> None:
        self.column_key = None
        self.direction = "asc"

    def column_index(self, registry: ColumnRegistry) -> int:
        """Current display index of the sorted column, ``-1`` when none."""
        return registry.index_of_key(self.column_key)

    def retain(self, registry: ColumnRegistry) -> None:
        """Drop the sort when its column is no longer declared."""
        if self.column_key is not None and registry.index_of_key(self.column_key) < 0:
            self.clear()

"""Row model: an identity-hashed record of rendered cell text."""

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from datagrid_view.text_utils import normalize_cell_text


@dataclass(eq=False)
class Row:
    """One body row.

    Rows compare and hash by identity, never by content: two rows holding
    the same text are still two rows.  ``cells`` are in *declared* column
    order; the engine never permutes them, column reordering only changes
    how display positions map onto them.

    Attributes:
        cells: Rendered cell text, one entry per declared column.
        row_id: Optional caller-side identifier, carried through untouched.
    """

    cells: list[str] = field(default_factory=list)
    row_id: Any = None

    def __post_init__(self) -> None:
        self.cells = [normalize_cell_text(cell) for cell in self.cells]

    def cell(self, source_index: int) -> str:
        """Return the text of the declared column *source_index* (``""`` if absent)."""
        if 0 <= source_index < len(self.cells):
            return self.cells[source_index]
        return ""

    def __repr__(self) -> str:
        return f"Row(row_id={self.row_id!r}, cells={self.cells!r})"


def rows_from_records(
    records: Iterable[Mapping[str, Any]],
    fields: Sequence[str],
    *,
    id_field: str | None = None,
) -> list[Row]:
    """Build rows from dict records, reading *fields* in declared order.

    Missing fields render as empty text.  When *id_field* is given its value
    becomes :attr:`Row.row_id`.
    """
    rows: list[Row] = []
    for record in records:
        cells = [record.get(name) for name in fields]
        row_id = record.get(id_field) if id_field else None
        rows.append(Row(cells=cells, row_id=row_id))
    return rows

"""Pydantic models for declared table columns."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ColumnDef(BaseModel):
    """Declared column, in declaration order.

    Field names are snake_case in Python and serialise to camelCase
    (``header_name`` -> ``headerName``) so a definition can be handed to a
    browser-side surface as-is via ``model_dump(by_alias=True)``.

    Attributes:
        header_name: Display text of the header cell.
        key: Explicit column key.  When omitted the key is derived from
            ``header_name`` (lower-cased, slugged).
        width: Initial width in pixels.  Used for pinned-column offsets
            until the column is resized.
        min_width: Lower bound for interactive resizing.  Defaults to the
            engine minimum of 72px.
        sortable: Whether header activation may sort by this column.
        description: Optional tooltip / subtitle text.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    header_name: str = ""
    key: str | None = None
    width: int | None = None
    min_width: int | None = None
    sortable: bool = True
    description: str | None = None

    @classmethod
    def from_header(cls, text: str) -> "ColumnDef":
        """Shorthand for a column declared only by its header text."""
        return cls(header_name=text)

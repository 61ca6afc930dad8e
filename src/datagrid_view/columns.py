"""Column Registry: declared columns -> ordered column descriptors.

The registry owns column *identity*.  Every column gets a unique key when
it is declared; the display order is a permutation of declared positions
that is re-derived from a comma-separated key list whenever the
``column-order`` parameter changes.  Widths are cached per key, so they
follow a column wherever it moves.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Literal, Sequence

from datagrid_view.models import ColumnDef
from datagrid_view.text_utils import (
    header_key,
    normalize_cell_text,
    parse_int_token,
    slugify_key,
)

logger = logging.getLogger(__name__)

PinSide = Literal["left", "right"]

_DEFAULT_COLUMN_WIDTH: int = 120
_MIN_COLUMN_WIDTH: int = 72


@dataclass(frozen=True)
class Column:
    """A column at its current display position.

    Attributes:
        index: Current 0-based display position (contiguous).
        key: Stable, unique key.  The join key across reorders.
        header_name: Header text.
        source_index: Position of the column in declaration order, i.e.
            the index into :attr:`Row.cells`.
        width: Cached (resized) width, else the declared width, else ``None``.
        pin_side: ``"left"``, ``"right"`` or ``None``.
        pin_offset: Offset from the pinned edge in pixels.
        pin_edge: ``True`` for the innermost column of a pinned group.
    """

    index: int
    key: str
    header_name: str
    source_index: int
    width: int | None = None
    pin_side: PinSide | None = None
    pin_offset: int | None = None
    pin_edge: bool = False


def _as_column_def(declared: ColumnDef | str) -> ColumnDef:
    if isinstance(declared, ColumnDef):
        return declared
    return ColumnDef.from_header(normalize_cell_text(declared))


def _derive_key(declared: ColumnDef, position: int) -> str:
    raw = slugify_key(normalize_cell_text(declared.key or ""))
    if not raw:
        raw = slugify_key(header_key(normalize_cell_text(declared.header_name)))
    return raw or f"column-{position + 1}"


class ColumnRegistry:
    """Ordered column descriptors derived from declarations plus overrides."""

    def __init__(self, declared: Iterable[ColumnDef | str] = ()) -> None:
        self._defs: list[ColumnDef] = []
        self._keys: list[str] = []
        self._order: list[int] = []
        self._widths: dict[str, int] = {}
        self.declare(declared)

    # ------------------------------------------------------------------
    # Declaration / ordering
    # ------------------------------------------------------------------

    def declare(self, declared: Iterable[ColumnDef | str]) -> None:
        """Replace the declared columns.

        Keys are derived once here and made unique by suffixing ``_2``,
        ``_3`` ... on collision.  Cached widths survive for keys that are
        still declared; the display order resets to declaration order until
        the next :meth:`apply_order`.
        """
        self._defs = [_as_column_def(d) for d in declared]
        keys: list[str] = []
        seen: set[str] = set()
        for position, col_def in enumerate(self._defs):
            base = _derive_key(col_def, position)
            key = base
            suffix = 2
            while key in seen:
                key = f"{base}_{suffix}"
                suffix += 1
            seen.add(key)
            keys.append(key)
        self._keys = keys
        self._order = list(range(len(self._defs)))
        self._widths = {k: w for k, w in self._widths.items() if k in seen}

    def apply_order(self, order: str | None) -> bool:
        """Re-derive the display order from a comma-separated token list.

        Tokens are keys (case-insensitive), header texts, or declared
        positions, tried in that order, so an emitted order string always
        re-applies to the same columns.  Unknown and repeated tokens are
        skipped; columns not
        mentioned keep their declared relative order after the listed ones.
        An empty order restores declaration order.

        Returns:
            ``True`` when the display order changed.
        """
        tokens = [t.strip() for t in (order or "").split(",") if t.strip()]
        indices: list[int] = []
        used: set[int] = set()
        for token in tokens:
            source = self._resolve_declared(token)
            if source < 0:
                logger.debug("[TableView] column-order: dropping unknown token %r", token)
                continue
            if source not in used:
                used.add(source)
                indices.append(source)
        indices.extend(i for i in range(len(self._defs)) if i not in used)

        if indices == self._order:
            return False
        self._order = indices
        return True

    def move(self, source_index: int, target_index: int) -> bool:
        """Move the column at display *source_index* to *target_index*.

        Remove-then-insert: the columns in between shift by one.  Out of
        range or identical positions are a no-op.
        """
        count = len(self._order)
        if not (0 <= source_index < count and 0 <= target_index < count):
            return False
        if source_index == target_index:
            return False
        order = list(self._order)
        moved = order.pop(source_index)
        order.insert(target_index, moved)
        self._order = order
        return True

    def order_string(self) -> str:
        """Current display order as comma-joined keys."""
        return ",".join(self.keys())

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._order)

    def keys(self) -> list[str]:
        return [self._keys[source] for source in self._order]

    def field_names(self) -> list[tuple[str, ...]]:
        """Names a dict row may use for each column, in declaration order.

        The derived key comes first, then the key as declared and the header
        text, so ``{"First Name": ...}`` still fills a column keyed
        ``first_name``.
        """
        names: list[tuple[str, ...]] = []
        for source, col_def in enumerate(self._defs):
            candidates = (self._keys[source], col_def.key, col_def.header_name)
            names.append(tuple(dict.fromkeys(n for n in candidates if n)))
        return names

    def key_at(self, index: int) -> str | None:
        if 0 <= index < len(self._order):
            return self._keys[self._order[index]]
        return None

    def index_of_key(self, key: str | None) -> int:
        """Display index of *key*, or ``-1``."""
        if key is None:
            return -1
        for index, source in enumerate(self._order):
            if self._keys[source] == key:
                return index
        return -1

    def source_index(self, index: int) -> int:
        """Declared position of the column shown at display *index* (``-1`` if none)."""
        if 0 <= index < len(self._order):
            return self._order[index]
        return -1

    def header_name(self, index: int) -> str:
        source = self.source_index(index)
        return self._defs[source].header_name if source >= 0 else ""

    def column_def(self, index: int) -> ColumnDef | None:
        source = self.source_index(index)
        return self._defs[source] if source >= 0 else None

    def resolve(self, token: Any) -> int:
        """Resolve a column reference to a display index, or ``-1``.

        Numbers are display indices.  Text matches a key first, then header
        text (or the key it would derive), then a slugged key; only text
        that names no column is read as an integer display index, so a
        column keyed ``"2023"`` resolves to itself.  Matching is
        case-insensitive.
        """
        if not isinstance(token, str):
            number = parse_int_token(token)
            if number is not None:
                return number if 0 <= number < len(self._order) else -1
        source = self._match_declared(token)
        if source >= 0:
            return self._order.index(source)
        number = parse_int_token(token)
        if number is not None:
            return number if 0 <= number < len(self._order) else -1
        return -1

    def _resolve_declared(self, token: Any) -> int:
        """Declared position for an order token: a column name, else a declared position."""
        source = self._match_declared(token)
        if source >= 0:
            return source
        number = parse_int_token(token)
        if number is not None:
            return number if 0 <= number < len(self._defs) else -1
        return -1

    def _match_declared(self, token: Any) -> int:
        text = normalize_cell_text(token).lower()
        if not text:
            return -1
        # Keys are unique, so an exact key beats any header text.
        if text in self._keys:
            return self._keys.index(text)
        for source, col_def in enumerate(self._defs):
            header = normalize_cell_text(col_def.header_name).lower()
            if text in (header, header_key(header)):
                return source
        slug = slugify_key(text)
        if slug in self._keys:
            return self._keys.index(slug)
        return -1

    # ------------------------------------------------------------------
    # Widths
    # ------------------------------------------------------------------

    def cached_width(self, key: str) -> int | None:
        return self._widths.get(key)

    def restore_width(self, key: str, width: int | None) -> None:
        """Put back a value read with :meth:`cached_width` (``None`` clears it)."""
        if width is None:
            self._widths.pop(key, None)
        else:
            self._widths[key] = width

    def set_width(self, index: int, width: float) -> int | None:
        """Cache a width for the column at display *index*, clamped to its minimum."""
        key = self.key_at(index)
        if key is None:
            return None
        clamped = max(self.min_width(index), int(round(width)))
        self._widths[key] = clamped
        return clamped

    def min_width(self, index: int) -> int:
        col_def = self.column_def(index)
        if col_def is not None and col_def.min_width:
            return max(1, col_def.min_width)
        return _MIN_COLUMN_WIDTH

    def width(self, index: int) -> int | None:
        """Cached width, else the declared width, else ``None``."""
        key = self.key_at(index)
        if key is None:
            return None
        cached = self._widths.get(key)
        if cached is not None:
            return cached
        col_def = self.column_def(index)
        return col_def.width if col_def is not None else None

    def resolve_width(self, index: int) -> int:
        """Width used for layout math; falls back to 120px when unknown."""
        width = self.width(index)
        if width is not None and width > 0:
            return width
        return _DEFAULT_COLUMN_WIDTH

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def columns(self) -> list[Column]:
        """Fresh descriptors in display order (no pin information)."""
        return [
            Column(
                index=index,
                key=self._keys[source],
                header_name=self._defs[source].header_name,
                source_index=source,
                width=self.width(index),
            )
            for index, source in enumerate(self._order)
        ]

    def snapshot_keys(self) -> Sequence[str]:
        """Slugged keys for row snapshots, in display order."""
        return [slugify_key(key) or f"col_{i + 1}" for i, key in enumerate(self.keys())]

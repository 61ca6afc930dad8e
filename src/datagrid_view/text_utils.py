"""Text helpers shared by the column, filter and sort engines.

Cells reach the engine as already-rendered text.  Everything here works on
that text only: whitespace is collapsed the same way a browser collapses it
for ``textContent``, keys are slugged, and numbers are recognised with the
thousands separators stripped.
"""

import math
import re
from typing import Any

_WHITESPACE_RE = re.compile(r"\s+")
_NUMERIC_RE = re.compile(r"^-?\d+(\.\d+)?$")
_SLUG_RE = re.compile(r"[^a-z0-9_]+")


def normalize_cell_text(value: Any) -> str:
    """Collapse runs of whitespace and trim.  ``None`` renders as ``""``."""
    if value is None:
        return ""
    return _WHITESPACE_RE.sub(" ", str(value)).strip()


def header_key(text: str) -> str:
    """Derive a column key from header text: lower-cased, spaces to ``_``."""
    return _WHITESPACE_RE.sub("_", text.strip().lower())


def slugify_key(text: str) -> str:
    """Slug a key for row snapshots: ``"E-mail Address"`` -> ``"e_mail_address"``."""
    return _SLUG_RE.sub("_", text.lower()).strip("_")


def parse_numeric_text(text: str) -> float | None:
    """Parse cell text as a number after stripping ``,`` separators.

    Only plain integers and decimals qualify (``"1,200.5"``, ``"-3"``);
    anything else returns ``None``.
    """
    compact = text.replace(",", "").strip()
    if not _NUMERIC_RE.match(compact):
        return None
    return float(compact)


def coerce_finite(value: Any) -> float | None:
    """Coerce a rule operand or attribute value to a finite float."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            number = float(stripped)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_int_token(token: Any) -> int | None:
    """Return *token* as an int when it is an integral number, else ``None``."""
    if isinstance(token, bool):
        return None
    if isinstance(token, int):
        return token
    if isinstance(token, float):
        return int(token) if token.is_integer() else None
    if isinstance(token, str):
        stripped = token.strip()
        if re.fullmatch(r"-?\d+", stripped):
            return int(stripped)
    return None

"""Polars integration: load tabular files and render frames into table rows."""

import logging
import time
from pathlib import Path

import polars as pl

from datagrid_view.models import ColumnDef
from datagrid_view.rows import Row

logger = logging.getLogger(__name__)

_SUPPORTED_EXTENSIONS: str = ".parquet, .pq, .csv, .tsv, .json, .ndjson, .jsonl, .ipc, .arrow, .feather"


def scan_file(path: Path) -> pl.LazyFrame:
    """Scan a data file into a LazyFrame.

    Auto-detects the file format from the extension:

    * ``.parquet`` / ``.pq`` -- uses ``pl.scan_parquet()``.
    * ``.csv`` -- uses ``pl.scan_csv()``.
    * ``.tsv`` -- uses ``pl.scan_csv(separator="\\t")``.
    * ``.json`` -- uses ``pl.read_json().lazy()`` (no streaming scan).
    * ``.ndjson`` / ``.jsonl`` -- uses ``pl.scan_ndjson()``.
    * ``.ipc`` / ``.arrow`` / ``.feather`` -- uses ``pl.scan_ipc()``.

    Args:
        path: Path to the data file.

    Returns:
        A LazyFrame over the file.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If the file extension is not recognised.
    """
    path = Path(path).resolve()
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    suffix = path.suffix.lower()

    if suffix in (".parquet", ".pq"):
        return pl.scan_parquet(path)
    if suffix == ".csv":
        return pl.scan_csv(path)
    if suffix == ".tsv":
        return pl.scan_csv(path, separator="\t")
    # JSON (no streaming scan -- read then convert to lazy)
    if suffix == ".json":
        return pl.read_json(path).lazy()
    if suffix in (".ndjson", ".jsonl"):
        return pl.scan_ndjson(path)
    if suffix in (".ipc", ".arrow", ".feather"):
        return pl.scan_ipc(path)

    raise ValueError(f"Unsupported file extension: {suffix!r}. Supported: {_SUPPORTED_EXTENSIONS}")


def _humanize_field_name(field: str) -> str:
    """Convert a snake_case or raw field name to a human-friendly header.

    Examples:
        ``"first_name"`` -> ``"First Name"``
        ``"age"`` -> ``"Age"``
        ``"__row_id__"`` -> ``"Row Id"``
    """
    return field.strip("_").replace("_", " ").title()


def _col_to_text_expr(name: str, dtype: pl.DataType) -> pl.Expr:
    """Render one column as display text; nulls become ``""``.

    * ``List(T)`` / ``Array(T, n)`` -> inner values as text, comma-joined
    * temporal and everything else -> ``cast(pl.String)``
    """
    col = pl.col(name)
    if isinstance(dtype, (pl.List, pl.Array)):
        text = col.cast(pl.List(pl.String)).list.join(",")
    else:
        text = col.cast(pl.String)
    return text.fill_null("").alias(name)


def dataframe_to_table(
    data: pl.DataFrame | pl.LazyFrame,
    limit: int | None = None,
    descriptions: dict[str, str] | None = None,
) -> tuple[list[ColumnDef], list[Row]]:
    """Render a polars frame into column definitions and text rows.

    Args:
        data: A DataFrame, or a LazyFrame that is collected here.
        limit: Keep at most this many rows (``None`` keeps all).
        descriptions: Optional field name -> description text.

    Returns:
        ``(column_defs, rows)``.  Each column declares its field name as key
        (slugged by the registry; dict rows may still use the raw name)
        and gets a humanised header; every cell is rendered text.
    """
    t0 = time.perf_counter()
    frame = data.lazy() if isinstance(data, pl.DataFrame) else data
    if limit is not None:
        frame = frame.head(max(0, limit))
    schema = frame.collect_schema()
    df = frame.select([_col_to_text_expr(name, dtype) for name, dtype in schema.items()]).collect()

    descriptions = descriptions or {}
    column_defs = [
        ColumnDef(
            key=name,
            header_name=_humanize_field_name(name) or name,
            description=descriptions.get(name),
        )
        for name in schema.names()
    ]
    rows = [Row(cells=list(values), row_id=i) for i, values in enumerate(df.iter_rows())]
    logger.debug(
        "[TableView] dataframe_to_table: %d rows x %d columns in %.2fms",
        len(rows),
        len(column_defs),
        (time.perf_counter() - t0) * 1000,
    )
    return column_defs, rows

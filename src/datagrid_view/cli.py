"""CLI for datagrid-view -- preview a table slice or browse a file.

Usage::

    # Print page 1 of a CSV, sorted by age (descending)
    datagrid-view preview people.csv --sort age --desc

    # Free-text query plus a structured rule
    datagrid-view preview people.csv --query ava \\
        --rules '[{"column": "role", "op": "equals", "value": "Admin"}]'

    # Browse a Parquet file in a Streamlit page
    datagrid-view view data.parquet --limit 5000
"""

import logging
import os
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Annotated, Optional

import typer

from datagrid_view.frames import dataframe_to_table, scan_file
from datagrid_view.view import TableView

app = typer.Typer(
    name="datagrid-view",
    help="Filter, sort and page tabular files with the table view engine.",
    no_args_is_help=True,
)

_MAX_CELL_WIDTH: int = 40


def _clip(text: str) -> str:
    if len(text) <= _MAX_CELL_WIDTH:
        return text
    return text[: _MAX_CELL_WIDTH - 1] + "…"


def _format_table(header: list[str], rows: list[list[str]]) -> list[str]:
    """Left-aligned columns separated by two spaces."""
    cells = [[_clip(h) for h in header]] + [[_clip(c) for c in row] for row in rows]
    widths = [max(len(line[i]) for line in cells) for i in range(len(header))]
    lines = ["  ".join(cell.ljust(widths[i]) for i, cell in enumerate(line)).rstrip() for line in cells]
    lines.insert(1, "  ".join("-" * w for w in widths))
    return lines


def _load_view(file: Path, limit: int | None) -> TableView:
    try:
        lf = scan_file(file)
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    column_defs, rows = dataframe_to_table(lf, limit=limit)
    return TableView(column_defs, rows)


@app.command()
def preview(
    file: Annotated[Path, typer.Argument(help="Path to the data file (CSV, TSV, Parquet, JSON, etc.)")],
    query: Annotated[Optional[str], typer.Option("--query", "-q", help="Free-text query (all tokens must match)")] = None,
    query_column: Annotated[Optional[str], typer.Option("--query-column", help="Restrict the query to one column")] = None,
    rules: Annotated[Optional[str], typer.Option("--rules", help="JSON array of {column, op, value} rules")] = None,
    sort: Annotated[Optional[str], typer.Option("--sort", "-s", help="Column key to sort by")] = None,
    desc: Annotated[bool, typer.Option("--desc", help="Sort descending")] = False,
    page: Annotated[int, typer.Option("--page", "-p", help="1-based page number")] = 1,
    page_size: Annotated[int, typer.Option("--page-size", help="Rows per page")] = 10,
    order: Annotated[Optional[str], typer.Option("--order", help="Column order as comma-separated keys")] = None,
    pin: Annotated[Optional[str], typer.Option("--pin", help="Pin spec, e.g. 'left:name;right:id'")] = None,
    limit: Annotated[Optional[int], typer.Option("--limit", "-n", help="Maximum number of rows to load")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log recompute timings")] = False,
) -> None:
    """Print one page of a data file after filtering and sorting."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(message)s")

    view = _load_view(file.resolve(), limit)
    if order:
        view.set_attribute("column-order", order)
    if pin:
        view.set_attribute("pin-columns", pin)
    if query or query_column or rules:
        view.set_filter(query=query, column=query_column, rules=rules)
    if sort:
        if not view.set_sort(sort, "desc" if desc else "asc"):
            typer.echo(f"Error: unknown sort column: {sort}", err=True)
            raise typer.Exit(code=1)
    view.set_page_size(page_size)
    view.set_page(page)

    snapshot = view.snapshot()
    typer.echo(snapshot.summary)
    if snapshot.page.normalized:
        typer.echo(f"(page {page} is out of range; showing page {snapshot.page.page})")
    header = [column.header_name for column in snapshot.columns]
    body = [[row.cell(column.source_index) for column in snapshot.columns] for row in view.page_rows]
    for line in _format_table(header, body):
        typer.echo(line)
    if snapshot.empty_message:
        typer.echo(snapshot.empty_message)
    typer.echo(f"Page {snapshot.page.page} of {snapshot.page.page_count} | order: {snapshot.column_order}")


_APP_TEMPLATE = '''"""Auto-generated viewer app for: __FILENAME__"""

from pathlib import Path

import streamlit as st

from datagrid_view import (
    TableViewBinding,
    scan_file,
    table_view,
    table_view_bulk_bar,
    table_view_detail_box,
    table_view_stats_bar,
)

st.set_page_config(page_title="__TITLE__", layout="wide")
st.title("__TITLE__")

binding = TableViewBinding("viewer")
if not binding.loaded:
    binding.load_dataframe(
        scan_file(Path("__SAFE_PATH__")),
        limit=__LIMIT__,
        attributes={"sortable": True, "selectable": True, "multi-select": True},
    )

table_view_stats_bar(binding)
table_view_bulk_bar(binding)
table_view(binding)
table_view_detail_box(binding)
'''


@app.command("view")
def view_file(
    file: Annotated[Path, typer.Argument(help="Path to the data file (CSV, TSV, Parquet, JSON, etc.)")],
    limit: Annotated[Optional[int], typer.Option("--limit", "-n", help="Maximum number of rows to load")] = None,
    port: Annotated[int, typer.Option("--port", "-p", help="Port for the Streamlit server")] = 8501,
    title: Annotated[Optional[str], typer.Option("--title", "-t", help="Page title")] = None,
) -> None:
    """Browse a data file in a Streamlit page."""
    file = file.resolve()
    if not file.exists():
        typer.echo(f"Error: file not found: {file}", err=True)
        raise typer.Exit(code=1)

    if title is None:
        title = f"{file.name} -- Table View"

    safe_path = str(file).replace("\\", "\\\\").replace('"', '\\"')
    app_code = (
        _APP_TEMPLATE.replace("__FILENAME__", file.name)
        .replace("__SAFE_PATH__", safe_path)
        .replace("__LIMIT__", repr(limit))
        .replace("__TITLE__", title.replace('"', "'"))
    )
    tmp_dir = Path(tempfile.mkdtemp(prefix="table_view_"))
    app_file = tmp_dir / "viewer_app.py"
    app_file.write_text(app_code)

    typer.echo(f"Launching viewer for: {file}")
    typer.echo(f"Limit: {limit or 'all'} | Port: {port}")
    os.chdir(tmp_dir)
    subprocess.run(
        [sys.executable, "-m", "streamlit", "run", str(app_file), "--server.port", str(port)],
        check=True,
    )


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()

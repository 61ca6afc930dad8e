"""Tests for the polars integration."""

from datetime import date

import polars as pl
import pytest

from datagrid_view.frames import _humanize_field_name, dataframe_to_table, scan_file


@pytest.fixture
def frame() -> pl.DataFrame:
    return pl.DataFrame(
        {
            "first_name": ["Ava", None],
            "age": [34, 41],
            "tags": [["a", "b"], []],
            "joined": [date(2024, 1, 5), None],
        }
    )


def test_humanize_field_name():
    assert _humanize_field_name("first_name") == "First Name"
    assert _humanize_field_name("__row_id__") == "Row Id"


def test_dataframe_to_table_renders_text(frame):
    column_defs, rows = dataframe_to_table(frame)
    assert [c.key for c in column_defs] == ["first_name", "age", "tags", "joined"]
    assert column_defs[0].header_name == "First Name"
    assert rows[0].cells == ["Ava", "34", "a,b", "2024-01-05"]
    assert rows[1].cells == ["", "41", "", ""]
    assert [r.row_id for r in rows] == [0, 1]


def test_dataframe_to_table_limit_and_lazy_input(frame):
    column_defs, rows = dataframe_to_table(frame.lazy(), limit=1, descriptions={"age": "Years"})
    assert len(rows) == 1
    assert column_defs[1].description == "Years"


def test_scan_file_formats(tmp_path, frame):
    csv_path = tmp_path / "people.csv"
    frame.select("first_name", "age").write_csv(csv_path)
    assert scan_file(csv_path).collect().height == 2

    parquet_path = tmp_path / "people.parquet"
    frame.write_parquet(parquet_path)
    assert scan_file(parquet_path).collect_schema().names() == ["first_name", "age", "tags", "joined"]

    tsv_path = tmp_path / "people.tsv"
    tsv_path.write_text("name\tage\nAva\t34\n")
    assert scan_file(tsv_path).collect()["name"].to_list() == ["Ava"]


def test_scan_file_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        scan_file(tmp_path / "missing.csv")
    unknown = tmp_path / "data.xyz"
    unknown.write_text("x")
    with pytest.raises(ValueError, match="Unsupported file extension"):
        scan_file(unknown)

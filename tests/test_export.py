from __future__ import annotations

import csv
import datetime as dt
import io
import json
from decimal import Decimal

import openpyxl
import pytest

from tableview.errors import EmptyResultError, UnsupportedFormatError
from tableview.export import (
    ExportFormat,
    export_rows,
    query_export_basename,
    safe_sheet_title,
    table_export_basename,
    to_csv,
    to_excel,
    to_json,
)

ROWS = [
    {"id": 1, "name": "Ada", "note": None},
    {"id": 2, "name": "Linus, Jr.", "note": 'says "hi"\ntwice'},
]


def test_csv_round_trip_preserves_records():
    reader = csv.DictReader(io.StringIO(to_csv(ROWS).decode("utf-8")))
    assert reader.fieldnames == ["id", "name", "note"]
    parsed = list(reader)
    assert len(parsed) == len(ROWS)
    assert parsed[0] == {"id": "1", "name": "Ada", "note": ""}
    assert parsed[1] == {"id": "2", "name": "Linus, Jr.", "note": 'says "hi"\ntwice'}


def test_csv_header_follows_first_record_order():
    rows = [{"b": 1, "a": 2}, {"a": 3, "b": 4}]
    lines = to_csv(rows).decode("utf-8").splitlines()
    assert lines == ["b,a", "1,2", "4,3"]


def test_csv_encodes_driver_types():
    rows = [
        {
            "when": dt.datetime(2024, 5, 6, 7, 8, 9),
            "price": Decimal("10.50"),
            "blob": b"\xff\x00",
            "text_blob": b"plain",
            "duration": dt.timedelta(hours=26, minutes=3),
        }
    ]
    line = to_csv(rows).decode("utf-8").splitlines()[1]
    assert line == "2024-05-06T07:08:09,10.50,/wA=,plain,26:03:00"


def test_json_round_trip_preserves_structure():
    assert json.loads(to_json(ROWS)) == ROWS


def test_json_keeps_driver_representation():
    rows = [
        {
            "price": Decimal("10.50"),
            "born": dt.date(1815, 12, 10),
            "at": dt.time(9, 30),
            "name": "Zoë",
        }
    ]
    payload = to_json(rows)
    assert json.loads(payload) == [
        {"price": "10.50", "born": "1815-12-10", "at": "09:30:00", "name": "Zoë"}
    ]
    assert "Zoë".encode("utf-8") in payload


def test_excel_has_header_and_rows_in_key_order():
    content = to_excel(ROWS, sheet_name="users")
    workbook = openpyxl.load_workbook(io.BytesIO(content))
    assert workbook.sheetnames == ["users"]
    values = list(workbook["users"].iter_rows(values_only=True))
    assert values[0] == ("id", "name", "note")
    assert values[1] == (1, "Ada", None)
    assert values[2] == (2, "Linus, Jr.", 'says "hi"\ntwice')


def test_excel_keeps_formula_like_text_as_text():
    content = to_excel([{"expr": "=1+1"}])
    sheet = openpyxl.load_workbook(io.BytesIO(content)).active
    assert sheet["A2"].value == "=1+1"
    assert sheet["A2"].data_type == "s"


def test_safe_sheet_title():
    assert safe_sheet_title("users") == "users"
    assert safe_sheet_title("a/b:c") == "a_b_c"
    long_title = safe_sheet_title("x" * 40)
    assert len(long_title) == 31
    assert long_title.endswith("...")


@pytest.mark.parametrize("fmt", ["csv", "json", "excel", "xml"])
def test_empty_rowset_is_not_found_for_every_format(fmt):
    with pytest.raises(EmptyResultError) as excinfo:
        export_rows([], fmt, basename="users_export", empty_message="No data found in table")
    assert excinfo.value.status_code == 404
    assert str(excinfo.value) == "No data found in table"


def test_unsupported_format_is_client_error():
    with pytest.raises(UnsupportedFormatError) as excinfo:
        export_rows(ROWS, "xml", basename="x")
    assert excinfo.value.status_code == 400


@pytest.mark.parametrize(
    "fmt, media_type, filename",
    [
        ("csv", "text/csv", "users_export_2024-01-02.csv"),
        ("JSON", "application/json", "users_export_2024-01-02.json"),
        (
            "excel",
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            "users_export_2024-01-02.xlsx",
        ),
    ],
)
def test_export_rows_framing(fmt, media_type, filename):
    basename = table_export_basename("users", dt.date(2024, 1, 2))
    result = export_rows(ROWS, fmt, basename=basename, sheet_name="users")
    assert result.media_type == media_type
    assert result.filename == filename
    assert result.content


def test_query_export_basename():
    today = dt.date(2024, 1, 2)
    assert query_export_basename(None, today) == "custom_export_2024-01-02"
    assert query_export_basename("", today) == "custom_export_2024-01-02"
    assert query_export_basename("my_export", today) == "my_export"


def test_export_format_parse():
    assert ExportFormat.parse("Excel") is ExportFormat.EXCEL
    assert ExportFormat.EXCEL.extension == ".xlsx"
    with pytest.raises(UnsupportedFormatError):
        ExportFormat.parse("xml")

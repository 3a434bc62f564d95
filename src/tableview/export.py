"""
Result Exporter: serialise a RowSet to CSV, JSON or an Excel workbook.

Every encoder takes the records exactly as the driver returned them; the column
order is the key order of the first record.
"""

from __future__ import annotations

import base64
import csv
import datetime as dt
import io
import json
import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

import openpyxl
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from .errors import EmptyResultError, UnsupportedFormatError
from .sql_utils import first_record_columns

logger = logging.getLogger("tableview.export")

QUERY_SHEET_NAME = "Query Results"

# Excel limits sheet titles to 31 characters and forbids these characters.
_SHEET_TITLE_MAX = 31
_INVALID_SHEET_CHARS_RE = re.compile(r"[\[\]:*?/\\]")


class ExportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"
    EXCEL = "excel"

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @property
    def media_type(self) -> str:
        return _MEDIA_TYPES[self]

    @classmethod
    def parse(cls, value: str) -> "ExportFormat":
        try:
            return cls((value or "").lower())
        except ValueError:
            raise UnsupportedFormatError(value) from None


_EXTENSIONS = {
    ExportFormat.CSV: ".csv",
    ExportFormat.JSON: ".json",
    ExportFormat.EXCEL: ".xlsx",
}

_MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.JSON: "application/json",
    ExportFormat.EXCEL: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


@dataclass
class ExportResult:
    content: bytes
    media_type: str
    filename: str


def today_utc() -> dt.date:
    return dt.datetime.now(dt.timezone.utc).date()


def table_export_basename(table: str, today: Optional[dt.date] = None) -> str:
    return f"{table}_export_{(today or today_utc()).isoformat()}"


def query_export_basename(filename: Optional[str], today: Optional[dt.date] = None) -> str:
    return filename or f"custom_export_{(today or today_utc()).isoformat()}"


def export_rows(
    rows: Sequence[Mapping[str, Any]],
    fmt: str,
    *,
    basename: str,
    sheet_name: str = QUERY_SHEET_NAME,
    empty_message: str = "No data found",
) -> ExportResult:
    """
    Encode ``rows`` in ``fmt`` and attach the download filename.

    Raises:
        EmptyResultError: When ``rows`` is empty (checked before the format).
        UnsupportedFormatError: When ``fmt`` is not csv, json or excel.
    """
    if not rows:
        raise EmptyResultError(empty_message)

    export_format = ExportFormat.parse(fmt)
    if export_format is ExportFormat.CSV:
        content = to_csv(rows)
    elif export_format is ExportFormat.JSON:
        content = to_json(rows)
    else:
        content = to_excel(rows, sheet_name=sheet_name)

    logger.info(
        f"Exported {len(rows)} rows as {export_format.value} ({len(content)} bytes)"
    )
    return ExportResult(
        content=content,
        media_type=export_format.media_type,
        filename=basename + export_format.extension,
    )


# ------------------------------- csv ---------------------------------------
def _text_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return _decode_bytes(bytes(value))
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, dt.timedelta):
        return _format_timedelta(value)
    return str(value)


def to_csv(rows: Sequence[Mapping[str, Any]]) -> bytes:
    columns = first_record_columns(rows)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(columns)
    for row in rows:
        writer.writerow([_text_value(row.get(col)) for col in columns])
    return buffer.getvalue().encode("utf-8")


# ------------------------------- json --------------------------------------
def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, dt.timedelta):
        return _format_timedelta(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return _decode_bytes(bytes(value))
    if isinstance(value, (set, frozenset)):
        # SET columns
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(rows: Sequence[Mapping[str, Any]]) -> bytes:
    return json.dumps(
        [dict(row) for row in rows], default=_json_default, ensure_ascii=False
    ).encode("utf-8")


# ------------------------------- excel -------------------------------------
def safe_sheet_title(name: str) -> str:
    title = _INVALID_SHEET_CHARS_RE.sub("_", name or "").strip("'") or "Sheet1"
    if len(title) > _SHEET_TITLE_MAX:
        title = title[: _SHEET_TITLE_MAX - 3] + "..."
    return title


def _cell_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, Decimal)):
        return value
    if isinstance(value, (dt.datetime, dt.date, dt.time, dt.timedelta)):
        return value
    if isinstance(value, str):
        return ILLEGAL_CHARACTERS_RE.sub("", value)
    return ILLEGAL_CHARACTERS_RE.sub("", _text_value(value))


def to_excel(rows: Sequence[Mapping[str, Any]], *, sheet_name: str = QUERY_SHEET_NAME) -> bytes:
    """Single-sheet workbook: styled header row, one row per record."""
    columns = first_record_columns(rows)

    workbook = openpyxl.Workbook()
    worksheet = workbook.active
    worksheet.title = safe_sheet_title(sheet_name)

    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
    header_alignment = Alignment(horizontal="center", vertical="center")
    thin = Side(style="thin")

    for col, header in enumerate(columns, 1):
        cell = worksheet.cell(row=1, column=col, value=header)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_alignment
        cell.border = Border(left=thin, right=thin, top=thin, bottom=thin)

    for row_idx, row in enumerate(rows, 2):
        for col, name in enumerate(columns, 1):
            value = _cell_value(row.get(name))
            cell = worksheet.cell(row=row_idx, column=col, value=value)
            if isinstance(value, str) and value.startswith("="):
                # Data, not a formula.
                cell.data_type = "s"

    # Auto-adjust column widths
    for col_num, column_cells in enumerate(worksheet.columns, 1):
        max_length = max(
            (len(str(cell.value)) for cell in column_cells if cell.value is not None),
            default=0,
        )
        worksheet.column_dimensions[get_column_letter(col_num)].width = min(
            max(max_length + 2, 10), 50
        )  # Min 10, Max 50 characters

    excel_buffer = io.BytesIO()
    workbook.save(excel_buffer)
    return excel_buffer.getvalue()


# ------------------------------ helpers ------------------------------------
def _decode_bytes(value: bytes) -> str:
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        return base64.b64encode(value).decode("ascii")


def _format_timedelta(value: dt.timedelta) -> str:
    # MySQL TIME columns arrive as timedelta and may be negative or exceed 24h.
    total = int(value.total_seconds())
    sign = "-" if total < 0 else ""
    total = abs(total)
    hours, rem = divmod(total, 3600)
    minutes, seconds = divmod(rem, 60)
    return f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ColumnInfo(BaseModel):
    """One ``DESCRIBE`` row."""

    field: str
    type: str
    null: Optional[str] = None
    key: Optional[str] = None
    default: Optional[str] = None
    extra: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_describe_row(cls, row: dict[str, Any]) -> "ColumnInfo":
        return cls(
            field=_text(row.get("Field")) or "",
            type=_text(row.get("Type")) or "",
            null=_text(row.get("Null")),
            key=_text(row.get("Key")),
            default=_text(row.get("Default")),
            extra=_text(row.get("Extra")),
        )


class TableData(BaseModel):
    columns: list[ColumnInfo]
    rows: list[dict[str, Any]]


class TablePage(BaseModel):
    tables: list[str]
    selected_table: str
    data: TableData


class QueryExportRequest(BaseModel):
    query: str
    format: str
    filename: Optional[str] = Field(default=None)

    model_config = ConfigDict(extra="forbid")


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)

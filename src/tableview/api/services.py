from __future__ import annotations

import logging
from typing import Any, List, Optional

from tableview.database import Database
from tableview.export import (
    QUERY_SHEET_NAME,
    ExportResult,
    export_rows,
    query_export_basename,
    table_export_basename,
)
from tableview.settings import ConnectionSettings
from tableview.sql_utils import SearchProfile, build_search_query, is_numeric_term

from .schemas import ColumnInfo, TableData, TablePage
from .session_store import SessionStore

logger = logging.getLogger("tableview.api.services")


class BrowserService:
    """
    Service contract for the credential-driven table browser.

    Every method takes the caller's session id; implementations resolve it to that
    session's database rather than running SQL in the web layer.
    """

    def connect(
        self, session_id: str, settings: ConnectionSettings
    ) -> List[str]:  # pragma: no cover - interface
        raise NotImplementedError

    def disconnect(self, session_id: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def view_table(self, session_id: str, table: str) -> TablePage:  # pragma: no cover - interface
        raise NotImplementedError

    def export_table(
        self, session_id: str, fmt: str, table: str
    ) -> ExportResult:  # pragma: no cover - interface
        raise NotImplementedError

    def export_query(
        self, session_id: str, query: str, fmt: str, filename: Optional[str] = None
    ) -> ExportResult:  # pragma: no cover - interface
        raise NotImplementedError


class MySQLBrowserService(BrowserService):
    """Concrete service backed by per-session ``Database`` objects."""

    def __init__(self, session_store: SessionStore) -> None:
        self.session_store = session_store

    def connect(self, session_id: str, settings: ConnectionSettings) -> List[str]:
        # The submitted settings replace the session's previous ones before they are
        # verified, so a failed connect leaves the failing config in place.
        database = self.session_store.connect(session_id, settings)
        tables = database.list_tables()
        logger.info(f"Connected to {settings.label()} with {len(tables)} tables")
        return tables

    def disconnect(self, session_id: str) -> None:
        self.session_store.disconnect(session_id)

    def view_table(self, session_id: str, table: str) -> TablePage:
        database = self.session_store.get(session_id)
        tables = database.require_table(table)
        rows = database.select_all(table)
        columns = [ColumnInfo.from_describe_row(row) for row in database.describe_table(table)]
        logger.info(f"Fetched {len(rows)} rows and {len(columns)} columns from {table}")
        return TablePage(
            tables=tables,
            selected_table=table,
            data=TableData(columns=columns, rows=rows),
        )

    def export_table(self, session_id: str, fmt: str, table: str) -> ExportResult:
        database = self.session_store.get(session_id)
        database.require_table(table)
        rows = database.select_all(table)
        return export_rows(
            rows,
            fmt,
            basename=table_export_basename(table),
            sheet_name=table,
            empty_message="No data found in table",
        )

    def export_query(
        self, session_id: str, query: str, fmt: str, filename: Optional[str] = None
    ) -> ExportResult:
        database = self.session_store.get(session_id)
        rows = database.query(query)
        return export_rows(
            rows,
            fmt,
            basename=query_export_basename(filename),
            sheet_name=QUERY_SHEET_NAME,
        )


class SearchService:
    """Live search over a fixed table through a shared, startup-configured pool."""

    def __init__(self, database: Database, profile: SearchProfile) -> None:
        self.database = database
        self.profile = profile

    def search(self, term: Optional[str]) -> list[dict[str, Any]]:
        term = (term or "").strip()
        if not term:
            return []
        sql, params = build_search_query(term, self.profile)
        logger.info(
            f"Searching {self.profile.table} (numeric={is_numeric_term(term)}, "
            f"limit={self.profile.limit})"
        )
        rows = self.database.query(sql, params)
        return rows[: self.profile.limit]

    def close(self) -> None:
        self.database.close()

from .database import Database
from .errors import (
    DatabaseConnectionError,
    EmptyResultError,
    NotConnectedError,
    QueryError,
    TableViewError,
    UnknownTableError,
    UnsupportedFormatError,
)
from .export import (
    ExportFormat,
    ExportResult,
    export_rows,
    query_export_basename,
    table_export_basename,
    to_csv,
    to_excel,
    to_json,
)
from .pool import ConnectionPool
from .settings import ConnectionSettings
from .sql_utils import (
    ITEMS_PROFILE,
    PEOPLE_PROFILE,
    SearchProfile,
    build_search_query,
    is_numeric_term,
    quote_identifier,
    table_names,
)

__version__ = "0.1.0"

__all__ = [
    "Database",
    "ConnectionPool",
    "ConnectionSettings",
    # Errors
    "TableViewError",
    "DatabaseConnectionError",
    "NotConnectedError",
    "QueryError",
    "UnknownTableError",
    "UnsupportedFormatError",
    "EmptyResultError",
    # Export
    "ExportFormat",
    "ExportResult",
    "export_rows",
    "table_export_basename",
    "query_export_basename",
    "to_csv",
    "to_json",
    "to_excel",
    # SQL utilities
    "SearchProfile",
    "PEOPLE_PROFILE",
    "ITEMS_PROFILE",
    "build_search_query",
    "is_numeric_term",
    "quote_identifier",
    "table_names",
]

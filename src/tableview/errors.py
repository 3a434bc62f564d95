"""Error taxonomy shared by the database layer and the HTTP handlers."""

from __future__ import annotations


class TableViewError(Exception):
    """Base class; ``status_code`` is the HTTP status used at the handler boundary."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class DatabaseConnectionError(TableViewError):
    """Bad credentials or unreachable host."""


class NotConnectedError(TableViewError):
    status_code = 400

    def __init__(self, message: str = "No database connection") -> None:
        super().__init__(message)


class QueryError(TableViewError):
    """Malformed SQL, unknown table/column, or a database-side rejection."""


class UnknownTableError(QueryError):
    def __init__(self, table: str) -> None:
        super().__init__(f"Table '{table}' does not exist")
        self.table = table


class UnsupportedFormatError(TableViewError):
    status_code = 400

    def __init__(self, fmt: str) -> None:
        super().__init__("Unsupported export format")
        self.format = fmt


class EmptyResultError(TableViewError):
    status_code = 404

    def __init__(self, message: str = "No data found") -> None:
        super().__init__(message)

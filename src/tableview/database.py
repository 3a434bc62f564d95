from __future__ import annotations

import logging
from time import time
from typing import Any, Callable, Optional, Sequence

import pymysql
import pymysql.cursors

from .errors import DatabaseConnectionError, QueryError, UnknownTableError
from .pool import ConnectionPool
from .settings import ConnectionSettings
from .sql_utils import quote_identifier, rows_to_records, table_names

_logger = logging.getLogger("tableview.database")

Record = dict[str, Any]


class Database:
    """
    Thin wrapper around ``pymysql`` that provides:

    * lazy, pooled connections with scoped acquisition
    * structured logging for every statement
    * translation of driver failures into ``DatabaseConnectionError``/``QueryError``
    * helper methods for the introspection queries the browser needs
    """

    def __init__(
        self,
        settings: ConnectionSettings,
        *,
        pool_size: int = 10,
        max_idle: Optional[int] = None,
        connect_timeout: int = 10,
        log_sql_text: bool = True,
        log_sql_truncate: int = 4000,
        connect_factory: Callable[..., Any] = pymysql.connect,
    ) -> None:
        self.settings = settings
        self.connect_timeout = connect_timeout
        self.log_sql_text = log_sql_text
        self.log_sql_truncate = (
            log_sql_truncate if log_sql_truncate and log_sql_truncate > 0 else 4000
        )
        self._connect_factory = connect_factory
        self.pool = ConnectionPool(
            self._open_connection,
            max_connections=pool_size,
            max_idle=max_idle,
            name=settings.label(),
        )

    # ----------------------- connection management -----------------------
    def _open_connection(self):
        s = self.settings
        _logger.info(
            "Establishing connection | host=%s:%s user=%s database=%s",
            s.host,
            s.port,
            s.user,
            s.database,
        )
        try:
            return self._connect_factory(
                host=s.host,
                port=s.port,
                user=s.user,
                password=s.password,
                database=s.database,
                charset="utf8mb4",
                cursorclass=pymysql.cursors.DictCursor,
                connect_timeout=self.connect_timeout,
                autocommit=True,
            )
        except pymysql.Error as exc:
            _logger.error("Connection failed | db=%s | error=%s", s.label(), exc)
            raise DatabaseConnectionError(_driver_message(exc)) from exc

    def close(self) -> None:
        self.pool.close()

    # ---------------------------- execution ------------------------------
    def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> list[Record]:
        """Execute a statement and return its rows as ordered records.

        ``params`` are bound by the driver; pass ``None`` to send ``sql`` untouched.
        """
        trimmed = (sql or "").strip()
        label = self.settings.label()

        if self.log_sql_text:
            display = (
                trimmed
                if len(trimmed) <= self.log_sql_truncate
                else trimmed[: self.log_sql_truncate] + " ... [truncated]"
            )
            _logger.info(
                "QUERY | db=%s | len=%d | params=%d | sql=%s",
                label,
                len(trimmed),
                len(params or ()),
                display,
            )
        else:
            _logger.info(
                "QUERY | db=%s | len=%d | params=%d", label, len(trimmed), len(params or ())
            )

        start = time()
        with self.pool.connection() as conn:
            try:
                with conn.cursor() as cursor:
                    if params is None:
                        cursor.execute(trimmed)
                    else:
                        cursor.execute(trimmed, tuple(params))
                    rows = rows_to_records(cursor.fetchall())
            except pymysql.Error as exc:
                _logger.exception(
                    "QUERY FAILED | db=%s | elapsed=%.3fs | error=%s", label, time() - start, exc
                )
                raise QueryError(_driver_message(exc)) from exc

        _logger.info("QUERY OK | db=%s | rows=%d | elapsed=%.3fs", label, len(rows), time() - start)
        return rows

    # ------------------------- introspection utils -----------------------
    def list_tables(self) -> list[str]:
        return table_names(self.query("SHOW TABLES"))

    def describe_table(self, table: str) -> list[Record]:
        return self.query(f"DESCRIBE {quote_identifier(table)}")

    def select_all(self, table: str) -> list[Record]:
        return self.query(f"SELECT * FROM {quote_identifier(table)}")

    def require_table(self, table: str) -> list[str]:
        """
        Return the current table list, raising ``UnknownTableError`` when ``table`` is
        not in it. Table names are interpolated into SQL, so callers check them here first.
        """
        tables = self.list_tables()
        if table not in tables:
            _logger.warning("Rejected unknown table | db=%s | table=%s", self.settings.label(), table)
            raise UnknownTableError(table)
        return tables

    # ------------------------------ misc ---------------------------------
    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"<Database {self.settings.label()}>"


def _driver_message(exc: BaseException) -> str:
    # PyMySQL errors carry (code, message) args.
    args = getattr(exc, "args", ())
    if len(args) == 2 and isinstance(args[1], str):
        return args[1]
    return str(exc)

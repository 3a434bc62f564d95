"""
Test utilities and fixtures for the table viewer.
Fake PyMySQL connections, a fake server that answers by SQL pattern, and app clients.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

import pymysql
import pytest
from fastapi.testclient import TestClient

from tableview.api.app import create_app
from tableview.api.services import MySQLBrowserService, SearchService
from tableview.api.session_store import SessionStore
from tableview.database import Database
from tableview.settings import ConnectionSettings
from tableview.sql_utils import PEOPLE_PROFILE, SearchProfile

USERS_ROWS = [
    {"id": 1, "name": "Ada", "email": "ada@example.com", "note": None},
    {"id": 2, "name": "Linus, Jr.", "email": "linus@example.com", "note": 'says "hi"\ntwice'},
]

USERS_DESCRIBE = [
    {"Field": "id", "Type": "int", "Null": "NO", "Key": "PRI", "Default": None, "Extra": "auto_increment"},
    {"Field": "name", "Type": "varchar(100)", "Null": "NO", "Key": "", "Default": None, "Extra": ""},
    {"Field": "email", "Type": "varchar(255)", "Null": "YES", "Key": "UNI", "Default": None, "Extra": ""},
    {"Field": "note", "Type": "text", "Null": "YES", "Key": "", "Default": None, "Extra": ""},
]


class FakeCursor:
    """Mock DictCursor recording executed statements on its server."""

    def __init__(self, server: "FakeMySQLServer"):
        self.server = server
        self._rows: List[Dict[str, Any]] = []

    def execute(self, sql: str, params=None):
        self.server.queries.append({"sql": sql, "parameters": params})
        self._rows = self.server.respond(sql, params)
        return len(self._rows)

    def fetchall(self):
        return self._rows

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeConnection:
    """Mock PyMySQL connection."""

    def __init__(self, server: "FakeMySQLServer", kwargs: dict):
        self.server = server
        self.kwargs = kwargs
        self.closed = False
        self.alive = True

    def cursor(self):
        return FakeCursor(self.server)

    def ping(self, reconnect: bool = True):
        if not self.alive:
            raise pymysql.err.OperationalError(2006, "MySQL server has gone away")
        return True

    def close(self):
        self.closed = True


class FakeMySQLServer:
    """Answers statements by pattern, like a tiny MySQL with fixed data."""

    def __init__(
        self,
        tables: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        describe: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        responses: Optional[Dict[str, Any]] = None,
        database: str = "demo",
    ):
        self.tables = tables if tables is not None else {"users": USERS_ROWS, "empty_table": []}
        self.describe = describe if describe is not None else {"users": USERS_DESCRIBE}
        self.responses = responses or {}
        self.database = database
        self.queries: List[Dict[str, Any]] = []
        self.connections: List[FakeConnection] = []
        self.connect_error: Optional[Exception] = None
        self.errors: Dict[str, Exception] = {}

    # pymysql.connect replacement
    def connect(self, **kwargs):
        if self.connect_error is not None:
            raise self.connect_error
        conn = FakeConnection(self, kwargs)
        self.connections.append(conn)
        return conn

    def respond(self, sql: str, params=None) -> List[Dict[str, Any]]:
        for pattern, exc in self.errors.items():
            if pattern in sql:
                raise exc

        if sql == "SHOW TABLES":
            return [{f"Tables_in_{self.database}": name} for name in self.tables]
        if sql.startswith("DESCRIBE `"):
            return copy.deepcopy(self.describe.get(_table_of(sql), []))
        if sql.startswith("SELECT * FROM `"):
            table = _table_of(sql)
            if table not in self.tables:
                raise pymysql.err.ProgrammingError(1146, f"Table '{self.database}.{table}' doesn't exist")
            return copy.deepcopy(self.tables[table])
        for pattern, rows in self.responses.items():
            if pattern in sql:
                return copy.deepcopy(rows)
        return []

    def sql_log(self) -> List[str]:
        return [q["sql"] for q in self.queries]


def _table_of(sql: str) -> str:
    return sql.split("`")[1]


def make_settings(**overrides) -> ConnectionSettings:
    values = dict(host="localhost", port=3306, user="root", password="secret", database="demo")
    values.update(overrides)
    return ConnectionSettings(**values)


def build_client(
    server: FakeMySQLServer,
    search_server: Optional[FakeMySQLServer] = None,
    profile: SearchProfile = PEOPLE_PROFILE,
) -> TestClient:
    store = SessionStore(pool_size=2, connect_factory=server.connect)
    search_service = None
    if search_server is not None:
        search_service = SearchService(
            Database(make_settings(), pool_size=2, connect_factory=search_server.connect),
            profile,
        )
    app = create_app(
        MySQLBrowserService(store), search_service=search_service, session_store=store
    )
    return TestClient(app)


CONNECT_FORM = {
    "host": "localhost",
    "port": "3306",
    "user": "root",
    "password": "secret",
    "database": "demo",
}


@pytest.fixture
def server() -> FakeMySQLServer:
    return FakeMySQLServer()


@pytest.fixture
def search_server() -> FakeMySQLServer:
    return FakeMySQLServer(tables={})


@pytest.fixture
def client(server: FakeMySQLServer, search_server: FakeMySQLServer) -> TestClient:
    return build_client(server, search_server)


@pytest.fixture
def connected_client(client: TestClient, server: FakeMySQLServer) -> TestClient:
    response = client.post("/database/connect", data=CONNECT_FORM)
    assert response.status_code == 200
    assert "Connected successfully!" in response.text
    server.queries.clear()
    return client

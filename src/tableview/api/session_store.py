from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict

import pymysql

from tableview.database import Database
from tableview.errors import NotConnectedError
from tableview.settings import ConnectionSettings

logger = logging.getLogger("tableview.api.sessions")


class SessionStore:
    """
    In-memory registry of the database connection owned by each browser session.

    A session holds at most one connection config at a time. ``connect`` replaces it
    (closing the previous pool) and ``disconnect`` clears it. Session pools keep no
    idle connections, so a session that never disconnects holds no open sockets
    between requests.
    """

    def __init__(
        self,
        *,
        pool_size: int = 5,
        connect_factory: Callable[..., Any] = pymysql.connect,
    ) -> None:
        self._instances: Dict[str, Database] = {}
        self._lock = threading.Lock()
        self.pool_size = pool_size
        self._connect_factory = connect_factory

    def _build_database(self, settings: ConnectionSettings) -> Database:
        return Database(
            settings,
            pool_size=self.pool_size,
            max_idle=0,
            connect_factory=self._connect_factory,
        )

    def connect(self, session_id: str, settings: ConnectionSettings) -> Database:
        """Store ``settings`` for the session and return its (unverified) database."""
        logger.info(f"Storing connection for session {_short(session_id)}: {settings.label()}")
        database = self._build_database(settings)
        with self._lock:
            previous = self._instances.pop(session_id, None)
            self._instances[session_id] = database
        if previous is not None:
            previous.close()
        return database

    def get(self, session_id: str) -> Database:
        with self._lock:
            database = self._instances.get(session_id)
        if database is None:
            logger.info(f"Session {_short(session_id)} has no active connection")
            raise NotConnectedError()
        return database

    def disconnect(self, session_id: str) -> None:
        with self._lock:
            database = self._instances.pop(session_id, None)
        if database is not None:
            database.close()
            logger.info(f"Disconnected session {_short(session_id)}")

    def close_all(self) -> None:
        with self._lock:
            instances = list(self._instances.values())
            self._instances.clear()
        for database in instances:
            database.close()


def _short(session_id: str) -> str:
    return session_id[:8]

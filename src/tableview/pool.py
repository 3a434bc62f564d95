from __future__ import annotations

import logging
import queue
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator

import pymysql

_logger = logging.getLogger("tableview.pool")

# Failures after which a connection must not be handed out again.
_BROKEN_CONNECTION_ERRORS = (pymysql.err.OperationalError, pymysql.err.InterfaceError)


class PoolClosedError(RuntimeError):
    pass


class ConnectionPool:
    """Bounded pool of DB-API connections.

    At most ``max_connections`` connections are checked out at once. Further
    callers block until a connection is returned; there is no wait timeout, so
    the wait queue is unbounded. Connections are opened lazily through
    ``factory`` and reused after a ``ping``. At most ``max_idle`` connections
    are kept between checkouts (``None`` keeps all of them, ``0`` closes each
    connection when its scope exits).

    Thread-safe: idle connections live in a ``queue.LifoQueue`` and checkouts
    are counted by a semaphore.
    """

    def __init__(
        self,
        factory: Callable[[], Any],
        *,
        max_connections: int = 10,
        max_idle: int | None = None,
        name: str = "default",
    ) -> None:
        if max_connections < 1:
            raise ValueError("max_connections must be at least 1")
        if max_idle is not None and max_idle < 0:
            raise ValueError("max_idle must not be negative")
        self.name = name
        self.max_connections = max_connections
        self.max_idle = max_idle
        self._factory = factory
        self._idle: queue.LifoQueue[Any] = queue.LifoQueue()
        self._slots = threading.BoundedSemaphore(max_connections)
        self._lock = threading.Lock()
        self._in_use = 0
        self._closed = False

    @property
    def in_use(self) -> int:
        return self._in_use

    @property
    def idle(self) -> int:
        return self._idle.qsize()

    @property
    def closed(self) -> bool:
        return self._closed

    def acquire(self) -> Any:
        """Borrow a connection, waiting for a free slot if the pool is exhausted."""
        if self._closed:
            raise PoolClosedError(f"Connection pool '{self.name}' is closed")

        self._slots.acquire()
        try:
            connection = self._take_idle()
            if connection is None:
                _logger.info("Opening new connection | pool=%s", self.name)
                connection = self._factory()
        except BaseException:
            self._slots.release()
            raise

        with self._lock:
            self._in_use += 1
        return connection

    def release(self, connection: Any, *, discard: bool = False) -> None:
        """Return a borrowed connection; ``discard`` closes it instead of keeping it."""
        with self._lock:
            self._in_use -= 1
        try:
            if discard or self._closed or self._idle_is_full():
                _close_quietly(connection)
            else:
                self._idle.put(connection)
        finally:
            self._slots.release()

    @contextmanager
    def connection(self) -> Iterator[Any]:
        """Scoped checkout: the connection goes back to the pool on every exit path."""
        conn = self.acquire()
        discard = False
        try:
            yield conn
        except BaseException as exc:
            discard = _is_broken(exc)
            raise
        finally:
            self.release(conn, discard=discard)

    def close(self) -> None:
        """Close idle connections; connections still checked out close on release."""
        self._closed = True
        closed = 0
        while True:
            try:
                connection = self._idle.get(block=False)
            except queue.Empty:
                break
            _close_quietly(connection)
            closed += 1
        _logger.info("Closed connection pool | pool=%s | closed=%d", self.name, closed)

    def _idle_is_full(self) -> bool:
        return self.max_idle is not None and self._idle.qsize() >= self.max_idle

    def _take_idle(self) -> Any | None:
        while True:
            try:
                connection = self._idle.get(block=False)
            except queue.Empty:
                return None
            try:
                connection.ping(reconnect=False)
                return connection
            except Exception as exc:
                _logger.warning("Dropping stale connection | pool=%s | error=%s", self.name, exc)
                _close_quietly(connection)

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return (
            f"<ConnectionPool {self.name} in_use={self._in_use} idle={self.idle} "
            f"max={self.max_connections}>"
        )


def _is_broken(exc: BaseException) -> bool:
    return isinstance(exc, _BROKEN_CONNECTION_ERRORS) or isinstance(
        exc.__cause__, _BROKEN_CONNECTION_ERRORS
    )


def _close_quietly(connection: Any) -> None:
    try:
        connection.close()
    except Exception as exc:  # pragma: no cover - close errors are driver-specific
        _logger.warning("Error while closing connection: %s", exc)

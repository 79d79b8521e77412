"""
db/connection.py
----------------
Manages the PostgreSQL connection pool.
Uses psycopg2's ThreadedConnectionPool for efficient connection reuse,
capped at DB_POOL_MAX open connections.
"""

import threading
from contextlib import contextmanager
from typing import Iterator, Optional

import psycopg2
from psycopg2 import pool

from config import DATABASE_URL, DB_POOL_MAX, DB_POOL_MIN
from db.errors import ConnectivityError
from utils.logger import get_logger

logger = get_logger(__name__)


class ConnectionPool:
    """
    Process-wide handle to the database.

    The underlying psycopg2 pool is opened lazily on the first acquire, so
    constructing a ConnectionPool never touches the network.
    """

    def __init__(self, dsn: str = DATABASE_URL, min_conn: int = DB_POOL_MIN, max_conn: int = DB_POOL_MAX):
        self.dsn = dsn
        self.min_conn = min_conn
        self.max_conn = max_conn
        self._pool: Optional[pool.ThreadedConnectionPool] = None
        self._in_use: dict[int, object] = {}
        self._lock = threading.Lock()

    def _open(self) -> pool.ThreadedConnectionPool:
        with self._lock:
            if self._pool is None:
                try:
                    self._pool = pool.ThreadedConnectionPool(self.min_conn, self.max_conn, self.dsn)
                except psycopg2.OperationalError as e:
                    logger.error(f"Failed to initialize database pool: {e}")
                    raise ConnectivityError(f"Database unreachable: {e}") from e
                logger.info(f"Database connection pool initialized (max {self.max_conn} connections).")
            return self._pool

    def acquire(self):
        """
        Get a connection from the pool.

        Raises:
            ConnectivityError: If the database cannot be reached.
            psycopg2.pool.PoolError: If all DB_POOL_MAX connections are checked out.
        """
        conn = self._open().getconn()
        with self._lock:
            self._in_use[id(conn)] = conn
        return conn

    def release(self, conn) -> None:
        """Return a connection to the pool. Releasing twice is a no-op."""
        with self._lock:
            if self._in_use.pop(id(conn), None) is None or self._pool is None:
                return
            target = self._pool
        target.putconn(conn, close=bool(conn.closed))

    @contextmanager
    def connection(self) -> Iterator:
        """Scoped acquisition: the connection is released on every exit path."""
        conn = self.acquire()
        try:
            yield conn
        finally:
            self.release(conn)

    def close(self) -> None:
        """Close all connections in the pool."""
        with self._lock:
            if self._pool is None:
                return
            self._pool.closeall()
            self._pool = None
            self._in_use.clear()
        logger.info("Database connection pool closed.")


_pool: Optional[ConnectionPool] = None


def init_pool(dsn: str = DATABASE_URL, min_conn: int = DB_POOL_MIN, max_conn: int = DB_POOL_MAX) -> ConnectionPool:
    """
    Create the shared pool used by the process (idempotent).

    Returns:
        The shared ConnectionPool.
    """
    global _pool
    if _pool is None:
        _pool = ConnectionPool(dsn, min_conn, max_conn)
    return _pool


def get_pool() -> ConnectionPool:
    """
    Return the shared pool.

    Raises:
        RuntimeError: If the pool has not been initialized.
    """
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")
    return _pool


def close_pool() -> None:
    """Close the shared pool and forget it."""
    global _pool
    if _pool is not None:
        _pool.close()
        _pool = None

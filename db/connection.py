"""
db/connection.py
----------------
PostgreSQL connection pool shared by the repositories.

The pool is thread-safe so that several process-due runs (or a scheduler
with worker threads) can record occurrences concurrently; the repositories
rely on row-level compare-and-swap updates rather than on the pool for
correctness.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

import psycopg2
from psycopg2 import pool

from config import DATABASE_URL, DB_POOL_MAX, DB_POOL_MIN, DB_STATEMENT_TIMEOUT_MS
from utils.logger import get_logger

logger = get_logger(__name__)

_pool: Optional[pool.ThreadedConnectionPool] = None


def _connect_options() -> Optional[str]:
    # statement_timeout=0 means "no limit" to PostgreSQL, so leave it unset instead
    if DB_STATEMENT_TIMEOUT_MS <= 0:
        return None
    return f"-c statement_timeout={DB_STATEMENT_TIMEOUT_MS}"


def init_pool(min_conn: int = DB_POOL_MIN, max_conn: int = DB_POOL_MAX) -> None:
    """
    Open the pool if it is not open yet.

    Every connection carries the configured statement timeout, so a slow
    query surfaces as ``psycopg2.errors.QueryCanceled`` (pgcode 57014)
    instead of blocking the caller.

    Raises:
        psycopg2.OperationalError: If the database is unreachable.
    """
    global _pool
    if _pool is not None:
        return
    try:
        _pool = pool.ThreadedConnectionPool(
            min_conn, max_conn, DATABASE_URL, options=_connect_options(),
        )
    except psycopg2.OperationalError as e:
        logger.error(f"Could not open database pool ({min_conn}-{max_conn} connections): {e}")
        raise
    logger.info(
        f"Database pool open ({min_conn}-{max_conn} connections, "
        f"statement timeout {DB_STATEMENT_TIMEOUT_MS or 'off'} ms)"
    )


def get_connection():
    """
    Borrow a connection. Every call must be paired with release_connection().

    Raises:
        RuntimeError: If init_pool() has not been called.
    """
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")
    return _pool.getconn()


def release_connection(conn) -> None:
    """Hand a connection back; broken connections are discarded, not reused."""
    if _pool is None:
        return
    _pool.putconn(conn, close=bool(conn.closed))


@contextmanager
def pooled_connection() -> Iterator:
    """
    Borrow a connection for the duration of a ``with`` block.

    Commits when the block exits normally and rolls back when it raises.
    """
    conn = get_connection()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        release_connection(conn)


def close_pool() -> None:
    global _pool
    if _pool is None:
        return
    _pool.closeall()
    _pool = None
    logger.info("Database pool closed.")

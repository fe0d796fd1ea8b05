"""Database access layer using psycopg2.

Provides:
- get_conn(): Get a database connection from DATABASE_URL
- create_pool() / pooled_conn(): Thread-safe connection checkout
- txn(): Context manager for short, safe transactions (optionally time-boxed)
- fetchone/fetchall: Query helpers
"""

import os
from contextlib import contextmanager
from typing import Any, Iterator, Sequence
from urllib.parse import urlparse

import psycopg2
from psycopg2.extensions import connection as PgConnection, cursor as PgCursor
from psycopg2.pool import ThreadedConnectionPool


def _dsn_has_password(dsn: str) -> bool:
    """Detect a password in either URL or key=value DSN form."""
    if "://" in dsn:
        return urlparse(dsn).password is not None
    return any(part.startswith("password=") for part in dsn.split())


def _connect_args() -> tuple[str, dict[str, str]]:
    """DSN from DATABASE_URL plus a DB_PASSWORD fallback when the DSN has none."""
    dsn = os.environ.get("DATABASE_URL")
    if not dsn:
        raise RuntimeError("DATABASE_URL environment variable not set")

    password = os.environ.get("DB_PASSWORD")
    if password and not _dsn_has_password(dsn):
        return dsn, {"password": password}
    return dsn, {}


def get_conn() -> PgConnection:
    """Get a new database connection from DATABASE_URL.

    If the DSN carries no password and DB_PASSWORD is set, it is passed
    separately so secrets can be mounted apart from the DSN.

    Returns:
        psycopg2 connection object.

    Raises:
        RuntimeError: If DATABASE_URL is not set.
        psycopg2.Error: On connection failure.
    """
    dsn, kwargs = _connect_args()
    return psycopg2.connect(dsn, **kwargs)


def create_pool(minconn: int = 1, maxconn: int = 10) -> ThreadedConnectionPool:
    """Create a thread-safe pool over DATABASE_URL (same password rules as get_conn).

    Raises:
        RuntimeError: If DATABASE_URL is not set.
    """
    dsn, kwargs = _connect_args()
    return ThreadedConnectionPool(minconn, maxconn, dsn, **kwargs)


@contextmanager
def pooled_conn(pool: ThreadedConnectionPool) -> Iterator[PgConnection]:
    """Check a connection out of the pool for one unit of work.

    A psycopg2 connection holds a single server transaction, so a checked-out
    connection must not be shared with another thread until it is returned.
    """
    conn = pool.getconn()
    try:
        yield conn
    finally:
        pool.putconn(conn)


def default_statement_timeout_ms() -> int | None:
    """Statement timeout from SITESTAY_STATEMENT_TIMEOUT_MS, if configured.

    Anything other than a positive integer means no timeout.
    """
    raw = os.environ.get("SITESTAY_STATEMENT_TIMEOUT_MS", "").strip()
    if not raw.isdigit():
        return None
    return int(raw) or None


@contextmanager
def txn(
    conn: PgConnection | None = None,
    *,
    statement_timeout_ms: int | None = None,
) -> Iterator[PgCursor]:
    """Context manager for a short, safe transaction.

    If conn is None, creates a new connection that is closed on exit.
    Commits on successful exit, rolls back on exception.

    Args:
        conn: Optional existing connection. If None, creates new one.
        statement_timeout_ms: If set, applied transaction-locally so the server
            aborts any statement in this transaction that runs longer.

    Yields:
        Cursor for executing queries within the transaction.

    Example:
        with txn(statement_timeout_ms=500) as cur:
            cur.execute("SELECT 1")
    """
    owns_conn = conn is None
    if owns_conn:
        conn = get_conn()

    try:
        with conn.cursor() as cur:
            if statement_timeout_ms is not None:
                # SET does not accept bind parameters; set_config does
                cur.execute(
                    "SELECT set_config('statement_timeout', %s, true)",
                    (str(max(1, statement_timeout_ms)),),
                )
            yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        if owns_conn:
            conn.close()


def fetchone(
    cur: PgCursor,
    query: str,
    params: Sequence[Any] | None = None,
) -> tuple[Any, ...] | None:
    """Execute query and fetch one row.

    Args:
        cur: Database cursor.
        query: SQL query with %s placeholders.
        params: Query parameters.

    Returns:
        Single row tuple or None if no results.
    """
    cur.execute(query, params)
    return cur.fetchone()


def fetchall(
    cur: PgCursor,
    query: str,
    params: Sequence[Any] | None = None,
) -> list[tuple[Any, ...]]:
    """Execute query and fetch all rows.

    Args:
        cur: Database cursor.
        query: SQL query with %s placeholders.
        params: Query parameters.

    Returns:
        List of row tuples.
    """
    cur.execute(query, params)
    return cur.fetchall()

"""
Database connection factory utilities for the ledger API.

Provides the bounded PostgreSQL connection pool with explicit lifecycle
management (PoolManager), the `unit_of_work` context manager every ledger
operation runs inside, and one-off admin connections for schema management.

Includes retry logic for transient start-up failures using tenacity. Ledger
operations themselves are never retried.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Generator, Optional

import psycopg
from psycopg import Connection
from psycopg_pool import ConnectionPool, PoolTimeout
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ledger_api.config import Settings, get_settings
from ledger_api.utils.logging import get_logger

log = get_logger(__name__)

READ_COMMITTED = "READ COMMITTED"
REPEATABLE_READ = "REPEATABLE READ"


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings; DATABASE_URL wins when set."""
    settings = settings or get_settings()
    if settings.database_url:
        return settings.database_url
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


class PoolManager:
    """
    Owner of the process-wide connection pool.

    Created at startup, opened once, handed explicitly to the services and
    closed at shutdown. The pool is bounded (min/max size, capped waiting
    queue), checks connections before handing them out and evicts them after
    `max_idle` seconds idle or `max_lifetime` seconds in total.
    """

    def __init__(self, settings: Optional[Settings] = None, conninfo: Optional[str] = None) -> None:
        self.settings = settings or get_settings()
        self._conninfo = conninfo or build_dsn(self.settings)
        self._pool: Optional[ConnectionPool] = None

    @property
    def pool(self) -> ConnectionPool:
        if self._pool is None:
            raise RuntimeError("connection pool is not open")
        return self._pool

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    def open(self) -> ConnectionPool:
        """
        Create and open the pool, waiting until `min_size` connections are up.

        Returns
        -------
        ConnectionPool
            The managed pool instance.

        Raises
        ------
        psycopg_pool.PoolTimeout
            If the database is still unreachable after all retry attempts.
        """
        if self._pool is not None:
            return self._pool

        s = self.settings
        pool = ConnectionPool(
            conninfo=self._conninfo,
            min_size=s.db_pool_min_size,
            max_size=s.db_pool_max_size,
            max_waiting=s.db_pool_max_waiting,
            max_lifetime=s.db_pool_max_lifetime_s,
            max_idle=s.db_pool_max_idle_s,
            timeout=s.db_statement_timeout_ms / 1000.0,
            check=ConnectionPool.check_connection,
            kwargs={
                "autocommit": True,
                "connect_timeout": s.db_connect_timeout_s,
                "application_name": "ledger-api",
            },
            name="ledger",
            open=False,
        )
        pool.open()
        try:
            self._wait_ready(pool)
        except PoolTimeout:
            pool.close()
            raise
        self._pool = pool
        log.info(
            "Connection pool open",
            extra={"min_size": s.db_pool_min_size, "max_size": s.db_pool_max_size},
        )
        return pool

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(PoolTimeout),
        reraise=True,
    )
    def _wait_ready(self, pool: ConnectionPool) -> None:
        pool.wait(timeout=float(self.settings.db_connect_timeout_s))

    def ping(self) -> None:
        """Round-trip a trivial query through the pool."""
        with self.pool.connection(timeout=float(self.settings.db_connect_timeout_s)) as conn:
            conn.execute("SELECT 1")

    def close(self) -> None:
        """Close the pool and release every connection it holds."""
        if self._pool is not None:
            pool, self._pool = self._pool, None
            pool.close()
            log.info("Connection pool closed")

    def __enter__(self) -> "PoolManager":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def apply_timeouts(conn: Connection, statement_timeout_ms: int, lock_timeout_ms: int) -> None:
    """
    Bound the current transaction's statements and lock waits.

    `set_config(..., true)` is the parameterisable form of SET LOCAL: the
    values revert when the transaction ends, so pooled connections come back
    clean.
    """
    conn.execute(
        "SELECT set_config('statement_timeout', %s, true), set_config('lock_timeout', %s, true)",
        (f"{int(statement_timeout_ms)}ms", f"{int(lock_timeout_ms)}ms"),
    )


@contextmanager
def unit_of_work(
    pool: ConnectionPool,
    timeout_ms: int,
    lock_timeout_ms: Optional[int] = None,
    isolation: str = READ_COMMITTED,
    read_only: bool = False,
) -> Generator[Connection, None, None]:
    """
    Run a block as one atomic transaction on a pooled connection.

    The deadline bounds the wait for a connection first; whatever is left of
    it becomes the statement timeout. The transaction commits when the block
    exits normally and rolls back on any exception, which is then re-raised.

    Example
    -------
        with unit_of_work(pool, timeout_ms=2000) as conn:
            conn.execute("UPDATE accounts SET balance = balance + 1 WHERE id = 1")
    """
    deadline = time.monotonic() + timeout_ms / 1000.0
    with pool.connection(timeout=timeout_ms / 1000.0) as conn:
        with conn.transaction():
            mode = f"ISOLATION LEVEL {isolation}"
            if read_only:
                mode += ", READ ONLY"
            conn.execute(f"SET TRANSACTION {mode}")
            remaining_ms = max(1, int((deadline - time.monotonic()) * 1000))
            lock_ms = remaining_ms if lock_timeout_ms is None else min(lock_timeout_ms, remaining_ms)
            apply_timeouts(conn, remaining_ms, lock_ms)
            yield conn


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(settings: Optional[Settings] = None) -> Connection:
    """
    Acquire a dedicated synchronous connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection
    errors. Used for administrative one-offs (schema creation, seeding);
    request handling always goes through the pool.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    settings = settings or get_settings()
    return psycopg.connect(build_dsn(settings), connect_timeout=settings.db_connect_timeout_s)


__all__ = [
    "PoolManager",
    "READ_COMMITTED",
    "REPEATABLE_READ",
    "apply_timeouts",
    "build_dsn",
    "get_sync_connection",
    "unit_of_work",
]

"""
Pytest configuration for the ledger API.

Provides fixtures for:
- Settings override for integration tests
- Database connection management and schema provisioning
- A pool plus services wired to the test database
"""

from __future__ import annotations

import os
from typing import Generator

import psycopg
import pytest

from ledger_api.config import Settings
from ledger_api.infrastructure.db_factory import PoolManager, build_dsn
from ledger_api.infrastructure.schema import init_db, seed_accounts
from ledger_api.services.ledger import LedgerService
from ledger_api.services.statement import StatementAssembler

TEST_ACCOUNT_LIMITS = [100_000, 80_000, 1_000_000, 10_000_000, 500_000]


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "ledger"),
        database_url=os.getenv("DATABASE_URL"),
        db_pool_min_size=1,
        db_pool_max_size=10,
        db_statement_timeout_ms=10_000,
        db_lock_timeout_ms=10_000,
        account_limits=TEST_ACCOUNT_LIMITS,
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return build_dsn(test_settings)


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            conn.execute("SELECT 1;").fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped autocommit connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn, autocommit=True)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    """
    Ensure the ledger tables exist and the test accounts are provisioned.
    """
    init_db(db_connection, TEST_ACCOUNT_LIMITS, reset=True)
    return True


@pytest.fixture(scope="function")
def clean_ledger(db_connection: psycopg.Connection, db_schema_initialized: bool):
    """
    Zero every balance and wipe the history before and after each test.
    """
    seed_accounts(db_connection, TEST_ACCOUNT_LIMITS, reset=True)
    yield
    seed_accounts(db_connection, TEST_ACCOUNT_LIMITS, reset=True)


@pytest.fixture(scope="session")
def pool_manager(
    test_settings: Settings, test_dsn: str, db_schema_initialized: bool
) -> Generator[PoolManager, None, None]:
    manager = PoolManager(test_settings, conninfo=test_dsn)
    manager.open()
    try:
        yield manager
    finally:
        manager.close()


@pytest.fixture
def ledger(pool_manager: PoolManager, test_settings: Settings, clean_ledger) -> LedgerService:
    return LedgerService(pool_manager.pool, test_settings)


@pytest.fixture
def statements(
    pool_manager: PoolManager, test_settings: Settings, clean_ledger
) -> StatementAssembler:
    return StatementAssembler(pool_manager.pool, test_settings)

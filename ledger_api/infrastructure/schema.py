"""
Schema management for the ledger tables.

Accounts are provisioned here, out of band from the HTTP API: ids 1..N get
the configured limits and a zero balance. Re-running is safe; existing
balances are left alone unless `reset=True`.
"""

from __future__ import annotations

from typing import Sequence

from psycopg import Connection

from ledger_api.utils.logging import get_logger

log = get_logger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS accounts (
    id       INTEGER PRIMARY KEY,
    "limit"  BIGINT NOT NULL CHECK ("limit" >= 0),
    balance  BIGINT NOT NULL DEFAULT 0,
    CONSTRAINT balance_within_limit CHECK (balance >= -"limit")
);

CREATE TABLE IF NOT EXISTS transactions (
    id           BIGSERIAL PRIMARY KEY,
    account_id   INTEGER NOT NULL REFERENCES accounts (id),
    amount       BIGINT NOT NULL CHECK (amount > 0),
    description  VARCHAR(10) NOT NULL CHECK (char_length(description) >= 1),
    type         CHAR(1) NOT NULL CHECK (type IN ('c', 'd')),
    created_at   TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp()
);

-- widen money columns on databases provisioned before they were BIGINT
ALTER TABLE accounts
    ALTER COLUMN "limit" TYPE BIGINT,
    ALTER COLUMN balance TYPE BIGINT;
ALTER TABLE transactions ALTER COLUMN amount TYPE BIGINT;

CREATE INDEX IF NOT EXISTS transactions_account_latest_idx
    ON transactions (account_id, id DESC);
"""


def create_schema(conn: Connection) -> None:
    with conn.transaction():
        conn.execute(SCHEMA_SQL)


def seed_accounts(conn: Connection, limits: Sequence[int], reset: bool = False) -> int:
    """
    Provision accounts 1..len(limits).

    With `reset`, the transaction history is wiped and every balance goes back
    to zero. Returns the number of provisioned accounts.
    """
    with conn.transaction():
        if reset:
            conn.execute("TRUNCATE TABLE transactions RESTART IDENTITY")
        with conn.cursor() as cur:
            cur.executemany(
                'INSERT INTO accounts (id, "limit", balance) VALUES (%s, %s, 0) '
                'ON CONFLICT (id) DO UPDATE SET "limit" = EXCLUDED."limit"'
                + (", balance = 0" if reset else ""),
                [(account_id, limit) for account_id, limit in enumerate(limits, start=1)],
            )
    log.info("Accounts provisioned", extra={"accounts": len(limits), "reset": reset})
    return len(limits)


def init_db(conn: Connection, limits: Sequence[int], reset: bool = False) -> int:
    """Create the schema and provision accounts in one call."""
    create_schema(conn)
    return seed_accounts(conn, limits, reset=reset)


__all__ = ["SCHEMA_SQL", "create_schema", "init_db", "seed_accounts"]

"""
Statement Assembler: balance plus the newest transactions of one account.

Both reads run in a single REPEATABLE READ, READ ONLY transaction, so they
share one snapshot: the balance always matches the listed history, however
many commits land on the account in between. Snapshot reads take no row
locks, so a writer holding the account lock never delays a statement.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import psycopg
from psycopg_pool import ConnectionPool, PoolTimeout

from ledger_api.config import Settings, get_settings
from ledger_api.domain.errors import NotFound, StorageError
from ledger_api.domain.models import Statement, StatementBalance, StatementEntry
from ledger_api.infrastructure.db_factory import REPEATABLE_READ, unit_of_work
from ledger_api.storage.accounts import AccountStore
from ledger_api.storage.transactions import TransactionLog
from ledger_api.utils.logging import get_logger

log = get_logger(__name__)


class StatementAssembler:
    def __init__(
        self,
        pool: ConnectionPool,
        settings: Optional[Settings] = None,
        accounts: Optional[AccountStore] = None,
        transactions: Optional[TransactionLog] = None,
    ) -> None:
        self.pool = pool
        self.settings = settings or get_settings()
        self.accounts = accounts or AccountStore()
        self.transactions = transactions or TransactionLog()

    def get_statement(self, account_id: int, timeout_ms: Optional[int] = None) -> Statement:
        """
        Return the account's balance, limit and up to `STATEMENT_SIZE`
        transactions, newest first. `statementDate` is the snapshot instant.

        An account without transactions yields an empty list. Unknown ids
        raise NotFound; database or pool failures raise StorageError.
        """
        if not self.settings.is_provisioned(account_id):
            raise NotFound(account_id)
        if timeout_ms is None:
            timeout_ms = self.settings.db_statement_timeout_ms

        try:
            with unit_of_work(
                self.pool,
                timeout_ms=timeout_ms,
                isolation=REPEATABLE_READ,
                read_only=True,
            ) as conn:
                account = self.accounts.get(conn, account_id)
                if account is None:
                    raise NotFound(account_id)
                as_of = _snapshot_time(conn)
                history = self.transactions.latest(
                    conn, account_id, limit=self.settings.statement_size
                )
        except (psycopg.Error, PoolTimeout) as exc:
            log.exception(
                "Statement read failed in storage",
                extra={"account_id": account_id, "error_type": type(exc).__name__},
            )
            raise StorageError(f"could not read statement for account {account_id}") from exc

        return Statement(
            balance=StatementBalance(total=account.balance, limit=account.limit, as_of=as_of),
            last_transactions=[StatementEntry.from_transaction(tx) for tx in history],
        )


def _snapshot_time(conn: psycopg.Connection) -> datetime:
    # now() is fixed at transaction start, i.e. the instant the snapshot was taken
    return conn.execute("SELECT now()").fetchone()[0]


__all__ = ["StatementAssembler"]

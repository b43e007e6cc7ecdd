"""
In-memory stand-ins for the pool, connections and stores.

The fake connection buffers store writes and applies them only when the
surrounding transaction block exits cleanly, mirroring commit/rollback.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from ledger_api.config import Settings
from ledger_api.domain.models import Account, Transaction, TransactionKind

SNAPSHOT_TIME = datetime(2024, 2, 1, 12, 0, tzinfo=timezone.utc)


class _FakeResult:
    def __init__(self, row: Tuple[Any, ...]) -> None:
        self._row = row

    def fetchone(self) -> Tuple[Any, ...]:
        return self._row


class FakeTransaction(AbstractContextManager):
    def __init__(self, conn: "FakeConnection") -> None:
        self._conn = conn

    def __enter__(self) -> "FakeTransaction":
        self._conn.pending.clear()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            for write in self._conn.pending:
                write()
            self._conn.commits += 1
        else:
            self._conn.rollbacks += 1
        self._conn.pending.clear()
        return False


class FakeConnection:
    def __init__(self) -> None:
        self.executed: List[Tuple[str, Any]] = []
        self.pending: List[Callable[[], None]] = []
        self.commits = 0
        self.rollbacks = 0

    def transaction(self) -> FakeTransaction:
        return FakeTransaction(self)

    def execute(self, sql: str, params: Any = None) -> _FakeResult:
        self.executed.append((sql, params))
        return _FakeResult((SNAPSHOT_TIME,))


class _FakeConnectionContext(AbstractContextManager):
    def __init__(self, pool: "FakePool") -> None:
        self._pool = pool

    def __enter__(self) -> FakeConnection:
        if self._pool.acquire_error is not None:
            raise self._pool.acquire_error
        return self._pool.conn

    def __exit__(self, exc_type, exc, tb) -> None:
        del exc_type, exc, tb


class FakePool:
    def __init__(self) -> None:
        self.conn = FakeConnection()
        self.timeouts: List[Optional[float]] = []
        self.acquire_error: Optional[Exception] = None

    def connection(self, timeout: Optional[float] = None) -> _FakeConnectionContext:
        self.timeouts.append(timeout)
        return _FakeConnectionContext(self)


class MemoryLedger:
    """Committed state shared by the fake stores."""

    def __init__(self, limits: List[int]) -> None:
        self.accounts: Dict[int, Account] = {
            account_id: Account(id=account_id, limit=limit, balance=0)
            for account_id, limit in enumerate(limits, start=1)
        }
        self.log: List[Transaction] = []
        self._clock = SNAPSHOT_TIME - timedelta(hours=1)

    def tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock


class FakeAccountStore:
    def __init__(self, ledger: MemoryLedger) -> None:
        self.ledger = ledger
        self.locked: List[int] = []
        self.read: List[int] = []
        self.updates: List[Tuple[int, int]] = []

    def get(self, conn: FakeConnection, account_id: int) -> Optional[Account]:
        self.read.append(account_id)
        return self.ledger.accounts.get(account_id)

    def lock(self, conn: FakeConnection, account_id: int) -> Optional[Account]:
        self.locked.append(account_id)
        return self.ledger.accounts.get(account_id)

    def update_balance(self, conn: FakeConnection, account_id: int, balance: int) -> None:
        self.updates.append((account_id, balance))

        def write() -> None:
            current = self.ledger.accounts[account_id]
            self.ledger.accounts[account_id] = current.model_copy(update={"balance": balance})

        conn.pending.append(write)


class FakeTransactionLog:
    def __init__(self, ledger: MemoryLedger) -> None:
        self.ledger = ledger
        self.appended: List[Tuple[int, int, TransactionKind, str]] = []
        self.append_error: Optional[Exception] = None

    def append(
        self,
        conn: FakeConnection,
        account_id: int,
        amount: int,
        kind: TransactionKind,
        description: str,
    ) -> Transaction:
        if self.append_error is not None:
            raise self.append_error
        self.appended.append((account_id, amount, kind, description))
        tx = Transaction(
            client_id=account_id,
            amount=amount,
            kind=kind,
            description=description,
            created_at=self.ledger.tick(),
        )
        conn.pending.append(lambda: self.ledger.log.append(tx))
        return tx

    def latest(self, conn: FakeConnection, account_id: int, limit: int = 10) -> List[Transaction]:
        own = [tx for tx in self.ledger.log if tx.client_id == account_id]
        return list(reversed(own))[:limit]


@pytest.fixture
def unit_settings() -> Settings:
    return Settings(
        account_limits=[1000, 80_000],
        db_statement_timeout_ms=2000,
        db_lock_timeout_ms=1500,
    )


@pytest.fixture
def fake_pool() -> FakePool:
    return FakePool()


@pytest.fixture
def memory_ledger(unit_settings: Settings) -> MemoryLedger:
    return MemoryLedger(unit_settings.account_limits)


@pytest.fixture
def account_store(memory_ledger: MemoryLedger) -> FakeAccountStore:
    return FakeAccountStore(memory_ledger)


@pytest.fixture
def transaction_log(memory_ledger: MemoryLedger) -> FakeTransactionLog:
    return FakeTransactionLog(memory_ledger)


@pytest.fixture
def snapshot_time() -> datetime:
    return SNAPSHOT_TIME

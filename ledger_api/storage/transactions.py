"""
Transaction Log: the append-only `transactions` table.
"""

from __future__ import annotations

from typing import List

from psycopg import Connection
from psycopg.rows import class_row

from ledger_api.domain.models import Transaction, TransactionKind

_COLUMNS = "account_id AS client_id, amount, type AS kind, description, created_at"


class TransactionLog:
    def append(
        self,
        conn: Connection,
        account_id: int,
        amount: int,
        kind: TransactionKind,
        description: str,
    ) -> Transaction:
        """Insert one entry; `created_at` is taken from the server clock at insert time."""
        with conn.cursor(row_factory=class_row(Transaction)) as cur:
            cur.execute(
                "INSERT INTO transactions (account_id, amount, type, description, created_at) "
                f"VALUES (%s, %s, %s, %s, clock_timestamp()) RETURNING {_COLUMNS}",
                (account_id, amount, kind.value, description),
            )
            return cur.fetchone()

    def latest(self, conn: Connection, account_id: int, limit: int = 10) -> List[Transaction]:
        """Newest first; ids grow with insertion order under the account lock."""
        with conn.cursor(row_factory=class_row(Transaction)) as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM transactions WHERE account_id = %s "
                "ORDER BY id DESC LIMIT %s",
                (account_id, limit),
            )
            return cur.fetchall()


__all__ = ["TransactionLog"]

"""
Account Store: the `accounts` table.

Every method runs on a connection whose transaction is owned by the caller,
so the store never commits on its own.
"""

from __future__ import annotations

from typing import Optional

from psycopg import Connection
from psycopg.rows import class_row

from ledger_api.domain.models import Account

_SELECT = 'SELECT id, "limit", balance FROM accounts WHERE id = %s'


class AccountStore:
    def get(self, conn: Connection, account_id: int) -> Optional[Account]:
        with conn.cursor(row_factory=class_row(Account)) as cur:
            cur.execute(_SELECT, (account_id,))
            return cur.fetchone()

    def lock(self, conn: Connection, account_id: int) -> Optional[Account]:
        """
        Read the account and hold an exclusive row lock on it until the
        surrounding transaction ends. Other accounts' rows are untouched.
        """
        with conn.cursor(row_factory=class_row(Account)) as cur:
            cur.execute(_SELECT + " FOR UPDATE", (account_id,))
            return cur.fetchone()

    def update_balance(self, conn: Connection, account_id: int, balance: int) -> None:
        conn.execute("UPDATE accounts SET balance = %s WHERE id = %s", (balance, account_id))


__all__ = ["AccountStore"]

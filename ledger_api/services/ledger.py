"""
Ledger Service: apply one signed transaction to a bounded account.

The read-validate-write-append sequence runs inside a single unit of work
that holds the account's row lock from the read until commit:

1. lock the account row (`SELECT ... FOR UPDATE`);
2. compute the candidate balance;
3. reject a debit that would go below `-limit` (rolls back, nothing written);
4. update the balance and append the log entry;
5. commit both writes together.

Concurrent requests on the same account therefore apply in some total order,
each seeing the balance its predecessor committed. Requests on different
accounts lock different rows and never wait on each other. Correctness comes
from the database alone, so any number of replicas may share it.
"""

from __future__ import annotations

from typing import Optional, Union

import psycopg
from psycopg_pool import ConnectionPool, PoolTimeout

from ledger_api.config import Settings, get_settings
from ledger_api.domain.errors import InvalidInput, LimitExceeded, NotFound, StorageError
from ledger_api.domain.models import (
    DESCRIPTION_MAX_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    MAX_AMOUNT,
    BalanceView,
    TransactionKind,
)
from ledger_api.infrastructure.db_factory import READ_COMMITTED, unit_of_work
from ledger_api.storage.accounts import AccountStore
from ledger_api.storage.transactions import TransactionLog
from ledger_api.utils.logging import get_logger

log = get_logger(__name__)


def validate_transaction(amount: object, kind: object, description: object) -> TransactionKind:
    """
    Check the shape of a transaction and return its normalised kind.

    Raises
    ------
    InvalidInput
        If the amount is not a positive integer up to MAX_AMOUNT, the kind is
        not credit/debit or the description length is outside [1, 10].
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidInput(f"amount must be a positive integer, got {amount!r}")
    if amount > MAX_AMOUNT:
        raise InvalidInput(f"amount must not exceed {MAX_AMOUNT}, got {amount}")
    try:
        normalised = TransactionKind(kind)
    except ValueError:
        raise InvalidInput(f"kind must be 'c' or 'd', got {kind!r}") from None
    if not isinstance(description, str) or not (
        DESCRIPTION_MIN_LENGTH <= len(description) <= DESCRIPTION_MAX_LENGTH
    ):
        raise InvalidInput(
            f"description must have between {DESCRIPTION_MIN_LENGTH} and "
            f"{DESCRIPTION_MAX_LENGTH} characters"
        )
    return normalised


class LedgerService:
    """
    Applies transactions against the shared pool.

    Parameters
    ----------
    pool : ConnectionPool
        The process-wide pool, owned by a PoolManager.
    settings : Settings, optional
        Provides the provisioned account range and default deadlines.
    """

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

    def apply_transaction(
        self,
        account_id: int,
        amount: int,
        kind: Union[TransactionKind, str],
        description: str,
        timeout_ms: Optional[int] = None,
    ) -> BalanceView:
        """
        Apply a credit or debit and return the committed balance and limit.

        Parameters
        ----------
        timeout_ms : int, optional
            Deadline for the whole unit of work, including the wait for a
            pooled connection. Defaults to `DB_STATEMENT_TIMEOUT_MS`.

        Raises
        ------
        NotFound
            Unknown account id.
        InvalidInput
            Malformed amount, kind or description.
        LimitExceeded
            Debit would take the balance below `-limit`; nothing was written.
        StorageError
            Any database or pool failure, including deadline expiry; the unit
            of work was rolled back.
        """
        if not self.settings.is_provisioned(account_id):
            raise NotFound(account_id)
        tx_kind = validate_transaction(amount, kind, description)
        if timeout_ms is None:
            timeout_ms = self.settings.db_statement_timeout_ms

        try:
            with unit_of_work(
                self.pool,
                timeout_ms=timeout_ms,
                lock_timeout_ms=self.settings.db_lock_timeout_ms,
                isolation=READ_COMMITTED,
            ) as conn:
                account = self.accounts.lock(conn, account_id)
                if account is None:
                    raise NotFound(account_id)

                if tx_kind is TransactionKind.DEBIT:
                    balance = account.balance - amount
                    if balance < -account.limit:
                        raise LimitExceeded(account_id, account.balance, account.limit, amount)
                else:
                    balance = account.balance + amount

                self.accounts.update_balance(conn, account_id, balance)
                self.transactions.append(conn, account_id, amount, tx_kind, description)
        except LimitExceeded as exc:
            log.info(
                "Debit rejected",
                extra={"account_id": account_id, "amount": amount, "balance": exc.balance},
            )
            raise
        except (psycopg.Error, PoolTimeout) as exc:
            log.exception(
                "Transaction failed in storage",
                extra={"account_id": account_id, "error_type": type(exc).__name__},
            )
            raise StorageError(f"could not apply transaction to account {account_id}") from exc

        log.debug(
            "Transaction applied",
            extra={"account_id": account_id, "kind": tx_kind.value, "balance": balance},
        )
        return BalanceView(limit=account.limit, balance=balance)


__all__ = ["LedgerService", "validate_transaction"]

"""
Error taxonomy for ledger operations.

`InvalidInput`, `NotFound` and `LimitExceeded` are expected outcomes that the
HTTP layer maps straight to client-facing status codes. `StorageError` wraps
infrastructure faults; its message is for logs only and is never returned to
the caller.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger errors."""

    http_status: int = 500


class InvalidInput(LedgerError):
    """Malformed request fields (amount, kind, description)."""

    http_status = 422


class NotFound(LedgerError):
    """The account id is not one of the provisioned accounts."""

    http_status = 404

    def __init__(self, account_id: int) -> None:
        super().__init__(f"account {account_id} not found")
        self.account_id = account_id


class LimitExceeded(LedgerError):
    """A debit would take the balance below the negative of the account limit."""

    http_status = 422

    def __init__(self, account_id: int, balance: int, limit: int, amount: int) -> None:
        super().__init__(
            f"debit of {amount} on account {account_id} exceeds limit "
            f"(balance={balance}, limit={limit})"
        )
        self.account_id = account_id
        self.balance = balance
        self.limit = limit
        self.amount = amount


class StorageError(LedgerError):
    """Connection, timeout or constraint failure in the backing store."""

    http_status = 500


__all__ = [
    "LedgerError",
    "InvalidInput",
    "NotFound",
    "LimitExceeded",
    "StorageError",
]

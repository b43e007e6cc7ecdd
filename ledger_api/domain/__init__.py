"""
Domain package for the ledger API.

Exports the core domain models and the error taxonomy used by the stores,
the services and the HTTP layer.
"""

from ledger_api.domain.errors import (
    InvalidInput,
    LedgerError,
    LimitExceeded,
    NotFound,
    StorageError,
)
from ledger_api.domain.models import (
    Account,
    BalanceView,
    Statement,
    StatementBalance,
    StatementEntry,
    Transaction,
    TransactionKind,
    TransactionRequest,
)

__all__ = [
    "Account",
    "BalanceView",
    "Statement",
    "StatementBalance",
    "StatementEntry",
    "Transaction",
    "TransactionKind",
    "TransactionRequest",
    "InvalidInput",
    "LedgerError",
    "LimitExceeded",
    "NotFound",
    "StorageError",
]

"""
Storage package: table-level access for accounts and the transaction log.
"""

from ledger_api.storage.accounts import AccountStore
from ledger_api.storage.transactions import TransactionLog

__all__ = ["AccountStore", "TransactionLog"]

"""
Services package: the ledger operations exposed to the HTTP layer.
"""

from ledger_api.services.ledger import LedgerService, validate_transaction
from ledger_api.services.statement import StatementAssembler

__all__ = ["LedgerService", "StatementAssembler", "validate_transaction"]

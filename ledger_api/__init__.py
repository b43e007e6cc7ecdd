"""
Ledger API - a minimal banking ledger over PostgreSQL.

Two operations are exposed: record a signed transaction against an account
with an overdraft limit, and fetch a statement (balance plus the ten newest
transactions). The package provides:

- Account Store and Transaction Log table access
- Ledger Service: atomic, per-account serialised balance updates
- Statement Assembler: snapshot-consistent statement reads
- A bounded, explicitly managed connection pool
- A thin FastAPI boundary and a typer CLI
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from ledger_api.config import Settings, get_settings
from ledger_api.domain.errors import (
    InvalidInput,
    LedgerError,
    LimitExceeded,
    NotFound,
    StorageError,
)
from ledger_api.domain.models import BalanceView, Statement, TransactionKind
from ledger_api.infrastructure.db_factory import PoolManager
from ledger_api.services.ledger import LedgerService
from ledger_api.services.statement import StatementAssembler
from ledger_api.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Services
    "LedgerService",
    "StatementAssembler",
    "PoolManager",
    # Domain
    "BalanceView",
    "Statement",
    "TransactionKind",
    # Errors
    "LedgerError",
    "InvalidInput",
    "NotFound",
    "LimitExceeded",
    "StorageError",
    # Logging
    "configure_logging",
    "get_logger",
]

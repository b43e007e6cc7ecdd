"""
Infrastructure package for the ledger API.

Centralizes database connectivity concerns (pool lifecycle, units of work,
schema management). Keep this layer focused on I/O and resource management,
decoupled from ledger rules.
"""

from ledger_api.infrastructure.db_factory import (
    PoolManager,
    build_dsn,
    get_sync_connection,
    unit_of_work,
)
from ledger_api.infrastructure.schema import init_db

__all__ = [
    "PoolManager",
    "build_dsn",
    "get_sync_connection",
    "init_db",
    "unit_of_work",
]

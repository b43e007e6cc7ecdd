"""
Configuration settings for the ledger API.

Uses Pydantic Settings to load environment variables for the database
connection, the bounded connection pool, per-operation deadlines, the set of
provisioned accounts and logging.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("ledger", alias="DB_NAME")
    database_url: Optional[str] = Field(None, alias="DATABASE_URL")

    # Connection pool
    db_pool_min_size: int = Field(2, alias="DB_POOL_MIN_SIZE")
    db_pool_max_size: int = Field(25, alias="DB_POOL_MAX_SIZE")
    db_pool_max_waiting: int = Field(200, alias="DB_POOL_MAX_WAITING")
    db_pool_max_lifetime_s: float = Field(3600.0, alias="DB_POOL_MAX_LIFETIME_S")
    db_pool_max_idle_s: float = Field(1800.0, alias="DB_POOL_MAX_IDLE_S")
    db_connect_timeout_s: int = Field(5, alias="DB_CONNECT_TIMEOUT_S")

    # Per unit-of-work deadlines
    db_statement_timeout_ms: int = Field(2000, alias="DB_STATEMENT_TIMEOUT_MS")
    db_lock_timeout_ms: int = Field(1500, alias="DB_LOCK_TIMEOUT_MS")

    # Ledger
    account_limits: List[int] = Field(
        [100_000, 80_000, 1_000_000, 10_000_000, 500_000], alias="ACCOUNT_LIMITS"
    )
    statement_size: int = Field(10, alias="STATEMENT_SIZE")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")
    http_host: str = Field("0.0.0.0", alias="HTTP_HOST")
    http_port: int = Field(9999, alias="HTTP_PORT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def max_account_id(self) -> int:
        """Highest provisioned account id; ids run from 1 to this value."""
        return len(self.account_limits)

    def is_provisioned(self, account_id: int) -> bool:
        return 1 <= account_id <= self.max_account_id


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]

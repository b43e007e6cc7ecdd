"""
HTTP boundary for the ledger API.

Thin FastAPI layer: parses requests, hands them to the services and maps the
error taxonomy to status codes. Handlers are plain `def` functions, so FastAPI
runs each request on its worker thread pool; nothing here serialises
requests. Per-account ordering is the database's job.

Run with:
    ledger-api serve
or:
    uvicorn --factory ledger_api.api:create_app --port 9999
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import psycopg
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from ledger_api import __version__
from ledger_api.config import Settings, get_settings
from ledger_api.domain.errors import LedgerError, StorageError
from ledger_api.domain.models import BalanceView, Statement, TransactionRequest
from ledger_api.infrastructure.db_factory import PoolManager
from ledger_api.services.ledger import LedgerService
from ledger_api.services.statement import StatementAssembler
from ledger_api.utils.logging import configure_logging, get_logger

log = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    pool_manager: Optional[PoolManager] = None,
    ledger: Optional[LedgerService] = None,
    statements: Optional[StatementAssembler] = None,
) -> FastAPI:
    """
    Build the application.

    When both services are supplied the app never touches a database;
    otherwise the pool is opened at startup and closed at shutdown.
    """
    settings = settings or get_settings()
    owns_pool = ledger is None or statements is None

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # each server process configures its own logging
        configure_logging(level=settings.log_level, json_logs=settings.log_json)
        manager = app.state.pool_manager
        if owns_pool:
            manager = manager or PoolManager(settings)
            manager.open()
            app.state.pool_manager = manager
            app.state.ledger = ledger or LedgerService(manager.pool, settings)
            app.state.statements = statements or StatementAssembler(manager.pool, settings)
        try:
            yield
        finally:
            if owns_pool and manager is not None:
                manager.close()

    app = FastAPI(title="ledger-api", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.pool_manager = pool_manager
    app.state.ledger = ledger
    app.state.statements = statements

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        # already logged with its traceback by the service
        return JSONResponse(status_code=exc.http_status, content={"detail": "internal error"})

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
        return JSONResponse(status_code=exc.http_status, content={"detail": str(exc)})

    @app.post("/clients/{account_id}/transactions", response_model=BalanceView)
    def create_transaction(
        account_id: int,
        body: TransactionRequest,
        service: LedgerService = Depends(get_ledger),
    ) -> BalanceView:
        return service.apply_transaction(account_id, body.value, body.type, body.description)

    @app.get("/clients/{account_id}/statement", response_model=Statement)
    def get_statement(
        account_id: int,
        service: StatementAssembler = Depends(get_statements),
    ) -> Statement:
        return service.get_statement(account_id)

    @app.get("/health")
    def health(request: Request) -> dict:
        manager: Optional[PoolManager] = request.app.state.pool_manager
        if manager is not None:
            try:
                manager.ping()
            except psycopg.Error as exc:
                log.warning("Health check failed", extra={"error": str(exc)})
                return JSONResponse(status_code=503, content={"status": "unavailable"})
        return {"status": "ok"}

    return app


def get_ledger(request: Request) -> LedgerService:
    return request.app.state.ledger


def get_statements(request: Request) -> StatementAssembler:
    return request.app.state.statements


__all__ = ["create_app", "get_ledger", "get_statements"]

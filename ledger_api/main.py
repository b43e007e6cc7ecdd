from __future__ import annotations

import sys
from typing import Optional

import typer
import uvicorn

from ledger_api.config import get_settings
from ledger_api.infrastructure.db_factory import build_dsn, get_sync_connection
from ledger_api.infrastructure.schema import init_db as provision
from ledger_api.utils.logging import configure_logging

app = typer.Typer(help="Bounded-account ledger API.")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    dsn = build_dsn(settings)
    # never echo the password
    typer.echo(
        f"DB={dsn.split('@')[-1]} | "
        f"pool=({settings.db_pool_min_size},{settings.db_pool_max_size}) "
        f"timeout={settings.db_statement_timeout_ms}ms "
        f"accounts=1..{settings.max_account_id} "
        f"http={settings.http_host}:{settings.http_port}"
    )


@app.command("init-db")
def init_db(
    reset: bool = typer.Option(
        False,
        "--reset",
        help="Wipe the transaction history and zero every balance.",
    ),
) -> None:
    """
    Create the schema and provision the configured accounts.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    with get_sync_connection(settings) as conn:
        count = provision(conn, settings.account_limits, reset=reset)
    typer.echo(f"Provisioned {count} accounts (reset={reset}).")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default HTTP_HOST)."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default HTTP_PORT)."),
    workers: int = typer.Option(
        1,
        "--workers",
        "-w",
        help="Worker processes; each is a stateless replica with its own pool.",
    ),
) -> None:
    """
    Serve the HTTP API with uvicorn.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    uvicorn.run(
        "ledger_api.api:create_app",
        factory=True,
        host=host or settings.http_host,
        port=port or settings.http_port,
        workers=workers,
        log_config=None,
    )


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()

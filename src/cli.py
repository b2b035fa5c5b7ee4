#!/usr/bin/env python3
"""Command Line Interface for the Realty Sales CRM.

Usage:
    cd src
    python cli.py server        # Start API server
    python cli.py init-db       # Create missing tables
    python cli.py create-user   # Create a staff account (first one: --role master)
    python cli.py metrics       # Print dashboard metrics as JSON
    python cli.py info          # Show configuration
"""
from __future__ import annotations

import json
from typing import Optional

import typer
import uvicorn

from core.config import get_settings
from core.db import get_session
from core.exceptions import ConflictError, RealtyCRMError
from core.logging_config import get_logger, setup_logging
from core.models import UserRole

LOGGER = get_logger(__name__)
SETTINGS = get_settings()

app = typer.Typer(help="Realty Sales CRM CLI")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
) -> None:
    """Realty Sales CRM - leads, inventory, bookings and payments."""
    log_level = "DEBUG" if verbose else SETTINGS.log_level
    setup_logging(level=log_level, json_format=SETTINGS.log_format == "json")


# =============================================================================
# Server
# =============================================================================


@app.command("server")
def run_server(
    host: str = typer.Option("0.0.0.0", help="Host to bind to"),
    port: Optional[int] = typer.Option(None, help="Port to bind to (default: API_PORT)"),
    reload: bool = typer.Option(False, help="Enable auto-reload for development"),
) -> None:
    """Start the API server."""
    bind_port = port or SETTINGS.api_port
    typer.echo(f"Starting API server on {host}:{bind_port}...")
    uvicorn.run("api.app:app", host=host, port=bind_port, reload=reload)


# =============================================================================
# Database / Accounts
# =============================================================================


@app.command("init-db")
def init_database() -> None:
    """Create any missing tables."""
    from core.db import init_db

    result = init_db()
    if result["tables_created"]:
        typer.secho(f"✓ Created tables: {', '.join(result['tables_created'])}", fg="green")
    else:
        typer.echo("All tables already exist")


@app.command("create-user")
def create_user(
    username: str = typer.Option(..., prompt=True, help="Login name"),
    email: str = typer.Option(..., prompt=True, help="Email address"),
    first_name: str = typer.Option(..., prompt=True, help="First name"),
    last_name: str = typer.Option(..., prompt=True, help="Last name"),
    role: UserRole = typer.Option(UserRole.MASTER, help="Role for the new account"),
    password: str = typer.Option(
        ..., prompt=True, hide_input=True, confirmation_prompt=True, help="Password"
    ),
) -> None:
    """Create a staff account. Use this to bootstrap the first master user."""
    from domain.users import UserService

    if len(password) < 8:
        typer.secho("✗ Password must be at least 8 characters", fg="red")
        raise typer.Exit(1)

    try:
        with get_session() as session:
            user = UserService(session).create({
                "username": username,
                "email": email,
                "first_name": first_name,
                "last_name": last_name,
                "role": role.value,
                "password": password,
            })
            user_id = user.id
    except ConflictError as e:
        typer.secho(f"✗ {e}", fg="red")
        raise typer.Exit(1)

    typer.secho(f"✓ Created user {username} (id={user_id}, role={role.value})", fg="green")


# =============================================================================
# Reporting
# =============================================================================


@app.command("metrics")
def show_metrics() -> None:
    """Print the dashboard metrics for the current month as JSON."""
    from domain.metrics import MetricsService

    try:
        with get_session() as session:
            metrics = MetricsService(session).get_dashboard_metrics()
    except RealtyCRMError as e:
        typer.secho(f"✗ {e}", fg="red")
        raise typer.Exit(1)

    typer.echo(json.dumps(metrics.to_dict(), indent=2))


@app.command("info")
def show_info() -> None:
    """Show application configuration info."""
    typer.echo("Realty Sales CRM Configuration:")
    typer.echo(f"  Environment: {SETTINGS.environment}")
    typer.echo(f"  Database: {'SQLite' if SETTINGS.is_sqlite else 'server'}")
    typer.echo(f"  Log Level: {SETTINGS.log_level} ({SETTINGS.log_format})")
    typer.echo(f"  API Port: {SETTINGS.api_port}")
    typer.echo(f"  Token Expiry: {SETTINGS.jwt_access_token_expire_minutes} min")
    typer.echo(f"  Top Performers Limit: {SETTINGS.top_performers_limit}")
    typer.echo(f"  CORS Origins: {', '.join(SETTINGS.get_allowed_origins())}")


if __name__ == "__main__":
    app()

"""govsync db: schema migrations."""

from __future__ import annotations

import os
from pathlib import Path

import typer
from alembic import command
from alembic.config import Config

db_app = typer.Typer(name="db", help="Database operations: migrate, current.")

DEFAULT_ALEMBIC_INI = "alembic.ini"


def _alembic_config(ini_path: str, database_url: str) -> Config:
    if not Path(ini_path).exists():
        typer.echo(f"Error: Alembic config not found: {ini_path}", err=True)
        raise typer.Exit(2)
    url = (database_url or os.environ.get("GOVSYNC_DATABASE_URL", "")).strip()
    if not url:
        typer.echo("Error: Set GOVSYNC_DATABASE_URL or pass --database-url.", err=True)
        raise typer.Exit(2)
    if database_url:
        os.environ["GOVSYNC_DATABASE_URL"] = url
    return Config(ini_path)


@db_app.command("migrate")
def migrate_command(
    target: str = typer.Option("head", "--target", "-t", help="Revision to upgrade to (default: head)."),
    database_url: str = typer.Option("", "--database-url", help="Database URL (default: GOVSYNC_DATABASE_URL)."),
    ini_path: str = typer.Option(DEFAULT_ALEMBIC_INI, "--alembic-ini", help="Path to alembic.ini."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show current revision and heads without applying."),
) -> None:
    """Run schema migrations (Alembic upgrade)."""
    normalized_target = target.strip()
    if not normalized_target:
        typer.echo("Error: --target must be a non-empty revision string.", err=True)
        raise typer.Exit(2)
    alembic_cfg = _alembic_config(ini_path, database_url)
    if dry_run:
        command.current(alembic_cfg)
        command.heads(alembic_cfg)
        typer.echo("--dry-run: run without --dry-run to apply migrations.")
        return
    command.upgrade(alembic_cfg, normalized_target)
    typer.echo("Migrations applied.")

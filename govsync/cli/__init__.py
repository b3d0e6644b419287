"""CLI tools: govsync sync, govsync plan, govsync worker, govsync db."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from importlib import metadata

import typer

from govsync.cli.db import db_app
from govsync.config.loader import ConfigLoadError, load_config
from govsync.db.exceptions import ConfigurationError as DatabaseConfigurationError
from govsync.db.exceptions import DatabaseError
from govsync.integrations.schedule_control_inmemory import InMemoryScheduleControl
from govsync.jobs.sync import plan_once, run_plan_job, run_sync_job
from govsync.jobs.worker import run_worker_job
from govsync.scheduling.errors import ConfigurationError, GovSyncError
from govsync.scheduling.models import ReconciliationAction, ReconciliationOutcome

app = typer.Typer(
    name="govsync",
    help="govsync: reconcile governance schedules with Temporal.",
)
app.add_typer(db_app, name="db")

EXIT_FATAL = 1
EXIT_CONFIG = 2


def _configure_logging(level: str) -> None:
    numeric = logging.getLevelName(level.strip().upper())
    if not isinstance(numeric, int):
        typer.echo(f"Error: unknown log level {level!r}", err=True)
        raise typer.Exit(EXIT_CONFIG)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        force=True,
    )


def _fail(exc: BaseException) -> typer.Exit:
    typer.echo(f"Error: {exc}", err=True)
    if isinstance(exc, (ConfigLoadError, ConfigurationError, DatabaseConfigurationError)):
        return typer.Exit(EXIT_CONFIG)
    return typer.Exit(EXIT_FATAL)


def _print_outcome(outcome: ReconciliationOutcome, as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps(outcome.to_dict(), indent=2))
        return
    if not outcome.ran:
        typer.echo("Sync skipped (disabled or another sync holds the lock).")
        return
    for item in outcome.outcomes:
        suffix = f" ({item.detail})" if item.detail else ""
        typer.echo(f"{item.outcome.value:<8} {item.identity}{suffix}")
    summary = ", ".join(f"{key}={value}" for key, value in outcome.summary().items())
    typer.echo(f"Summary: {summary}")


def _print_plan(actions: list[ReconciliationAction], as_json: bool) -> None:
    if as_json:
        payload = [{"action": action.kind.value, "identity": action.identity} for action in actions]
        typer.echo(json.dumps(payload, indent=2))
        return
    if not actions:
        typer.echo("Nothing to do.")
        return
    for action in actions:
        typer.echo(f"{action.kind.value:<7} {action.identity}")


@app.command("sync")
def sync_command(
    config: str = typer.Option("", "--config", "-c", help="Path to govsync.yaml"),
    strict: bool = typer.Option(False, "--strict", help="Exit non-zero when any schedule failed to apply."),
    as_json: bool = typer.Option(False, "--json", help="Print the outcome as JSON."),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level."),
) -> None:
    """Reconcile governance schedules with the engine (one pass)."""
    _configure_logging(log_level)
    try:
        cfg = load_config(config or None)
        outcome = asyncio.run(run_sync_job(cfg))
    except (GovSyncError, ConfigLoadError, DatabaseError) as exc:
        raise _fail(exc) from exc
    _print_outcome(outcome, as_json)
    if outcome.has_errors:
        typer.echo("Warning: some schedules failed to apply; see log for details.", err=True)
        if strict:
            raise typer.Exit(EXIT_FATAL)


@app.command("plan")
def plan_command(
    config: str = typer.Option("", "--config", "-c", help="Path to govsync.yaml"),
    offline: bool = typer.Option(False, "--offline", help="Plan against an empty engine without connecting."),
    as_json: bool = typer.Option(False, "--json", help="Print actions as JSON."),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level."),
) -> None:
    """Show the actions a sync would apply, without applying them."""
    _configure_logging(log_level)
    try:
        cfg = load_config(config or None)
        if offline:
            request = cfg.governance.to_desired()
            actions = asyncio.run(plan_once(request, InMemoryScheduleControl()))
        else:
            actions = asyncio.run(run_plan_job(cfg))
    except (GovSyncError, ConfigLoadError) as exc:
        raise _fail(exc) from exc
    _print_plan(actions, as_json)


@app.command("worker")
def worker_command(
    config: str = typer.Option("", "--config", "-c", help="Path to govsync.yaml"),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level."),
) -> None:
    """Run the Temporal worker that executes triggered governance runs."""
    _configure_logging(log_level)
    try:
        cfg = load_config(config or None)
        asyncio.run(run_worker_job(cfg))
    except (GovSyncError, ConfigLoadError, DatabaseError) as exc:
        raise _fail(exc) from exc


@app.command("version")
def version_command() -> None:
    """Print installed package version."""
    try:
        version = metadata.version("govsync")
    except metadata.PackageNotFoundError:
        version = "unknown"
    typer.echo(f"govsync {version}")


def main() -> None:
    """CLI entry point."""
    try:
        app()
    except KeyboardInterrupt:
        sys.exit(130)

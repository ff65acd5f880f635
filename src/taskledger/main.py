"""Main CLI entry point for taskledger.

This module provides the main Typer application with sub-commands for the
schema, users, projects and tasks.

Usage:
    taskledger db init
    taskledger user add alice alice@example.com "Alice Smith" --password secret1
    taskledger project create "Website" --as alice
    taskledger task create "Draft copy" --project 1 --assignee bob --as alice
    taskledger task status 1 IN_PROGRESS --as bob
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console

from taskledger.cli import db as db_cli
from taskledger.cli import project as project_cli
from taskledger.cli import task as task_cli
from taskledger.cli import user as user_cli
from taskledger.config import TaskLedgerConfig, load_config
from taskledger.database.connection import Database
from taskledger.domain.security import configure_hashing
from taskledger.logging import setup_logging
from taskledger.services import TaskLedgerService

app = typer.Typer(
    name="taskledger",
    help="taskledger: role-aware project and task tracking",
    no_args_is_help=True,
)

app.add_typer(db_cli.app, name="db", help="Manage the database schema")
app.add_typer(user_cli.app, name="user", help="Manage users")
app.add_typer(project_cli.app, name="project", help="Manage projects")
app.add_typer(task_cli.app, name="task", help="Manage tasks")

console = Console()


class AppContext:
    """Application context shared across CLI commands.

    Attributes:
        config: Loaded taskledger configuration
        database: Shared database handle
        service: Use-case layer bound to the database
    """

    def __init__(self, config: TaskLedgerConfig, database: Database | None = None):
        self.config = config
        self.database = database or Database(config.database)
        self.service = TaskLedgerService(self.database, config.security)


_app_context: AppContext | None = None


def get_app_context() -> AppContext:
    """Get the shared application context.

    Raises:
        RuntimeError: If context has not been initialized
    """
    if _app_context is None:
        raise RuntimeError("Application context not initialized. Call initialize_context first.")
    return _app_context


def initialize_context(config: TaskLedgerConfig, database: Database | None = None) -> AppContext:
    """Initialize the global application context.

    Args:
        config: taskledger configuration
        database: Existing database handle to reuse instead of building one

    Returns:
        Initialized AppContext instance
    """
    global _app_context
    _app_context = AppContext(config, database)
    return _app_context


def reset_context() -> None:
    """Drop the global context, disposing its connection pool."""
    global _app_context
    if _app_context is not None:
        _app_context.database.dispose()
    _app_context = None


@app.callback()
def main_callback(
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file (TOML format)",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure global options and initialize application context.

    Args:
        config_path: Optional path to TOML configuration file
        verbose: Enable debug-level logging
    """
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(code=1)

    if verbose:
        config.logging.level = "DEBUG"
    setup_logging(config.logging, stream=sys.stderr)
    configure_hashing(config.security.pbkdf2_rounds)

    # Tests preload a context bound to an in-memory database
    if _app_context is None:
        initialize_context(config)

    if verbose:
        console.print("[dim]Debug logging enabled[/dim]")


if __name__ == "__main__":
    app()

"""Database schema CLI commands."""

from __future__ import annotations

from typing import Annotated

import typer
from sqlalchemy.exc import SQLAlchemyError

from taskledger.cli.common import abort, console
from taskledger.database.tables import metadata

app = typer.Typer(help="Database schema commands")


@app.command()
def init(
    reset: Annotated[
        bool,
        typer.Option("--reset", help="Drop existing tables first (destroys all data)"),
    ] = False,
) -> None:
    """Create any missing tables."""
    from taskledger.main import get_app_context

    ctx = get_app_context()
    try:
        if reset:
            ctx.database.drop_schema()
        ctx.database.create_schema()
    except SQLAlchemyError as e:
        abort(f"Error creating schema: {e}")

    console.print(f"[green]Schema ready:[/green] {', '.join(sorted(metadata.tables))}")

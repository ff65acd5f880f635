"""Helpers shared by the CLI sub-applications."""

from __future__ import annotations

import uuid
from typing import Annotated, NoReturn, Sequence

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from taskledger.domain.history import StatusHistoryEntry
from taskledger.domain.results import Outcome
from taskledger.domain.user import User
from taskledger.exceptions import TaskLedgerError
from taskledger.logging import bind_actor_context, set_correlation_id

console = Console()

ActorOption = Annotated[
    str,
    typer.Option("--as", help="Username of the acting user"),
]

FormatOption = Annotated[
    str,
    typer.Option("--format", "-f", help="Output format (table or json)"),
]

STATUS_COLORS = {
    "PLANNING": "dim",
    "TODO": "dim",
    "ACTIVE": "green",
    "IN_PROGRESS": "green",
    "ON_HOLD": "yellow",
    "REVIEW": "yellow",
    "COMPLETED": "blue",
    "DONE": "blue",
    "CANCELLED": "red",
}


def abort(message: str) -> NoReturn:
    console.print(f"[red]{escape(message)}[/red]")
    raise typer.Exit(code=1)


def colored_status(value: str) -> str:
    color = STATUS_COLORS.get(value, "white")
    return f"[{color}]{value}[/{color}]"


def resolve_actor(username: str) -> User:
    """Load the acting user and bind them to the log context."""
    from taskledger.main import get_app_context

    ctx = get_app_context()
    try:
        user = ctx.service.require_user(username)
    except TaskLedgerError as e:
        abort(f"Unknown user: {e}")
    if not user.is_active:
        abort(f"User {username} is inactive")
    set_correlation_id(uuid.uuid4().hex[:12])
    bind_actor_context(actor=user.username, role=user.role.value)
    return user


def check(outcome: Outcome, action: str) -> None:
    """Exit with a readable message when outcome failed."""
    if outcome:
        return
    if outcome.is_authorization_error:
        kind = "Not permitted"
    elif outcome.is_validation_error:
        kind = "Invalid input"
    else:
        kind = "Rejected"
    abort(f"{kind} ({action}): {outcome.message}")


def history_table(entries: Sequence[StatusHistoryEntry], title: str) -> Table:
    table = Table(title=title)
    table.add_column("When", style="dim", no_wrap=True)
    table.add_column("Event", style="cyan")
    table.add_column("From")
    table.add_column("To")
    table.add_column("By", style="bold")
    table.add_column("Note")
    for entry in entries:
        table.add_row(
            entry.changed_at.strftime("%Y-%m-%d %H:%M:%S"),
            entry.event.value,
            entry.old_status or "",
            colored_status(entry.new_status),
            entry.actor_name or "",
            escape(entry.note or ""),
        )
    return table

"""User management CLI commands."""

from __future__ import annotations

import json
from typing import Annotated, Optional

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from taskledger.cli.common import FormatOption, abort, check, console, resolve_actor
from taskledger.domain.roles import Role
from taskledger.exceptions import PersistenceError

app = typer.Typer(help="User management commands")


@app.command()
def add(
    username: Annotated[str, typer.Argument(help="Login name (3-20 letters, digits or _)")],
    email: Annotated[str, typer.Argument(help="Email address")],
    full_name: Annotated[str, typer.Argument(help="Display name")],
    password: Annotated[
        str,
        typer.Option(
            "--password",
            "-p",
            prompt=True,
            hide_input=True,
            confirmation_prompt=True,
            help="Clear-text password (prompted when omitted)",
        ),
    ],
    role: Annotated[
        str,
        typer.Option("--role", "-r", help="Role (employee, manager, admin)"),
    ] = "employee",
    actor_name: Annotated[
        Optional[str],
        typer.Option("--as", help="Username granting the role; not needed for the first user"),
    ] = None,
) -> None:
    """Register a new user."""
    from taskledger.main import get_app_context

    ctx = get_app_context()

    try:
        parsed_role = Role.parse(role)
    except ValueError:
        abort(f"Invalid role: {role}. Valid values: employee, manager, admin")

    actor = resolve_actor(actor_name) if actor_name else None
    try:
        outcome = ctx.service.register_user(
            username, email, full_name, password, role=parsed_role, actor=actor
        )
    except PersistenceError as e:
        abort(f"Error registering user: {e}")
    check(outcome, "register user")

    user = outcome.value
    panel = Panel(
        f"[green]User registered successfully![/green]\n\n"
        f"[bold]ID:[/bold] {user.id}\n"
        f"[bold]Username:[/bold] {user.username}\n"
        f"[bold]Name:[/bold] {escape(user.full_name)}\n"
        f"[bold]Role:[/bold] {user.role.display_name}",
        title="User Registered",
        border_style="green",
    )
    console.print(panel)


@app.command("list")
def list_users(
    role: Annotated[
        Optional[str],
        typer.Option("--role", "-r", help="Filter by role (employee, manager, admin)"),
    ] = None,
    active: Annotated[
        bool,
        typer.Option("--active", help="Only users who can still be assigned work"),
    ] = False,
    format: FormatOption = "table",
) -> None:
    """List users ordered by name."""
    from taskledger.main import get_app_context

    ctx = get_app_context()

    try:
        if role is not None:
            users = ctx.service.users.find_by_role(Role.parse(role))
            if active:
                users = [u for u in users if u.is_active]
        elif active:
            users = ctx.service.users.find_active()
        else:
            users = ctx.service.users.find_all()
    except ValueError:
        abort(f"Invalid role: {role}. Valid values: employee, manager, admin")
    except PersistenceError as e:
        abort(f"Error listing users: {e}")

    if format == "json":
        output = [
            {
                "id": u.id,
                "username": u.username,
                "email": u.email,
                "full_name": u.full_name,
                "role": u.role.value,
                "is_active": u.is_active,
            }
            for u in users
        ]
        typer.echo(json.dumps(output, indent=2))
        return

    if not users:
        console.print("[yellow]No users found[/yellow]")
        return

    table = Table(title="Users")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Username", style="bold")
    table.add_column("Name")
    table.add_column("Role", style="magenta")
    table.add_column("Active")
    for u in users:
        table.add_row(
            str(u.id),
            u.username,
            escape(u.full_name),
            u.role.display_name,
            "yes" if u.is_active else "[dim]no[/dim]",
        )
    console.print(table)

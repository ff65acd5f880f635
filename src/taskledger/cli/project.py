"""Project management CLI commands.

This module provides CLI commands for creating, listing, and moving
projects through their lifecycle.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Annotated, Optional

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from taskledger.cli.common import (
    ActorOption,
    FormatOption,
    abort,
    check,
    colored_status,
    console,
    history_table,
    resolve_actor,
)
from taskledger.domain.statuses import Priority, ProjectStatus
from taskledger.exceptions import PersistenceError

app = typer.Typer(help="Project management commands")

PROJECT_STATUS_NAMES = ", ".join(s.value.lower() for s in ProjectStatus)


@app.command()
def create(
    name: Annotated[str, typer.Argument(help="Project name")],
    actor_name: ActorOption,
    description: Annotated[
        Optional[str],
        typer.Option("--description", "-d", help="Longer project description"),
    ] = None,
    priority: Annotated[
        str,
        typer.Option("--priority", "-p", help="Priority (low, medium, high, urgent)"),
    ] = "medium",
    start: Annotated[
        Optional[datetime],
        typer.Option("--start", formats=["%Y-%m-%d"], help="Planned start date"),
    ] = None,
    end: Annotated[
        Optional[datetime],
        typer.Option("--end", formats=["%Y-%m-%d"], help="Planned end date"),
    ] = None,
) -> None:
    """Create a new project owned by the acting user."""
    from taskledger.main import get_app_context

    ctx = get_app_context()
    creator = resolve_actor(actor_name)

    try:
        parsed_priority = Priority.parse(priority)
    except ValueError:
        abort(f"Invalid priority: {priority}. Valid values: low, medium, high, urgent")

    try:
        outcome = ctx.service.create_project(
            name,
            creator,
            description=description,
            priority=parsed_priority,
            start_date=start.date() if start else None,
            end_date=end.date() if end else None,
        )
    except PersistenceError as e:
        abort(f"Error creating project: {e}")
    check(outcome, "create project")

    project = outcome.value
    panel = Panel(
        f"[green]Project created successfully![/green]\n\n"
        f"[bold]ID:[/bold] {project.id}\n"
        f"[bold]Name:[/bold] {escape(project.name)}\n"
        f"[bold]Status:[/bold] {project.status.value}\n"
        f"[bold]Priority:[/bold] {project.priority.display_name}\n"
        f"[bold]Created:[/bold] {project.created_at.strftime('%Y-%m-%d %H:%M:%S')}",
        title="Project Created",
        border_style="green",
    )
    console.print(panel)


@app.command("list")
def list_projects(
    status: Annotated[
        Optional[str],
        typer.Option("--status", "-s", help=f"Filter by status ({PROJECT_STATUS_NAMES})"),
    ] = None,
    active: Annotated[
        bool,
        typer.Option("--active", help="Only projects that are not completed or cancelled"),
    ] = False,
    search: Annotated[
        Optional[str],
        typer.Option("--search", help="Only projects whose name contains this text"),
    ] = None,
    format: FormatOption = "table",
) -> None:
    """List projects."""
    from taskledger.main import get_app_context

    ctx = get_app_context()
    dao = ctx.service.projects

    status_filter = None
    if status is not None:
        try:
            status_filter = ProjectStatus(status.strip().upper())
        except ValueError:
            abort(f"Invalid status: {status}. Valid values: {PROJECT_STATUS_NAMES}")

    try:
        if status_filter is not None:
            projects = dao.find_by_status(status_filter)
        elif active:
            projects = dao.active_projects()
        elif search:
            projects = dao.search_by_name(search)
        else:
            projects = dao.find_all()
    except PersistenceError as e:
        abort(f"Error listing projects: {e}")

    if format == "json":
        output = [
            {
                "id": p.id,
                "name": p.name,
                "status": p.status.value,
                "priority": p.priority.value,
                "creator": p.creator.username if p.creator else None,
                "created_at": p.created_at.isoformat(),
                "updated_at": p.updated_at.isoformat(),
            }
            for p in projects
        ]
        typer.echo(json.dumps(output, indent=2))
        return

    if not projects:
        console.print("[yellow]No projects found[/yellow]")
        return

    table = Table(title="Projects")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Status")
    table.add_column("Priority", style="magenta")
    table.add_column("Creator")
    table.add_column("Created", style="dim")
    for p in projects:
        table.add_row(
            str(p.id),
            escape(p.name),
            colored_status(p.status.value),
            p.priority.display_name,
            p.creator.username if p.creator else "",
            p.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@app.command()
def status(
    project_id: Annotated[int, typer.Argument(help="Project ID")],
    new_status: Annotated[str, typer.Argument(help=f"Target status ({PROJECT_STATUS_NAMES})")],
    actor_name: ActorOption,
    note: Annotated[Optional[str], typer.Option("--note", "-n", help="Reason for the change")] = None,
) -> None:
    """Move a project to a new status."""
    from taskledger.main import get_app_context

    ctx = get_app_context()
    actor = resolve_actor(actor_name)

    try:
        outcome = ctx.service.transition_project(project_id, new_status, actor, note)
    except PersistenceError as e:
        abort(f"Error updating project: {e}")
    check(outcome, "change project status")

    project = outcome.value
    if not outcome.changed:
        console.print(f"[yellow]Project {project.id} is already {project.status.value}[/yellow]")
        return
    console.print(
        f"[green]Project {project.id}:[/green] {project.history[-1].old_status} -> "
        f"{colored_status(project.status.value)}"
    )


@app.command()
def show(
    project_id: Annotated[int, typer.Argument(help="Project ID")],
) -> None:
    """Show a project with its task statistics."""
    from taskledger.main import get_app_context

    ctx = get_app_context()
    try:
        project = ctx.service.require_project(project_id)
        stats = ctx.service.projects.statistics(project_id)
    except PersistenceError as e:
        abort(f"Error loading project: {e}")

    dates = ""
    if project.start_date or project.end_date:
        dates = f"[bold]Dates:[/bold] {project.start_date or '?'} to {project.end_date or '?'}\n"
    panel = Panel(
        f"[bold]Name:[/bold] {escape(project.name)}\n"
        f"[bold]Status:[/bold] {colored_status(project.status.value)}\n"
        f"[bold]Priority:[/bold] {project.priority.display_name}\n"
        f"[bold]Creator:[/bold] {project.creator.display_name if project.creator else ''}\n"
        f"{dates}"
        f"[bold]Tasks:[/bold] {stats.total} ({stats.todo} todo, {stats.in_progress} in progress, "
        f"{stats.completed} done, {stats.overdue} overdue)\n"
        f"[bold]Complete:[/bold] {stats.completion_percentage:.0f}%",
        title=f"Project {project.id}",
        border_style="cyan",
    )
    console.print(panel)


@app.command()
def history(
    project_id: Annotated[int, typer.Argument(help="Project ID")],
) -> None:
    """Show the status history of a project, oldest first."""
    from taskledger.main import get_app_context

    ctx = get_app_context()
    try:
        project = ctx.service.require_project(project_id)
    except PersistenceError as e:
        abort(f"Error loading project: {e}")
    console.print(history_table(project.history, f"History of project {project.id}"))

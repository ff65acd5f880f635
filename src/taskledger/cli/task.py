"""Task management CLI commands.

This module provides CLI commands for creating, listing, assigning and
moving tasks through their lifecycle.
"""

from __future__ import annotations

import json
from datetime import date, datetime
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
from taskledger.domain.statuses import Priority, TaskStatus
from taskledger.domain.task import Task
from taskledger.exceptions import PersistenceError

app = typer.Typer(help="Task management commands")

TASK_STATUS_NAMES = ", ".join(s.value.lower() for s in TaskStatus)


def _due_label(task: Task, today: date) -> str:
    if task.due_date is None:
        return ""
    label = task.due_date.isoformat()
    if task.is_overdue(today):
        return f"[red]{label}[/red]"
    return label


@app.command()
def create(
    title: Annotated[str, typer.Argument(help="Task title")],
    actor_name: ActorOption,
    project_id: Annotated[
        Optional[int],
        typer.Option("--project", "-P", help="ID of the parent project"),
    ] = None,
    description: Annotated[
        Optional[str],
        typer.Option("--description", "-d", help="Detailed task description"),
    ] = None,
    priority: Annotated[
        str,
        typer.Option("--priority", "-p", help="Priority (low, medium, high, urgent)"),
    ] = "medium",
    due: Annotated[
        Optional[datetime],
        typer.Option("--due", formats=["%Y-%m-%d"], help="Due date"),
    ] = None,
    assignee_name: Annotated[
        Optional[str],
        typer.Option("--assignee", "-a", help="Username to assign the task to"),
    ] = None,
) -> None:
    """Create a new task."""
    from taskledger.main import get_app_context

    ctx = get_app_context()
    creator = resolve_actor(actor_name)

    try:
        parsed_priority = Priority.parse(priority)
    except ValueError:
        abort(f"Invalid priority: {priority}. Valid values: low, medium, high, urgent")

    try:
        assignee = ctx.service.require_user(assignee_name) if assignee_name else None
        outcome = ctx.service.create_task(
            title,
            creator,
            project_id=project_id,
            description=description,
            priority=parsed_priority,
            due_date=due.date() if due else None,
            assignee=assignee,
        )
    except PersistenceError as e:
        abort(f"Error creating task: {e}")
    check(outcome, "create task")

    task = outcome.value
    panel = Panel(
        f"[green]Task created successfully![/green]\n\n"
        f"[bold]ID:[/bold] {task.id}\n"
        f"[bold]Title:[/bold] {escape(task.title)}\n"
        f"[bold]Status:[/bold] {task.status.value}\n"
        f"[bold]Priority:[/bold] {task.priority.display_name}\n"
        f"[bold]Project:[/bold] {escape(task.project.name) if task.project else '-'}\n"
        f"[bold]Assignee:[/bold] {task.assigned_user.username if task.assigned_user else '-'}",
        title="Task Created",
        border_style="green",
    )
    console.print(panel)


@app.command("list")
def list_tasks(
    project_id: Annotated[
        Optional[int],
        typer.Option("--project", "-P", help="Only tasks of this project"),
    ] = None,
    status: Annotated[
        Optional[str],
        typer.Option("--status", "-s", help=f"Filter by status ({TASK_STATUS_NAMES})"),
    ] = None,
    assignee_name: Annotated[
        Optional[str],
        typer.Option("--assignee", "-a", help="Only tasks assigned to this username"),
    ] = None,
    overdue: Annotated[
        bool,
        typer.Option("--overdue", help="Only open tasks past their due date"),
    ] = False,
    unassigned: Annotated[
        bool,
        typer.Option("--unassigned", help="Only open tasks nobody is assigned to"),
    ] = False,
    search: Annotated[
        Optional[str],
        typer.Option("--search", help="Only tasks whose title contains this text"),
    ] = None,
    format: FormatOption = "table",
) -> None:
    """List tasks, highest priority first."""
    from taskledger.main import get_app_context

    ctx = get_app_context()
    dao = ctx.service.tasks
    today = date.today()

    status_filter = None
    if status is not None:
        try:
            status_filter = TaskStatus(status.strip().upper().replace(" ", "_"))
        except ValueError:
            abort(f"Invalid status: {status}. Valid values: {TASK_STATUS_NAMES}")

    try:
        if project_id is not None:
            tasks = dao.find_by_project(project_id)
        elif assignee_name is not None:
            tasks = dao.find_by_assignee(ctx.service.require_user(assignee_name).id)
        elif overdue:
            tasks = dao.find_overdue(today)
        elif unassigned:
            tasks = dao.unassigned()
        elif search:
            tasks = dao.search_by_title(search)
        elif status_filter is not None:
            tasks = dao.find_by_status(status_filter)
        else:
            tasks = dao.find_all()
    except PersistenceError as e:
        abort(f"Error listing tasks: {e}")

    if status_filter is not None:
        tasks = [t for t in tasks if t.status is status_filter]

    if format == "json":
        output = [
            {
                "id": t.id,
                "title": t.title,
                "status": t.status.value,
                "priority": t.priority.value,
                "project_id": t.project.id if t.project else None,
                "assignee": t.assigned_user.username if t.assigned_user else None,
                "due_date": t.due_date.isoformat() if t.due_date else None,
                "completed_at": t.completed_at.isoformat() if t.completed_at else None,
            }
            for t in tasks
        ]
        typer.echo(json.dumps(output, indent=2))
        return

    if not tasks:
        console.print("[yellow]No tasks found[/yellow]")
        return

    table = Table(title="Tasks")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Status")
    table.add_column("Priority", style="magenta")
    table.add_column("Project")
    table.add_column("Assignee")
    table.add_column("Due")
    for t in tasks:
        table.add_row(
            str(t.id),
            escape(t.title),
            colored_status(t.status.value),
            t.priority.display_name,
            escape(t.project.name) if t.project else "",
            t.assigned_user.username if t.assigned_user else "",
            _due_label(t, today),
        )
    console.print(table)


@app.command()
def assign(
    task_id: Annotated[int, typer.Argument(help="Task ID")],
    assignee_name: Annotated[str, typer.Argument(help="Username to assign the task to")],
    actor_name: ActorOption,
) -> None:
    """Assign a task to a user on behalf of the acting user."""
    from taskledger.main import get_app_context

    ctx = get_app_context()
    assigner = resolve_actor(actor_name)

    try:
        assignee = ctx.service.require_user(assignee_name)
        outcome = ctx.service.assign_task(task_id, assignee, assigner)
    except PersistenceError as e:
        abort(f"Error assigning task: {e}")
    check(outcome, "assign task")
    console.print(f"[green]Task {task_id} assigned to {assignee.username}[/green]")


@app.command()
def unassign(
    task_id: Annotated[int, typer.Argument(help="Task ID")],
    actor_name: ActorOption,
) -> None:
    """Remove the current assignee of a task."""
    from taskledger.main import get_app_context

    ctx = get_app_context()
    actor = resolve_actor(actor_name)

    try:
        outcome = ctx.service.unassign_task(task_id, actor)
    except PersistenceError as e:
        abort(f"Error unassigning task: {e}")
    check(outcome, "unassign task")
    console.print(f"[green]Task {task_id} unassigned[/green]")


@app.command()
def status(
    task_id: Annotated[int, typer.Argument(help="Task ID")],
    new_status: Annotated[str, typer.Argument(help=f"Target status ({TASK_STATUS_NAMES})")],
    actor_name: ActorOption,
    note: Annotated[Optional[str], typer.Option("--note", "-n", help="Reason for the change")] = None,
) -> None:
    """Move a task to a new status."""
    from taskledger.main import get_app_context

    ctx = get_app_context()
    actor = resolve_actor(actor_name)

    try:
        outcome = ctx.service.transition_task(task_id, new_status, actor, note)
    except PersistenceError as e:
        abort(f"Error updating task: {e}")
    check(outcome, "change task status")

    task = outcome.value
    if not outcome.changed:
        console.print(f"[yellow]Task {task.id} is already {task.status.value}[/yellow]")
        return
    console.print(
        f"[green]Task {task.id}:[/green] {task.history[-1].old_status} -> "
        f"{colored_status(task.status.value)}"
    )


@app.command()
def history(
    task_id: Annotated[int, typer.Argument(help="Task ID")],
) -> None:
    """Show the status and assignment history of a task, oldest first."""
    from taskledger.main import get_app_context

    ctx = get_app_context()
    try:
        task = ctx.service.require_task(task_id)
    except PersistenceError as e:
        abort(f"Error loading task: {e}")
    console.print(history_table(task.history, f"History of task {task.id}"))


@app.command()
def stats(
    assignee_name: Annotated[
        Optional[str],
        typer.Option("--assignee", "-a", help="Only tasks assigned to this username"),
    ] = None,
) -> None:
    """Show task counts by status."""
    from taskledger.main import get_app_context

    ctx = get_app_context()
    try:
        if assignee_name:
            user = ctx.service.require_user(assignee_name)
            counts = ctx.service.tasks.user_statistics(user.id)
            title = f"Tasks of {user.username}"
        else:
            counts = ctx.service.tasks.statistics()
            title = "All tasks"
    except PersistenceError as e:
        abort(f"Error computing statistics: {e}")

    table = Table(title=title)
    table.add_column("Status")
    table.add_column("Count", justify="right")
    for task_status, count in counts.by_status.items():
        table.add_row(colored_status(task_status.value), str(count))
    table.add_row("[bold]total[/bold]", str(counts.total))
    table.add_row("[red]overdue[/red]", str(counts.overdue))
    console.print(table)
    console.print(f"Completion: {counts.completion_percentage:.0f}%")

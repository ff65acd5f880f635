"""Aggregate task counts used by the project and task dashboards."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.engine import Connection

from taskledger.database.tables import tasks
from taskledger.domain.statuses import TaskStatus

CLOSED_TASK_STATUSES = (TaskStatus.DONE.value, TaskStatus.CANCELLED.value)


@dataclass(frozen=True)
class TaskCounts:
    """Task totals for some slice of the tasks table.

    Attributes:
        total: Number of tasks in the slice.
        by_status: Count per status; every status is present.
        overdue: Open tasks whose due date has passed.
    """

    total: int = 0
    by_status: dict[TaskStatus, int] = field(default_factory=lambda: {s: 0 for s in TaskStatus})
    overdue: int = 0

    @property
    def completed(self) -> int:
        return self.by_status.get(TaskStatus.DONE, 0)

    @property
    def in_progress(self) -> int:
        return self.by_status.get(TaskStatus.IN_PROGRESS, 0)

    @property
    def todo(self) -> int:
        return self.by_status.get(TaskStatus.TODO, 0)

    @property
    def completion_percentage(self) -> float:
        if self.total == 0:
            return 0.0
        return self.completed / self.total * 100.0


def overdue_criteria(today: date) -> list[ColumnElement[bool]]:
    return [
        tasks.c.due_date.is_not(None),
        tasks.c.due_date < today,
        tasks.c.status.not_in(CLOSED_TASK_STATUSES),
    ]


def count_tasks(conn: Connection, *criteria: Any, today: date | None = None) -> TaskCounts:
    """Count tasks matching criteria, grouped by status."""
    by_status = {status: 0 for status in TaskStatus}
    stmt = select(tasks.c.status, func.count()).group_by(tasks.c.status)
    if criteria:
        stmt = stmt.where(*criteria)
    for status_value, count in conn.execute(stmt).all():
        by_status[TaskStatus(status_value)] = int(count)

    overdue_stmt = select(func.count()).select_from(tasks).where(
        *criteria, *overdue_criteria(today or date.today())
    )
    overdue = int(conn.execute(overdue_stmt).scalar_one())
    return TaskCounts(total=sum(by_status.values()), by_status=by_status, overdue=overdue)

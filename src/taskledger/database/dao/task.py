"""Task persistence and lookup queries.

Loading a task also loads its project, assignee, assigner and status
history through the same connection.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import structlog
from sqlalchemy import case, func
from sqlalchemy.engine import Connection, RowMapping

from taskledger.database.connection import Database
from taskledger.database.dao.base import DAO, EntityMapping
from taskledger.database.dao.history import StatusHistoryDAO
from taskledger.database.dao.project import ProjectDAO
from taskledger.database.dao.statistics import TaskCounts, count_tasks, overdue_criteria
from taskledger.database.dao.support import as_date, as_utc, store_errors
from taskledger.database.dao.user import UserDAO
from taskledger.database.tables import tasks
from taskledger.domain.history import EntityType
from taskledger.domain.statuses import Priority, TaskStatus
from taskledger.domain.task import Task

logger = structlog.get_logger(__name__)

# Highest priority first, then earliest due date with undated tasks last
PRIORITY_LEVEL = case({p.value: p.level for p in Priority}, value=tasks.c.priority, else_=0)
WORK_ORDER = (
    PRIORITY_LEVEL.desc(),
    tasks.c.due_date.is_(None),
    tasks.c.due_date.asc(),
    tasks.c.id.asc(),
)


def _task_update_params(task: Task) -> dict[str, Any]:
    return {
        "title": task.title,
        "description": task.description,
        "status": task.status.value,
        "priority": task.priority.value,
        "project_id": task.project.id if task.project is not None else None,
        "assigned_user_id": task.assigned_user.id if task.assigned_user is not None else None,
        "assigner_id": task.assigned_by.id if task.assigned_by is not None else None,
        "due_date": task.due_date,
        "completed_at": task.completed_at,
        "updated_at": task.updated_at,
    }


def _task_insert_params(task: Task) -> dict[str, Any]:
    return {**_task_update_params(task), "created_at": task.created_at}


class TaskDAO(DAO[Task]):
    """Stores tasks together with their status and assignment history."""

    def __init__(
        self,
        database: Database,
        users: UserDAO | None = None,
        projects: ProjectDAO | None = None,
        history: StatusHistoryDAO | None = None,
    ):
        history = history or StatusHistoryDAO(database)
        self._users = users or UserDAO(database)
        self._projects = projects or ProjectDAO(database, self._users, history)
        mapping = EntityMapping(
            table=tasks,
            from_row=self._task_from_row,
            insert_params=_task_insert_params,
            update_params=_task_update_params,
            history_type=EntityType.TASK,
        )
        super().__init__(database, mapping, history)

    def _task_from_row(self, conn: Connection, row: RowMapping) -> Task:
        return Task(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            status=TaskStatus(row["status"]),
            priority=Priority(row["priority"]),
            due_date=as_date(row["due_date"]),
            project=self._projects.load_by_id(conn, row["project_id"]),
            assignee=self._users.load_by_id(conn, row["assigned_user_id"]),
            assigner=self._users.load_by_id(conn, row["assigner_id"]),
            completed_at=as_utc(row["completed_at"]),
            history=self._load_history(conn, row["id"]),
            created_at=as_utc(row["created_at"]),
            updated_at=as_utc(row["updated_at"]),
        )

    def find_by_status(self, status: TaskStatus) -> list[Task]:
        return self._find_where(tasks.c.status == status.value, order_by=WORK_ORDER)

    def find_by_assignee(self, user_id: int) -> list[Task]:
        return self._find_where(tasks.c.assigned_user_id == user_id, order_by=WORK_ORDER)

    def find_by_project(self, project_id: int) -> list[Task]:
        return self._find_where(tasks.c.project_id == project_id, order_by=WORK_ORDER)

    def find_by_priority(self, priority: Priority) -> list[Task]:
        return self._find_where(
            tasks.c.priority == priority.value,
            order_by=(tasks.c.created_at.desc(), tasks.c.id.desc()),
        )

    def find_overdue(self, today: date | None = None) -> list[Task]:
        """Open tasks whose due date is before today."""
        return self._find_where(
            *overdue_criteria(today or date.today()),
            order_by=(tasks.c.due_date.asc(), tasks.c.id.asc()),
        )

    def find_due_on(self, day: date) -> list[Task]:
        return self._find_where(tasks.c.due_date == day, order_by=WORK_ORDER)

    def search_by_title(self, fragment: str) -> list[Task]:
        """Tasks whose title contains fragment, case-insensitively."""
        pattern = f"%{fragment.strip().lower()}%"
        return self._find_where(func.lower(tasks.c.title).like(pattern), order_by=WORK_ORDER)

    def unassigned(self) -> list[Task]:
        return self._find_where(
            tasks.c.assigned_user_id.is_(None),
            tasks.c.status.not_in((TaskStatus.DONE.value, TaskStatus.CANCELLED.value)),
            order_by=WORK_ORDER,
        )

    def statistics(self, today: date | None = None) -> TaskCounts:
        """Task counts across every task."""
        with store_errors("select", tasks.name), self._db.connect() as conn:
            return count_tasks(conn, today=today)

    def user_statistics(self, user_id: int, today: date | None = None) -> TaskCounts:
        """Task counts for the tasks assigned to one user."""
        with store_errors("select", tasks.name), self._db.connect() as conn:
            return count_tasks(conn, tasks.c.assigned_user_id == user_id, today=today)

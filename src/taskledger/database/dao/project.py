"""Project persistence and lookup queries.

Loading a project also loads its creator and status history through the
same connection. Tasks are not loaded with the project; use
``TaskDAO.find_by_project`` or ``ProjectDAO.load_tasks`` for them.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func
from sqlalchemy.engine import Connection, RowMapping

from taskledger.database.connection import Database
from taskledger.database.dao.base import DAO, EntityMapping
from taskledger.database.dao.history import StatusHistoryDAO
from taskledger.database.dao.statistics import TaskCounts, count_tasks
from taskledger.database.dao.support import as_date, as_utc, store_errors
from taskledger.database.dao.user import UserDAO
from taskledger.database.tables import projects, tasks
from taskledger.domain.history import EntityType
from taskledger.domain.project import Project
from taskledger.domain.statuses import Priority, ProjectStatus
from taskledger.domain.user import User

if TYPE_CHECKING:
    from taskledger.database.dao.task import TaskDAO

logger = structlog.get_logger(__name__)

OPEN_PROJECT_STATUSES = (
    ProjectStatus.PLANNING.value,
    ProjectStatus.ACTIVE.value,
    ProjectStatus.ON_HOLD.value,
)


def _project_update_params(project: Project) -> dict[str, Any]:
    return {
        "name": project.name,
        "description": project.description,
        "status": project.status.value,
        "priority": project.priority.value,
        "start_date": project.start_date,
        "end_date": project.end_date,
        "creator_id": project.creator.id if project.creator is not None else None,
        "updated_at": project.updated_at,
    }


def _project_insert_params(project: Project) -> dict[str, Any]:
    return {**_project_update_params(project), "created_at": project.created_at}


class ProjectDAO(DAO[Project]):
    """Stores projects together with their status history."""

    def __init__(
        self,
        database: Database,
        users: UserDAO | None = None,
        history: StatusHistoryDAO | None = None,
    ):
        self._users = users or UserDAO(database)
        mapping = EntityMapping(
            table=projects,
            from_row=self._project_from_row,
            insert_params=_project_insert_params,
            update_params=_project_update_params,
            history_type=EntityType.PROJECT,
        )
        super().__init__(database, mapping, history or StatusHistoryDAO(database))

    def _project_from_row(self, conn: Connection, row: RowMapping) -> Project:
        creator: User | None = self._users.load_by_id(conn, row["creator_id"])
        return Project(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            status=ProjectStatus(row["status"]),
            priority=Priority(row["priority"]),
            start_date=as_date(row["start_date"]),
            end_date=as_date(row["end_date"]),
            creator=creator,
            history=self._load_history(conn, row["id"]),
            created_at=as_utc(row["created_at"]),
            updated_at=as_utc(row["updated_at"]),
        )

    def find_by_status(self, status: ProjectStatus) -> list[Project]:
        return self._find_where(
            projects.c.status == status.value,
            order_by=(projects.c.created_at.desc(), projects.c.id.desc()),
        )

    def find_by_creator(self, creator_id: int) -> list[Project]:
        return self._find_where(
            projects.c.creator_id == creator_id,
            order_by=(projects.c.created_at.desc(), projects.c.id.desc()),
        )

    def find_by_name(self, name: str) -> Project | None:
        return self._find_one_where(projects.c.name == name)

    def search_by_name(self, fragment: str) -> list[Project]:
        """Projects whose name contains fragment, case-insensitively."""
        pattern = f"%{fragment.strip().lower()}%"
        return self._find_where(
            func.lower(projects.c.name).like(pattern),
            order_by=(projects.c.name.asc(),),
        )

    def active_projects(self) -> list[Project]:
        """Projects that are not yet completed or cancelled."""
        return self._find_where(
            projects.c.status.in_(OPEN_PROJECT_STATUSES),
            order_by=(projects.c.created_at.desc(), projects.c.id.desc()),
        )

    def name_exists(self, name: str) -> bool:
        return self._count_where(projects.c.name == name) > 0

    def statistics(self, project_id: int, today: date | None = None) -> TaskCounts:
        """Task counts for one project."""
        with store_errors("select", tasks.name), self._db.connect() as conn:
            return count_tasks(conn, tasks.c.project_id == project_id, today=today)

    def load_tasks(self, project: Project, task_dao: TaskDAO) -> Project:
        """Populate project.tasks from storage and return the project."""
        if project.id is not None:
            project.load_tasks(task_dao.find_by_project(project.id))
        return project

"""Use cases composing the DAOs and the in-memory entity operations.

Each operation loads what it needs, applies the entity operation and saves
only when that operation succeeded, so a rejected change never reaches the
store. Recoverable failures come back as failed ``Outcome`` objects;
unknown identities and store failures are raised.

Example usage:
    >>> service = TaskLedgerService(Database.from_url("sqlite://"))
    >>> service.database.create_schema()
    >>> admin = service.register_user("root", "root@example.com", "Root", "secret1",
    ...                               role=Role.ADMIN).unwrap()
"""

from __future__ import annotations

from datetime import date

import structlog

from taskledger.config import SecurityConfig
from taskledger.database.connection import Database
from taskledger.database.dao import ProjectDAO, StatusHistoryDAO, TaskDAO, UserDAO
from taskledger.domain.project import Project
from taskledger.domain.results import Outcome
from taskledger.domain.roles import Role
from taskledger.domain.statuses import Priority, ProjectStatus, TaskStatus
from taskledger.domain.task import Task
from taskledger.domain.user import User
from taskledger.exceptions import AuthorizationError, EntityNotFoundError, ValidationError

logger = structlog.get_logger(__name__)


class TaskLedgerService:
    """Entry point for applications built on taskledger.

    Attributes:
        database: Shared store handle.
        users: UserDAO bound to the database.
        projects: ProjectDAO bound to the database.
        tasks: TaskDAO bound to the database.
        history: StatusHistoryDAO bound to the database.
    """

    def __init__(self, database: Database, security: SecurityConfig | None = None):
        self.database = database
        self.security = security or SecurityConfig()
        self.history = StatusHistoryDAO(database)
        self.users = UserDAO(database)
        self.projects = ProjectDAO(database, self.users, self.history)
        self.tasks = TaskDAO(database, self.users, self.projects, self.history)

    # Lookups

    def require_user(self, username: str) -> User:
        """Return the user with the given username.

        Raises:
            EntityNotFoundError: If no such user exists.
        """
        user = self.users.find_by_username(username)
        if user is None:
            raise EntityNotFoundError("users", username, field="username")
        return user

    def require_project(self, project_id: int) -> Project:
        project = self.projects.find_by_id(project_id)
        if project is None:
            raise EntityNotFoundError("projects", project_id)
        return project

    def require_task(self, task_id: int) -> Task:
        task = self.tasks.find_by_id(task_id)
        if task is None:
            raise EntityNotFoundError("tasks", task_id)
        return task

    # Users

    def register_user(
        self,
        username: str,
        email: str,
        full_name: str,
        password: str,
        role: Role = Role.EMPLOYEE,
        actor: User | None = None,
    ) -> Outcome[User]:
        """Create a user account.

        The very first account may hold any role. After that, granting a
        role above EMPLOYEE needs an actor whose rank reaches that role.
        """
        if not isinstance(role, Role):
            return Outcome.failure(ValidationError("role is required"))
        if password is None or len(password) < self.security.min_password_length:
            return Outcome.failure(
                ValidationError(
                    f"password must be at least {self.security.min_password_length} characters"
                )
            )
        if role is not Role.EMPLOYEE and self.users.count() > 0:
            if actor is None or actor.role.rank < role.rank:
                return Outcome.failure(
                    AuthorizationError(
                        f"register a {role.display_name.lower()}",
                        actor=actor.username if actor is not None else None,
                    )
                )
        user = User(username=username, email=email, full_name=full_name, role=role, password=password)
        # Malformed fields are reported before the store is asked about duplicates
        reasons = user.validation_errors()
        if not reasons:
            if self.users.username_exists(user.username):
                reasons.append(f"username {user.username!r} is already taken")
            if self.users.email_exists(user.email):
                reasons.append(f"email {user.email!r} is already registered")
        if reasons:
            return Outcome.failure(ValidationError(reasons))

        outcome = self.users.save(user)
        if outcome:
            logger.info("user_registered", username=user.username, user_id=user.id, role=role.value)
        return outcome

    # Projects

    def create_project(
        self,
        name: str,
        creator: User,
        description: str | None = None,
        priority: Priority = Priority.MEDIUM,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Outcome[Project]:
        if name and self.projects.name_exists(name.strip()):
            return Outcome.failure(ValidationError(f"project {name.strip()!r} already exists"))
        project = Project(
            name=name,
            creator=creator,
            description=description,
            priority=priority,
            start_date=start_date,
            end_date=end_date,
        )
        outcome = self.projects.save(project)
        if outcome:
            logger.info("project_created", project_id=project.id, creator=creator.username)
        return outcome

    def transition_project(
        self,
        project_id: int,
        new_status: ProjectStatus | str,
        actor: User,
        note: str | None = None,
    ) -> Outcome[Project]:
        project = self.require_project(project_id)
        outcome = project.transition(new_status, actor, note)
        if not outcome:
            return Outcome.failure(outcome.error)
        if not outcome.changed:
            return Outcome.success(project, changed=False)
        return self.projects.save(project)

    # Tasks

    def create_task(
        self,
        title: str,
        creator: User,
        project_id: int | None = None,
        description: str | None = None,
        priority: Priority = Priority.MEDIUM,
        due_date: date | None = None,
        assignee: User | None = None,
    ) -> Outcome[Task]:
        """Create a task, optionally inside a project and assigned at once.

        Adding a task to a project requires permission to edit the project.
        """
        if creator is None:
            return Outcome.failure(ValidationError("task creator is required"))
        task = Task(
            title=title,
            description=description,
            priority=priority,
            due_date=due_date,
            created_by=creator,
        )
        if project_id is not None:
            project = self.require_project(project_id)
            if not project.can_edit(creator):
                return Outcome.failure(
                    AuthorizationError(f"add tasks to {project.label}", actor=creator.username)
                )
            added = project.add_task(task)
            if not added:
                return Outcome.failure(added.error)
        if assignee is not None:
            assigned = task.assign(assignee, creator)
            if not assigned:
                return Outcome.failure(assigned.error)

        outcome = self.tasks.save(task)
        if outcome:
            logger.info(
                "task_created",
                task_id=task.id,
                project_id=project_id,
                creator=creator.username,
                assignee=assignee.username if assignee is not None else None,
            )
        return outcome

    def transition_task(
        self,
        task_id: int,
        new_status: TaskStatus | str,
        actor: User,
        note: str | None = None,
    ) -> Outcome[Task]:
        """Move a task to a new status on behalf of its assignee or a manager."""
        task = self.require_task(task_id)
        if not task.can_edit(actor):
            return Outcome.failure(
                AuthorizationError(
                    f"change the status of {task.label}",
                    actor=actor.username if actor is not None else None,
                    reason="only the assignee or a manager may change the status",
                )
            )
        outcome = task.transition(new_status, actor, note)
        if not outcome:
            return Outcome.failure(outcome.error)
        if not outcome.changed:
            return Outcome.success(task, changed=False)
        return self.tasks.save(task)

    def assign_task(self, task_id: int, assignee: User, assigner: User) -> Outcome[Task]:
        task = self.require_task(task_id)
        outcome = task.assign(assignee, assigner)
        if not outcome:
            return outcome
        return self.tasks.save(task)

    def unassign_task(self, task_id: int, actor: User) -> Outcome[Task]:
        task = self.require_task(task_id)
        outcome = task.unassign(actor)
        if not outcome:
            return outcome
        return self.tasks.save(task)

"""Project entity.

A project owns its status history exclusively. It references its creator
and its tasks without owning them: removing a task from a project only
detaches it.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING

import structlog

from taskledger.domain.base import Entity
from taskledger.domain.history import EntityType, HistoryEvent, StatusHistoryEntry
from taskledger.domain.results import Outcome
from taskledger.domain.state_machine import PROJECT_POLICY, StatusLog
from taskledger.domain.statuses import Priority, ProjectStatus, TaskStatus
from taskledger.domain.user import User
from taskledger.exceptions import AuthorizationError, StateError, ValidationError

if TYPE_CHECKING:
    from taskledger.domain.task import Task

logger = structlog.get_logger(__name__)

MAX_NAME_LENGTH = 100


class Project(Entity):
    """A body of work broken into tasks.

    Attributes:
        name: Human-readable project name.
        description: Optional longer description.
        priority: Urgency of the project.
        creator: User who created the project.
        start_date: Optional planned start.
        end_date: Optional planned end, not before start_date.
        current_status: Current ProjectStatus.
        history: Status history, oldest first.
    """

    entity_type = EntityType.PROJECT

    def __init__(
        self,
        name: str,
        creator: User | None,
        description: str | None = None,
        priority: Priority = Priority.MEDIUM,
        status: ProjectStatus = ProjectStatus.PLANNING,
        start_date: date | None = None,
        end_date: date | None = None,
        history: list[StatusHistoryEntry] | None = None,
        id: int | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        super().__init__(id=id, created_at=created_at, updated_at=updated_at)
        self._name = name.strip() if name else name
        self._description = description
        self._priority = priority
        self._creator = creator
        self._start_date = start_date
        self._end_date = end_date
        self._tasks: list[Task] = []
        self._log: StatusLog[ProjectStatus] = StatusLog(
            self, EntityType.PROJECT, PROJECT_POLICY, status, history
        )
        # history=None marks a brand-new project rather than one loaded from storage
        if history is None:
            self._log.record(HistoryEvent.CREATED, actor=creator)

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str | None:
        return self._description

    @property
    def priority(self) -> Priority:
        return self._priority

    @property
    def creator(self) -> User | None:
        return self._creator

    @property
    def start_date(self) -> date | None:
        return self._start_date

    @property
    def end_date(self) -> date | None:
        return self._end_date

    @property
    def display_name(self) -> str:
        return self._name or ""

    # Trackable

    @property
    def current_status(self) -> ProjectStatus:
        return self._log.status

    @property
    def status(self) -> ProjectStatus:
        return self._log.status

    @property
    def history(self) -> tuple[StatusHistoryEntry, ...]:
        return self._log.entries

    def is_transitionable(self) -> bool:
        return self._log.is_transitionable()

    def can_edit(self, actor: User | None) -> bool:
        """Return True if actor created the project or holds a rank at least the creator's."""
        if actor is None:
            return False
        if self._creator is None:
            return actor.is_manager_or_above
        if actor.id is not None and actor.id == self._creator.id:
            return True
        return actor is self._creator or actor.can_act_on(self._creator)

    def transition(
        self,
        new_status: ProjectStatus | str,
        actor: User | None,
        note: str | None = None,
    ) -> Outcome[ProjectStatus]:
        """Change the project status on behalf of actor.

        Only users who may edit the project can change its status.
        """
        if not self.can_edit(actor):
            return Outcome.failure(
                AuthorizationError(
                    f"change the status of {self.label}",
                    actor=actor.username if actor is not None else None,
                    reason="outranked by the project creator",
                )
            )
        return self._log.transition(new_status, actor, note)

    def pending_history(self) -> list[StatusHistoryEntry]:
        return self._log.pending()

    def mark_history_stored(self, stored: list[StatusHistoryEntry]) -> None:
        self._log.mark_stored(stored)

    # Details

    def update_details(
        self,
        actor: User | None,
        name: str | None = None,
        description: str | None = None,
        priority: Priority | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Outcome[Project]:
        """Edit descriptive fields; fields left as None are unchanged."""
        if not self.can_edit(actor):
            return Outcome.failure(
                AuthorizationError(
                    f"edit {self.label}",
                    actor=actor.username if actor is not None else None,
                )
            )
        if self.is_deleted:
            return Outcome.failure(StateError(f"{self.label} has been deleted"))
        if not self.is_transitionable():
            return Outcome.failure(
                StateError(f"{self.label} is {self.status.value} and can no longer be edited")
            )
        if name is not None and not name.strip():
            return Outcome.failure(ValidationError("project name is required"))

        if name is not None:
            self._name = name.strip()
        if description is not None:
            self._description = description
        if priority is not None:
            self._priority = priority
        if start_date is not None:
            self._start_date = start_date
        if end_date is not None:
            self._end_date = end_date
        self.touch()
        return Outcome.success(self)

    # Tasks

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    @property
    def accepts_tasks(self) -> bool:
        return not self.is_deleted and self.is_transitionable()

    def add_task(self, task: Task) -> Outcome[Task]:
        """Attach a task to this project while the project is not finished."""
        if not self.accepts_tasks:
            return Outcome.failure(
                StateError(f"{self.label} is {self.status.value} and accepts no new tasks")
            )
        if any(t is task for t in self._tasks):
            return Outcome.success(task, changed=False)
        self._tasks.append(task)
        task.attach_to_project(self)
        self.touch()
        logger.debug("task_added_to_project", project=self.label, task=task.label)
        return Outcome.success(task)

    def remove_task(self, task: Task) -> Outcome[Task]:
        for index, existing in enumerate(self._tasks):
            if existing is task:
                del self._tasks[index]
                task.attach_to_project(None)
                self.touch()
                return Outcome.success(task)
        return Outcome.failure(ValidationError(f"{task.label} does not belong to {self.label}"))

    def load_tasks(self, tasks: list[Task]) -> None:
        """Replace the in-memory task list with tasks loaded from storage."""
        self._tasks = list(tasks)
        for task in self._tasks:
            task.attach_to_project(self, touch=False)

    @property
    def task_count(self) -> int:
        return len(self._tasks)

    @property
    def completed_task_count(self) -> int:
        return sum(1 for t in self._tasks if t.status is TaskStatus.DONE)

    @property
    def completion_percentage(self) -> float:
        if not self._tasks:
            return 0.0
        return self.completed_task_count / len(self._tasks) * 100.0

    def validation_errors(self) -> list[str]:
        errors: list[str] = []
        if not self._name:
            errors.append("project name is required")
        elif len(self._name) > MAX_NAME_LENGTH:
            errors.append(f"project name must be at most {MAX_NAME_LENGTH} characters")
        if self._creator is None:
            errors.append("project creator is required")
        elif self._creator.id is None:
            errors.append("project creator must be saved first")
        if not isinstance(self._priority, Priority):
            errors.append("priority is required")
        if self._start_date and self._end_date and self._end_date < self._start_date:
            errors.append("end date must not precede start date")
        return errors

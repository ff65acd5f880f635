"""Task entity.

Tasks are both trackable (status state machine with history) and
assignable (a responsible user handed the task by an assigner whose rank
reaches theirs). None of the operations here touch the store; callers
commit the changed task through ``TaskDAO.save``.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING

import structlog

from taskledger.domain.base import Entity
from taskledger.domain.history import EntityType, HistoryEvent, StatusHistoryEntry
from taskledger.domain.results import Outcome
from taskledger.domain.state_machine import TASK_POLICY, StatusLog
from taskledger.domain.statuses import Priority, TaskStatus
from taskledger.domain.user import User
from taskledger.exceptions import AuthorizationError, StateError, ValidationError

if TYPE_CHECKING:
    from taskledger.domain.project import Project

logger = structlog.get_logger(__name__)

MAX_TITLE_LENGTH = 200


def _same_user(a: User | None, b: User | None) -> bool:
    if a is None or b is None:
        return False
    return a is b or (a.id is not None and a.id == b.id)


class Task(Entity):
    """A unit of work, optionally inside a project and assigned to a user.

    Attributes:
        title: Short description of the task.
        description: Optional detailed description.
        priority: Urgency of the task.
        due_date: Optional due date.
        project: Parent project, if any.
        assigned_user: User currently responsible, if any.
        assigned_by: User who made the current assignment, if any.
        completed_at: When the task last entered DONE; None outside DONE.
        current_status: Current TaskStatus.
        history: Status and assignment history, oldest first.
    """

    entity_type = EntityType.TASK

    def __init__(
        self,
        title: str,
        description: str | None = None,
        priority: Priority = Priority.MEDIUM,
        due_date: date | None = None,
        project: Project | None = None,
        status: TaskStatus = TaskStatus.TODO,
        assignee: User | None = None,
        assigner: User | None = None,
        completed_at: datetime | None = None,
        created_by: User | None = None,
        history: list[StatusHistoryEntry] | None = None,
        id: int | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        super().__init__(id=id, created_at=created_at, updated_at=updated_at)
        self._title = title.strip() if title else title
        self._description = description
        self._priority = priority
        self._due_date = due_date
        self._project = project
        self._assignee = assignee
        self._assigner = assigner
        self._completed_at = completed_at
        self._log: StatusLog[TaskStatus] = StatusLog(
            self, EntityType.TASK, TASK_POLICY, status, history
        )
        if history is None:
            self._log.record(HistoryEvent.CREATED, actor=created_by)

    @property
    def title(self) -> str:
        return self._title

    @property
    def description(self) -> str | None:
        return self._description

    @property
    def priority(self) -> Priority:
        return self._priority

    @property
    def due_date(self) -> date | None:
        return self._due_date

    @property
    def project(self) -> Project | None:
        return self._project

    @property
    def completed_at(self) -> datetime | None:
        return self._completed_at

    @property
    def display_name(self) -> str:
        return self._title or ""

    def attach_to_project(self, project: Project | None, touch: bool = True) -> None:
        self._project = project
        if touch:
            self.touch()

    # Trackable

    @property
    def current_status(self) -> TaskStatus:
        return self._log.status

    @property
    def status(self) -> TaskStatus:
        return self._log.status

    @property
    def history(self) -> tuple[StatusHistoryEntry, ...]:
        return self._log.entries

    def is_transitionable(self) -> bool:
        return self._log.is_transitionable()

    def transition(
        self,
        new_status: TaskStatus | str,
        actor: User | None,
        note: str | None = None,
    ) -> Outcome[TaskStatus]:
        """Change the task status on behalf of actor.

        Entering DONE stamps completed_at; leaving DONE clears it.
        """
        previous = self._log.status
        outcome = self._log.transition(new_status, actor, note)
        if outcome.ok and outcome.changed:
            if outcome.value is TaskStatus.DONE:
                self._completed_at = self.updated_at
            elif previous is TaskStatus.DONE:
                self._completed_at = None
        return outcome

    def pending_history(self) -> list[StatusHistoryEntry]:
        return self._log.pending()

    def mark_history_stored(self, stored: list[StatusHistoryEntry]) -> None:
        self._log.mark_stored(stored)

    # Assignable

    @property
    def assigned_user(self) -> User | None:
        return self._assignee

    @property
    def assigned_by(self) -> User | None:
        return self._assigner

    def is_assigned(self) -> bool:
        return self._assignee is not None

    def assign(self, user: User | None, assigner: User | None) -> Outcome[Task]:
        """Make user responsible for the task on behalf of assigner.

        The assigner's rank must reach the assignee's rank and the task must
        not be in a terminal status.
        """
        if user is None or assigner is None:
            return Outcome.failure(ValidationError("both assignee and assigner are required"))
        if self.is_deleted:
            return Outcome.failure(StateError(f"{self.label} has been deleted"))
        if not assigner.can_act_on(user):
            logger.info(
                "task_assignment_denied",
                task=self.label,
                assignee=user.username,
                assigner=assigner.username,
            )
            return Outcome.failure(
                AuthorizationError(
                    f"assign {self.label} to {user.username}",
                    actor=assigner.username,
                    reason=f"{assigner.role.value} cannot act on {user.role.value}",
                )
            )
        if not self.is_transitionable():
            return Outcome.failure(
                StateError(f"{self.label} is {self.status.value} and cannot be assigned")
            )
        if not user.is_active:
            return Outcome.failure(ValidationError(f"{user.username} is inactive"))

        self._assignee = user
        self._assigner = assigner
        self.touch()
        self._log.record(
            HistoryEvent.ASSIGNED,
            actor=assigner,
            note=f"assigned to {user.display_name} by {assigner.display_name}",
        )
        logger.info(
            "task_assigned",
            task=self.label,
            assignee=user.username,
            assigner=assigner.username,
        )
        return Outcome.success(self)

    def unassign(self, actor: User | None) -> Outcome[Task]:
        """Remove the current assignee on behalf of actor.

        Allowed for the assignee themselves or any user of rank MANAGER or
        above, while the task is not in a terminal status.
        """
        if actor is None:
            return Outcome.failure(AuthorizationError(f"unassign {self.label}"))
        if self.is_deleted:
            return Outcome.failure(StateError(f"{self.label} has been deleted"))
        if self._assignee is None:
            return Outcome.failure(StateError(f"{self.label} is not assigned"))
        if not actor.is_manager_or_above and not _same_user(actor, self._assignee):
            return Outcome.failure(
                AuthorizationError(
                    f"unassign {self.label}",
                    actor=actor.username,
                    reason="only the assignee or a manager may unassign",
                )
            )
        if not self.is_transitionable():
            return Outcome.failure(
                StateError(f"{self.label} is {self.status.value} and cannot be unassigned")
            )

        previous = self._assignee
        self._assignee = None
        self._assigner = None
        self.touch()
        self._log.record(
            HistoryEvent.UNASSIGNED,
            actor=actor,
            note=f"unassigned from {previous.display_name} by {actor.display_name}",
        )
        logger.info("task_unassigned", task=self.label, previous=previous.username, actor=actor.username)
        return Outcome.success(self)

    # Details

    def can_edit(self, actor: User | None) -> bool:
        if actor is None:
            return False
        return actor.is_manager_or_above or _same_user(actor, self._assignee)

    def update_details(
        self,
        actor: User | None,
        title: str | None = None,
        description: str | None = None,
        priority: Priority | None = None,
        due_date: date | None = None,
    ) -> Outcome[Task]:
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
        if title is not None and not title.strip():
            return Outcome.failure(ValidationError("task title is required"))

        if title is not None:
            self._title = title.strip()
        if description is not None:
            self._description = description
        if priority is not None:
            self._priority = priority
        if due_date is not None:
            self._due_date = due_date
        self.touch()
        return Outcome.success(self)

    # Scheduling

    def is_overdue(self, today: date | None = None) -> bool:
        if self._due_date is None or not self.is_transitionable():
            return False
        return (today or date.today()) > self._due_date

    def days_until_due(self, today: date | None = None) -> int | None:
        """Days left until the due date (negative when overdue), None without one."""
        if self._due_date is None:
            return None
        return (self._due_date - (today or date.today())).days

    def validation_errors(self) -> list[str]:
        errors: list[str] = []
        if not self._title:
            errors.append("task title is required")
        elif len(self._title) > MAX_TITLE_LENGTH:
            errors.append(f"task title must be at most {MAX_TITLE_LENGTH} characters")
        if not isinstance(self._priority, Priority):
            errors.append("priority is required")
        if self._project is not None and self._project.id is None:
            errors.append("project must be saved before its tasks")
        for role, user in (("assignee", self._assignee), ("assigner", self._assigner)):
            if user is not None and user.id is None:
                errors.append(f"{role} must be saved first")
        return errors

"""Status and priority enumerations shared by projects and tasks."""

from __future__ import annotations

import enum


class TaskStatus(enum.Enum):
    """Lifecycle of a task.

    States:
        TODO: Created, nobody has started it.
        IN_PROGRESS: Being worked on.
        REVIEW: Work finished, awaiting review.
        DONE: Accepted as complete (terminal, may be reopened to TODO).
        CANCELLED: Abandoned (terminal, may be reopened to TODO).
    """

    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    REVIEW = "REVIEW"
    DONE = "DONE"
    CANCELLED = "CANCELLED"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


class ProjectStatus(enum.Enum):
    """Lifecycle of a project.

    States:
        PLANNING: Being scoped, no work started.
        ACTIVE: Work under way.
        ON_HOLD: Work temporarily suspended.
        COMPLETED: Finished (terminal).
        CANCELLED: Abandoned (terminal).
    """

    PLANNING = "PLANNING"
    ACTIVE = "ACTIVE"
    ON_HOLD = "ON_HOLD"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


class Priority(enum.Enum):
    """Urgency of a project or task, ordered by level."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"

    @property
    def level(self) -> int:
        return _PRIORITY_LEVELS[self]

    @property
    def display_name(self) -> str:
        return self.value.title()

    @classmethod
    def parse(cls, value: str | Priority) -> Priority:
        if isinstance(value, Priority):
            return value
        return cls(value.strip().upper())


_PRIORITY_LEVELS: dict[Priority, int] = {
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
    Priority.URGENT: 4,
}

"""Status state machine shared by projects and tasks.

This module holds the authoritative transition tables and the ``StatusLog``
component that projects and tasks embed to track their status. A
``StatusLog`` validates each requested transition against its policy,
applies accepted ones, advances the owner's update timestamp and appends a
``StatusHistoryEntry``. Rejected transitions leave status, timestamp and
history untouched.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, Mapping, TypeVar

import structlog

from taskledger.domain.base import Entity
from taskledger.domain.history import EntityType, HistoryEvent, StatusHistoryEntry
from taskledger.domain.results import Outcome
from taskledger.domain.statuses import ProjectStatus, TaskStatus
from taskledger.exceptions import InvalidTransitionError, StateError

if TYPE_CHECKING:
    from taskledger.domain.user import User

logger = structlog.get_logger(__name__)

S = TypeVar("S", bound=enum.Enum)


@dataclass(frozen=True)
class TransitionPolicy(Generic[S]):
    """Allowed status changes for one entity type.

    Attributes:
        status_type: Enumeration of the statuses.
        transitions: Forward transitions allowed from each non-terminal status.
        terminal: Statuses from which only reopen transitions are allowed.
        reopen: Explicit transitions out of terminal statuses.
    """

    status_type: type[S]
    transitions: Mapping[S, frozenset[S]]
    terminal: frozenset[S]
    reopen: Mapping[S, frozenset[S]] = field(default_factory=dict)

    def parse(self, value: S | str) -> S | None:
        """Resolve a status from an enum member or its name.

        Names are matched case-insensitively; spaces and dashes map to
        underscores. Returns None for anything unrecognized.
        """
        if isinstance(value, self.status_type):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().upper().replace(" ", "_").replace("-", "_")
        try:
            return self.status_type(key)
        except ValueError:
            return None

    def is_terminal(self, status: S) -> bool:
        return status in self.terminal

    def is_reopen(self, current: S, target: S) -> bool:
        return target in self.reopen.get(current, frozenset())

    def validate_transition(self, current: S, target: S) -> bool:
        """Return True if current -> target is in the transition or reopen table."""
        if self.is_terminal(current):
            return self.is_reopen(current, target)
        return target in self.transitions.get(current, frozenset())

    def allowed_from(self, current: S) -> frozenset[S]:
        return self.transitions.get(current, frozenset()) | self.reopen.get(current, frozenset())


TASK_POLICY: TransitionPolicy[TaskStatus] = TransitionPolicy(
    status_type=TaskStatus,
    transitions={
        TaskStatus.TODO: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED}),
        TaskStatus.IN_PROGRESS: frozenset(
            {TaskStatus.REVIEW, TaskStatus.DONE, TaskStatus.CANCELLED}
        ),
        TaskStatus.REVIEW: frozenset(
            {TaskStatus.IN_PROGRESS, TaskStatus.DONE, TaskStatus.CANCELLED}
        ),
        TaskStatus.DONE: frozenset(),
        TaskStatus.CANCELLED: frozenset(),
    },
    terminal=frozenset({TaskStatus.DONE, TaskStatus.CANCELLED}),
    reopen={
        TaskStatus.DONE: frozenset({TaskStatus.TODO}),
        TaskStatus.CANCELLED: frozenset({TaskStatus.TODO}),
    },
)

PROJECT_POLICY: TransitionPolicy[ProjectStatus] = TransitionPolicy(
    status_type=ProjectStatus,
    transitions={
        ProjectStatus.PLANNING: frozenset({ProjectStatus.ACTIVE, ProjectStatus.CANCELLED}),
        ProjectStatus.ACTIVE: frozenset(
            {ProjectStatus.ON_HOLD, ProjectStatus.COMPLETED, ProjectStatus.CANCELLED}
        ),
        ProjectStatus.ON_HOLD: frozenset(
            {ProjectStatus.ACTIVE, ProjectStatus.COMPLETED, ProjectStatus.CANCELLED}
        ),
        ProjectStatus.COMPLETED: frozenset(),
        ProjectStatus.CANCELLED: frozenset(),
    },
    terminal=frozenset({ProjectStatus.COMPLETED, ProjectStatus.CANCELLED}),
)


class StatusLog(Generic[S]):
    """Current status plus the append-only history of one entity.

    The log is owned exclusively by its entity. Entries appended since the
    last save are reported by ``pending()`` so the persistence layer can
    write them alongside the entity row.
    """

    def __init__(
        self,
        owner: Entity,
        entity_type: EntityType,
        policy: TransitionPolicy[S],
        status: S,
        history: list[StatusHistoryEntry] | None = None,
    ):
        self._owner = owner
        self._entity_type = entity_type
        self._policy = policy
        self._status = status
        self._entries: list[StatusHistoryEntry] = list(history or [])
        self._stored = len(self._entries)

    @property
    def status(self) -> S:
        return self._status

    @property
    def policy(self) -> TransitionPolicy[S]:
        return self._policy

    @property
    def entries(self) -> tuple[StatusHistoryEntry, ...]:
        return tuple(self._entries)

    def is_transitionable(self) -> bool:
        return not self._policy.is_terminal(self._status)

    def record(
        self,
        event: HistoryEvent,
        actor: User | None = None,
        note: str | None = None,
        old_status: S | None = None,
    ) -> StatusHistoryEntry:
        """Append an entry describing an event at the current status."""
        entry = StatusHistoryEntry(
            entity_type=self._entity_type,
            entity_id=self._owner.id,
            event=event,
            old_status=old_status.value if old_status is not None else None,
            new_status=self._status.value,
            actor_id=actor.id if actor is not None else None,
            actor_name=actor.username if actor is not None else None,
            note=note,
        )
        self._entries.append(entry)
        return entry

    def transition(
        self,
        target: S | str,
        actor: User | None,
        note: str | None = None,
    ) -> Outcome[S]:
        """Move to a new status if the policy allows it.

        Args:
            target: Requested status, as an enum member or its name.
            actor: User requesting the change.
            note: Optional note stored with the history entry.

        Returns:
            Successful outcome carrying the new status (``changed`` is False
            for a transition to the current status), or a failed outcome
            carrying a StateError.
        """
        current = self._status
        label = self._owner.label

        if self._owner.is_deleted:
            return Outcome.failure(StateError(f"{label} has been deleted"))

        resolved = self._policy.parse(target)
        if resolved is None:
            return Outcome.failure(
                InvalidTransitionError(current, target, label, reason="unknown status")
            )

        if resolved == current:
            return Outcome.success(current, changed=False)

        if not self.is_transitionable() and not self._policy.is_reopen(current, resolved):
            return Outcome.failure(
                InvalidTransitionError(current, resolved, label, reason=f"{current.value} is terminal")
            )

        if not self._policy.validate_transition(current, resolved):
            logger.debug(
                "transition_rejected",
                entity=label,
                from_status=current.value,
                to_status=resolved.value,
            )
            return Outcome.failure(InvalidTransitionError(current, resolved, label))

        self._status = resolved
        self._owner.touch()
        self.record(HistoryEvent.STATUS_CHANGED, actor=actor, note=note, old_status=current)

        logger.info(
            "status_transition",
            entity=label,
            from_status=current.value,
            to_status=resolved.value,
            actor=actor.username if actor is not None else None,
        )
        return Outcome.success(resolved)

    def pending(self) -> list[StatusHistoryEntry]:
        """Entries appended since the log was loaded or last stored."""
        return self._entries[self._stored:]

    def mark_stored(self, stored: list[StatusHistoryEntry]) -> None:
        """Replace pending entries with their stored copies."""
        start = self._stored
        self._entries[start:start + len(stored)] = stored
        self._stored = start + len(stored)

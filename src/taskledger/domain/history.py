"""Immutable audit records appended on every status or assignment change."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from datetime import datetime

from taskledger.domain.base import utcnow


class EntityType(enum.Enum):
    """Kind of entity a history entry belongs to."""

    PROJECT = "PROJECT"
    TASK = "TASK"


class HistoryEvent(enum.Enum):
    """What happened to the entity.

    States:
        CREATED: Entity constructed with its initial status.
        STATUS_CHANGED: Accepted status transition.
        ASSIGNED: Task handed to a user.
        UNASSIGNED: Task taken away from its assignee.
    """

    CREATED = "CREATED"
    STATUS_CHANGED = "STATUS_CHANGED"
    ASSIGNED = "ASSIGNED"
    UNASSIGNED = "UNASSIGNED"


@dataclass(frozen=True)
class StatusHistoryEntry:
    """One entry of an entity's append-only status log.

    Attributes:
        entity_type: PROJECT or TASK.
        entity_id: Identity of the owning entity; None until it is persisted.
        event: Kind of change recorded.
        old_status: Status value before the change (None for CREATED).
        new_status: Status value after the change.
        actor_id: Identity of the acting user, when known.
        actor_name: Username of the acting user, when known.
        changed_at: When the change happened.
        note: Optional free-text note.
        id: Row identity in the status_history table, once stored.
    """

    entity_type: EntityType
    entity_id: int | None
    event: HistoryEvent
    old_status: str | None
    new_status: str
    actor_id: int | None = None
    actor_name: str | None = None
    changed_at: datetime = field(default_factory=utcnow)
    note: str | None = None
    id: int | None = None

    @property
    def is_status_change(self) -> bool:
        return self.event is HistoryEvent.STATUS_CHANGED

    def stored_as(self, entry_id: int, entity_id: int) -> StatusHistoryEntry:
        """Return a copy carrying the identities assigned by the store."""
        return replace(self, id=entry_id, entity_id=entity_id)

    def describe(self) -> str:
        """Render the entry as a single human-readable line."""
        who = f" by {self.actor_name}" if self.actor_name else ""
        when = self.changed_at.strftime("%Y-%m-%d %H:%M:%S")
        if self.event is HistoryEvent.CREATED:
            text = f"created with status {self.new_status}{who}"
        elif self.event is HistoryEvent.STATUS_CHANGED:
            text = f"status changed from {self.old_status} to {self.new_status}{who}"
        else:
            # Assignment notes already name both parties
            return f"{when} {self.note or self.event.value.lower() + who}"
        if self.note:
            text += f" ({self.note})"
        return f"{when} {text}"

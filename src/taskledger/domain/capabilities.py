"""Capability protocols implemented by the domain entities.

Callers that only need status tracking or assignment depend on these
protocols instead of branching on the concrete entity type.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from taskledger.domain.history import EntityType, StatusHistoryEntry
from taskledger.domain.results import Outcome

if TYPE_CHECKING:
    from taskledger.domain.user import User


@runtime_checkable
class Trackable(Protocol):
    """An entity with a status, a transition table and an append-only history."""

    entity_type: EntityType

    @property
    def id(self) -> int | None: ...

    @property
    def current_status(self) -> Any: ...

    @property
    def history(self) -> tuple[StatusHistoryEntry, ...]: ...

    @property
    def updated_at(self) -> datetime: ...

    def transition(self, new_status: Any, actor: User | None, note: str | None = None) -> Outcome[Any]:
        """Request a status change on behalf of actor."""
        ...

    def is_transitionable(self) -> bool:
        """False once the entity sits in a terminal status."""
        ...

    def pending_history(self) -> list[StatusHistoryEntry]:
        """History entries not yet written to the store."""
        ...

    def mark_history_stored(self, stored: list[StatusHistoryEntry]) -> None:
        """Swap pending entries for the copies returned by the store."""
        ...


@runtime_checkable
class Assignable(Protocol):
    """An entity that can be handed to a responsible user, rank-gated."""

    @property
    def assigned_user(self) -> User | None: ...

    @property
    def assigned_by(self) -> User | None: ...

    def assign(self, user: User | None, assigner: User | None) -> Outcome[Any]:
        """Make user responsible, on behalf of assigner."""
        ...

    def unassign(self, actor: User | None) -> Outcome[Any]:
        """Remove the current assignee, on behalf of actor."""
        ...

    def is_assigned(self) -> bool: ...

"""Common identity, timestamp and validation contract for persisted entities.

Every entity carries:
- id: integer identity, None until the persistence layer inserts the row
- created_at: set once when the object is constructed
- updated_at: advanced on every mutation, never moved backwards

Concrete types supply ``validation_errors()``; ``is_valid()`` is derived
from it so the reasons are available when a save is rejected.
"""

from __future__ import annotations

from datetime import datetime, timezone

from taskledger.exceptions import StateError


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class Entity:
    """Base class for User, Project and Task."""

    def __init__(
        self,
        id: int | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self._id = id
        self._created_at = created_at or utcnow()
        self._updated_at = updated_at or self._created_at
        self._deleted = False

    @property
    def id(self) -> int | None:
        return self._id

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def is_persisted(self) -> bool:
        return self._id is not None

    @property
    def is_deleted(self) -> bool:
        return self._deleted

    @property
    def display_name(self) -> str:
        raise NotImplementedError

    def assign_identity(self, entity_id: int) -> None:
        """Record the identity generated by the store on first insert.

        Raises:
            StateError: If the entity already has a different identity.
        """
        if self._id is not None and self._id != entity_id:
            raise StateError(
                f"{type(self).__name__} already has id {self._id}; cannot reassign to {entity_id}"
            )
        self._id = entity_id

    def mark_deleted(self) -> None:
        """Make the in-memory object inert after its row was removed."""
        self._deleted = True

    def touch(self) -> None:
        """Advance the update timestamp."""
        now = utcnow()
        if now > self._updated_at:
            self._updated_at = now

    def ensure_mutable(self) -> None:
        if self._deleted:
            raise StateError(f"{self.label} has been deleted")

    def validation_errors(self) -> list[str]:
        raise NotImplementedError

    def is_valid(self) -> bool:
        return not self.validation_errors()

    @property
    def label(self) -> str:
        """Short identifier used in log lines and error messages."""
        name = type(self).__name__.lower()
        return f"{name} {self._id}" if self._id is not None else f"new {name}"

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if type(self) is not type(other):
            return NotImplemented
        return self._id is not None and self._id == other._id  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        if self._id is None:
            return id(self)
        return hash((type(self).__name__, self._id))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self._id} {self.display_name!r}>"

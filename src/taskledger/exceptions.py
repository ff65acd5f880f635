"""Error taxonomy for taskledger.

Validation, authorization and state errors describe recoverable,
caller-local conditions. Domain operations hand them back inside a failed
``Outcome`` rather than raising them. Persistence errors wrap failures of
the backing store and are raised to the caller, who decides whether to
retry.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Sequence


class TaskLedgerError(Exception):
    """Base class for every error raised or reported by taskledger."""


class ValidationError(TaskLedgerError):
    """A required field is missing or malformed.

    Attributes:
        reasons: Human-readable description of each failed rule.
    """

    def __init__(self, reasons: Sequence[str] | str):
        if isinstance(reasons, str):
            reasons = [reasons]
        self.reasons = list(reasons)
        super().__init__("; ".join(self.reasons) or "invalid entity")


class AuthorizationError(TaskLedgerError):
    """The acting user is not permitted to perform the action.

    Attributes:
        actor: Username of the acting user, if known.
        action: Short name of the rejected action.
    """

    def __init__(self, action: str, actor: str | None = None, reason: str | None = None):
        self.action = action
        self.actor = actor
        self.reason = reason
        msg = f"{actor or 'anonymous'} is not permitted to {action}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class StateError(TaskLedgerError):
    """A mutation was attempted on an entity whose state forbids it."""


class InvalidTransitionError(StateError):
    """Raised when an invalid status transition is attempted.

    Attributes:
        current: The current status.
        target: The attempted target status (a raw value when unrecognized).
        entity: Label of the entity that failed to transition.
    """

    def __init__(self, current: Enum, target: Any, entity: str | None = None, reason: str | None = None):
        self.current = current
        self.target = target
        self.entity = entity
        target_label = target.value if isinstance(target, Enum) else repr(target)
        msg = f"Invalid transition from {current.value} to {target_label}"
        if entity:
            msg += f" for {entity}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class PersistenceError(TaskLedgerError):
    """The backing store rejected or failed an operation."""


class EntityNotFoundError(PersistenceError):
    """An update or lookup referenced an identity with no stored row."""

    def __init__(self, table: str, entity_id: int | str, field: str = "id"):
        self.table = table
        self.entity_id = entity_id
        self.field = field
        super().__init__(f"No row in {table} with {field} {entity_id}")


class IntegrityViolationError(PersistenceError):
    """A store constraint (unique, foreign key, not null) was violated."""

"""Explicit success/failure results for domain operations.

Recoverable conditions (validation, authorization, illegal state) are
returned to the immediate caller instead of raised. ``Outcome`` is falsy on
failure, so callers may write ``if not task.assign(bob, alice): ...`` and
inspect ``outcome.error`` to tell "not permitted" apart from "bad input".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from taskledger.exceptions import (
    AuthorizationError,
    StateError,
    TaskLedgerError,
    ValidationError,
)

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a domain operation.

    Attributes:
        ok: Whether the operation was applied.
        value: Payload of a successful operation (often the entity itself).
        error: Reason for the failure; None on success.
        changed: False when a successful operation was a no-op.
    """

    ok: bool
    value: T | None = None
    error: TaskLedgerError | None = None
    changed: bool = True

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: T | None = None, changed: bool = True) -> Outcome[T]:
        return cls(ok=True, value=value, changed=changed)

    @classmethod
    def failure(cls, error: TaskLedgerError) -> Outcome[T]:
        return cls(ok=False, error=error, changed=False)

    @property
    def is_validation_error(self) -> bool:
        return isinstance(self.error, ValidationError)

    @property
    def is_authorization_error(self) -> bool:
        return isinstance(self.error, AuthorizationError)

    @property
    def is_state_error(self) -> bool:
        return isinstance(self.error, StateError)

    @property
    def message(self) -> str:
        return str(self.error) if self.error is not None else ""

    def unwrap(self) -> T | None:
        """Return the payload, raising the carried error on failure."""
        if self.error is not None:
            raise self.error
        return self.value

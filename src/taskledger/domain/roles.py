"""Ranked user roles and the permission predicate built on them."""

from __future__ import annotations

import enum


class Role(enum.Enum):
    """Permission level of a user.

    States:
        EMPLOYEE: Works on tasks assigned to them.
        MANAGER: Assigns and reassigns work among employees and managers.
        ADMIN: Full authority over every entity.
    """

    EMPLOYEE = "EMPLOYEE"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def parse(cls, value: str | Role) -> Role:
        """Resolve a role from its name, case-insensitively.

        Raises:
            ValueError: If the value names no role.
        """
        if isinstance(value, Role):
            return value
        return cls(value.strip().upper())


_RANKS: dict[Role, int] = {
    Role.EMPLOYEE: 1,
    Role.MANAGER: 2,
    Role.ADMIN: 3,
}

_DISPLAY_NAMES: dict[Role, str] = {
    Role.EMPLOYEE: "Employee",
    Role.MANAGER: "Manager",
    Role.ADMIN: "Administrator",
}


def rank(role: Role) -> int:
    """Return the numeric rank of a role (higher outranks lower)."""
    return _RANKS[role]


def can_act_on(actor_role: Role, target_role: Role) -> bool:
    """Return True if a user holding actor_role may act on target_role's entities.

    Args:
        actor_role: Role of the acting user.
        target_role: Role of the user whose entity is affected.

    Returns:
        True when rank(actor_role) >= rank(target_role).
    """
    return rank(actor_role) >= rank(target_role)

"""User entity.

Users are never owned by another entity. Projects reference their creator
and tasks reference their assignee and assigner without owning them.
"""

from __future__ import annotations

import re
from datetime import datetime

from taskledger.domain.base import Entity
from taskledger.domain.results import Outcome
from taskledger.domain.roles import Role, can_act_on
from taskledger.domain.security import hash_password, is_password_hash, verify_password
from taskledger.exceptions import ValidationError

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]{3,20}$")
EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)+$")
MIN_PASSWORD_LENGTH = 6
MAX_FULL_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 100


def is_valid_username(username: str | None) -> bool:
    return username is not None and bool(USERNAME_PATTERN.match(username))


def is_valid_email(email: str | None) -> bool:
    return (
        email is not None
        and len(email) <= MAX_EMAIL_LENGTH
        and bool(EMAIL_PATTERN.match(email))
    )


class User(Entity):
    """A person who creates projects and works on tasks.

    Attributes:
        username: Unique login name, 3-20 characters of [A-Za-z0-9_].
        email: Unique contact address.
        full_name: Display name.
        role: Permission level.
        is_active: Inactive users keep their history but cannot be assigned work.
        password_hash: Salted PBKDF2 digest of the password.
    """

    def __init__(
        self,
        username: str,
        email: str,
        full_name: str,
        role: Role = Role.EMPLOYEE,
        password: str | None = None,
        password_hash: str | None = None,
        is_active: bool = True,
        id: int | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        super().__init__(id=id, created_at=created_at, updated_at=updated_at)
        self._username = username.strip() if username else username
        self._email = email.strip() if email else email
        self._full_name = full_name.strip() if full_name else full_name
        self._role = role
        self._is_active = is_active
        if password is not None:
            self._password_hash = hash_password(password)
        else:
            self._password_hash = password_hash or ""

    @property
    def username(self) -> str:
        return self._username

    @username.setter
    def username(self, value: str) -> None:
        self.ensure_mutable()
        self._username = value.strip()
        self.touch()

    @property
    def email(self) -> str:
        return self._email

    @email.setter
    def email(self, value: str) -> None:
        self.ensure_mutable()
        self._email = value.strip()
        self.touch()

    @property
    def full_name(self) -> str:
        return self._full_name

    @full_name.setter
    def full_name(self, value: str) -> None:
        self.ensure_mutable()
        self._full_name = value.strip()
        self.touch()

    @property
    def role(self) -> Role:
        return self._role

    @role.setter
    def role(self, value: Role) -> None:
        self.ensure_mutable()
        self._role = value
        self.touch()

    @property
    def is_active(self) -> bool:
        return self._is_active

    @is_active.setter
    def is_active(self, value: bool) -> None:
        self.ensure_mutable()
        self._is_active = value
        self.touch()

    @property
    def password_hash(self) -> str:
        return self._password_hash

    @property
    def display_name(self) -> str:
        return self._full_name or self._username

    @property
    def is_admin(self) -> bool:
        return self._role is Role.ADMIN

    @property
    def is_manager_or_above(self) -> bool:
        return self._role in (Role.MANAGER, Role.ADMIN)

    def set_password(self, password: str, min_length: int = MIN_PASSWORD_LENGTH) -> Outcome[None]:
        """Replace the stored digest with one for a new clear-text password."""
        if password is None or len(password) < min_length:
            return Outcome.failure(
                ValidationError(f"password must be at least {min_length} characters")
            )
        self.ensure_mutable()
        self._password_hash = hash_password(password)
        self.touch()
        return Outcome.success()

    def verify_password(self, password: str) -> bool:
        return verify_password(password, self._password_hash)

    def can_act_on(self, other: User | None) -> bool:
        """Return True if this user's rank reaches other's rank."""
        if other is None:
            return False
        return can_act_on(self._role, other.role)

    def validation_errors(self) -> list[str]:
        errors: list[str] = []
        if not is_valid_username(self._username):
            errors.append("username must be 3-20 letters, digits or underscores")
        if not self._password_hash:
            errors.append("password is required")
        elif not is_password_hash(self._password_hash):
            errors.append("password must be stored as a salted digest")
        if not is_valid_email(self._email):
            errors.append("email address is not valid")
        if not isinstance(self._role, Role):
            errors.append("role is required")
        if not self._full_name:
            errors.append("full name is required")
        elif len(self._full_name) > MAX_FULL_NAME_LENGTH:
            errors.append(f"full name must be at most {MAX_FULL_NAME_LENGTH} characters")
        return errors

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self._username!r} role={self._role.value}>"

"""Fixtures shared by the unit and integration suites."""

from __future__ import annotations

import pytest

from taskledger.domain.roles import Role
from taskledger.domain.security import DEFAULT_ROUNDS, configure_hashing
from taskledger.domain.user import User


@pytest.fixture(autouse=True, scope="session")
def fast_password_hashing():
    """Use the minimum PBKDF2 iteration count so tests stay quick."""
    configure_hashing(1000)
    yield
    configure_hashing(DEFAULT_ROUNDS)


def make_user(username: str, role: Role = Role.EMPLOYEE, user_id: int | None = None) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        full_name=username.title(),
        role=role,
        password="secret1",
    )
    if user_id is not None:
        user.assign_identity(user_id)
    return user


@pytest.fixture
def admin() -> User:
    return make_user("admin", Role.ADMIN, user_id=1)


@pytest.fixture
def manager() -> User:
    return make_user("maria", Role.MANAGER, user_id=2)


@pytest.fixture
def alice() -> User:
    return make_user("alice", Role.EMPLOYEE, user_id=3)


@pytest.fixture
def bob() -> User:
    return make_user("bob", Role.EMPLOYEE, user_id=4)


@pytest.fixture
def user_factory():
    """Return a callable building users with optional identities."""
    return make_user

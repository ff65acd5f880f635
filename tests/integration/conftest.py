"""Pytest fixtures for integration tests.

Provides database fixtures for testing the DAOs and services against an
in-memory SQLite database. A single static connection keeps the database
alive for the duration of one test; every test starts from an empty
schema.
"""

from __future__ import annotations

from typing import Iterator

import pytest

from taskledger.config import DatabaseConfig
from taskledger.database.connection import Database
from taskledger.database.dao import ProjectDAO, StatusHistoryDAO, TaskDAO, UserDAO
from taskledger.domain.roles import Role
from taskledger.domain.user import User
from taskledger.services import TaskLedgerService


@pytest.fixture
def database() -> Iterator[Database]:
    """Create an in-memory SQLite database with the full schema.

    Yields:
        Database handle whose engine is disposed after the test.
    """
    db = Database(DatabaseConfig(url="sqlite:///:memory:"))
    db.create_schema()
    yield db
    db.dispose()


@pytest.fixture
def history_dao(database: Database) -> StatusHistoryDAO:
    return StatusHistoryDAO(database)


@pytest.fixture
def user_dao(database: Database) -> UserDAO:
    return UserDAO(database)


@pytest.fixture
def project_dao(database: Database, user_dao: UserDAO, history_dao: StatusHistoryDAO) -> ProjectDAO:
    return ProjectDAO(database, user_dao, history_dao)


@pytest.fixture
def task_dao(
    database: Database,
    user_dao: UserDAO,
    project_dao: ProjectDAO,
    history_dao: StatusHistoryDAO,
) -> TaskDAO:
    return TaskDAO(database, user_dao, project_dao, history_dao)


@pytest.fixture
def service(database: Database) -> TaskLedgerService:
    return TaskLedgerService(database)


@pytest.fixture
def saved_users(user_dao: UserDAO) -> dict[str, User]:
    """Persist one user per role plus a second employee, keyed by username."""
    users = {}
    for username, role in (
        ("admin", Role.ADMIN),
        ("maria", Role.MANAGER),
        ("alice", Role.EMPLOYEE),
        ("bob", Role.EMPLOYEE),
    ):
        user = User(
            username=username,
            email=f"{username}@example.com",
            full_name=username.title(),
            role=role,
            password="secret1",
        )
        user_dao.save(user).unwrap()
        users[username] = user
    return users

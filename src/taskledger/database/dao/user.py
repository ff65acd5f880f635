"""User persistence and lookup queries."""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.engine import Connection, RowMapping

from taskledger.database.connection import Database
from taskledger.database.dao.base import DAO, EntityMapping
from taskledger.database.dao.support import as_utc, store_errors
from taskledger.database.tables import users
from taskledger.domain.roles import Role, can_act_on
from taskledger.domain.user import User

logger = structlog.get_logger(__name__)


def _user_from_row(conn: Connection, row: RowMapping) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        full_name=row["full_name"],
        role=Role(row["role"]),
        password_hash=row["password_hash"],
        is_active=bool(row["is_active"]),
        created_at=as_utc(row["created_at"]),
        updated_at=as_utc(row["updated_at"]),
    )


def _user_update_params(user: User) -> dict[str, Any]:
    return {
        "username": user.username,
        "password_hash": user.password_hash,
        "email": user.email,
        "full_name": user.full_name,
        "role": user.role.value,
        "is_active": user.is_active,
        "updated_at": user.updated_at,
    }


def _user_insert_params(user: User) -> dict[str, Any]:
    return {**_user_update_params(user), "created_at": user.created_at}


USER_MAPPING: EntityMapping[User] = EntityMapping(
    table=users,
    from_row=_user_from_row,
    insert_params=_user_insert_params,
    update_params=_user_update_params,
    default_order=(users.c.full_name.asc(), users.c.id.asc()),
)


class UserDAO(DAO[User]):
    """Stores users and answers login and role lookups."""

    def __init__(self, database: Database):
        super().__init__(database, USER_MAPPING)

    def find_by_username(self, username: str) -> User | None:
        return self._find_one_where(users.c.username == username)

    def find_by_email(self, email: str | None) -> User | None:
        if not email:
            return None
        return self._find_one_where(func.lower(users.c.email) == email.strip().lower())

    def find_by_role(self, role: Role) -> list[User]:
        return self._find_where(users.c.role == role.value, order_by=(users.c.full_name.asc(),))

    def find_active(self) -> list[User]:
        return self._find_where(users.c.is_active, order_by=(users.c.full_name.asc(),))

    def username_exists(self, username: str) -> bool:
        return self._count_where(users.c.username == username) > 0

    def email_exists(self, email: str | None) -> bool:
        if not email:
            return False
        return self._count_where(func.lower(users.c.email) == email.strip().lower()) > 0

    def authenticate(self, username: str, password: str) -> User | None:
        """Return the active user matching the credentials, or None.

        Unknown usernames, inactive accounts and wrong passwords are
        indistinguishable to the caller.
        """
        user = self.find_by_username(username)
        if user is None or not user.is_active or not user.verify_password(password):
            logger.info("authentication_failed", username=username)
            return None
        logger.info("authentication_succeeded", username=username, user_id=user.id)
        return user

    def assignable_users(self, assigner: User) -> list[User]:
        """Return active users whose work the assigner may hand out."""
        roles = [role.value for role in Role if can_act_on(assigner.role, role)]
        return self._find_where(
            users.c.is_active,
            users.c.role.in_(roles),
            order_by=(users.c.full_name.asc(),),
        )

    def role_counts(self) -> dict[Role, int]:
        """Number of users holding each role."""
        stmt = select(users.c.role, func.count()).group_by(users.c.role)
        with store_errors("select", users.name), self._db.connect() as conn:
            rows = conn.execute(stmt).all()
        counts = {role: 0 for role in Role}
        for role_value, count in rows:
            counts[Role(role_value)] = int(count)
        return counts

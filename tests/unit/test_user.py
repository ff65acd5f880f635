"""Unit tests for the User entity and password hashing."""

from __future__ import annotations

import pytest

from taskledger.domain.roles import Role
from taskledger.domain.security import hash_password, is_password_hash, verify_password
from taskledger.domain.user import User, is_valid_email, is_valid_username
from taskledger.exceptions import StateError


def build_user(**overrides) -> User:
    fields = {
        "username": "alice",
        "email": "alice@example.com",
        "full_name": "Alice Smith",
        "password": "secret1",
    }
    fields.update(overrides)
    return User(**fields)


class TestPasswordHashing:
    def test_digest_is_salted(self) -> None:
        first = hash_password("secret1")
        second = hash_password("secret1")
        assert first != second
        assert first.startswith("$pbkdf2-sha256$")
        assert verify_password("secret1", first)
        assert verify_password("secret1", second)

    def test_wrong_password_fails(self) -> None:
        assert not verify_password("secret2", hash_password("secret1"))

    def test_malformed_digest_never_verifies(self) -> None:
        assert not verify_password("secret1", "")
        assert not verify_password("secret1", "plain-text")
        assert not is_password_hash("plain-text")


class TestValidation:
    @pytest.mark.parametrize("username", ["abc", "alice_01", "A" * 20])
    def test_valid_usernames(self, username: str) -> None:
        assert is_valid_username(username)

    @pytest.mark.parametrize("username", ["ab", "A" * 21, "alice smith", "bob!", "", None])
    def test_invalid_usernames(self, username) -> None:
        assert not is_valid_username(username)

    @pytest.mark.parametrize("email", ["a@b.io", "first.last+tag@mail.example.com"])
    def test_valid_emails(self, email: str) -> None:
        assert is_valid_email(email)

    @pytest.mark.parametrize("email", ["alice", "alice@", "@example.com", "alice@example", None])
    def test_invalid_emails(self, email) -> None:
        assert not is_valid_email(email)

    def test_valid_user(self) -> None:
        user = build_user()
        assert user.is_valid()
        assert user.validation_errors() == []

    def test_reasons_are_reported(self) -> None:
        user = User(username="x", email="nope", full_name="", password_hash="")
        errors = user.validation_errors()
        assert not user.is_valid()
        assert len(errors) == 4
        assert any("username" in e for e in errors)
        assert any("password" in e for e in errors)
        assert any("email" in e for e in errors)
        assert any("full name" in e for e in errors)

    def test_clear_text_hash_is_rejected(self) -> None:
        user = build_user(password=None, password_hash="secret1")
        assert any("digest" in e for e in user.validation_errors())


class TestUser:
    def test_password_is_never_stored_in_clear(self) -> None:
        user = build_user()
        assert "secret1" not in user.password_hash
        assert user.verify_password("secret1")
        assert not user.verify_password("secret2")

    def test_set_password(self) -> None:
        user = build_user()
        before = user.password_hash
        assert user.set_password("another1")
        assert user.password_hash != before
        assert user.verify_password("another1")

    def test_set_password_rejects_short(self) -> None:
        user = build_user()
        outcome = user.set_password("abc")
        assert not outcome
        assert outcome.is_validation_error
        assert user.verify_password("secret1")

    def test_role_helpers(self) -> None:
        assert build_user(role=Role.ADMIN).is_admin
        assert build_user(role=Role.MANAGER).is_manager_or_above
        assert not build_user().is_manager_or_above

    def test_can_act_on(self) -> None:
        manager = build_user(username="maria", role=Role.MANAGER)
        employee = build_user(username="bob")
        assert manager.can_act_on(employee)
        assert not employee.can_act_on(manager)
        assert not employee.can_act_on(None)

    def test_setters_touch(self) -> None:
        user = build_user()
        before = user.updated_at
        user.full_name = "  Alice Jones "
        assert user.full_name == "Alice Jones"
        assert user.updated_at >= before

    def test_deleted_user_is_inert(self) -> None:
        user = build_user()
        user.mark_deleted()
        with pytest.raises(StateError):
            user.email = "new@example.com"

    def test_identity_is_assigned_once(self) -> None:
        user = build_user()
        assert not user.is_persisted
        user.assign_identity(7)
        user.assign_identity(7)
        assert user.id == 7
        with pytest.raises(StateError):
            user.assign_identity(8)

    def test_equality_by_identity(self) -> None:
        first = build_user()
        second = build_user()
        assert first != second
        first.assign_identity(3)
        second.assign_identity(3)
        assert first == second
        assert hash(first) == hash(second)
        assert first.display_name == "Alice Smith"

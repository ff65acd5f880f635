"""Password hashing utilities.

Passwords are stored only as salted, iterated PBKDF2-SHA256 digests in
passlib's modular crypt format; clear text is never persisted or compared.
"""

from __future__ import annotations

from passlib.context import CryptContext

DEFAULT_ROUNDS = 29000

pwd_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
    pbkdf2_sha256__default_rounds=DEFAULT_ROUNDS,
)


def configure_hashing(rounds: int) -> None:
    """Set the PBKDF2 iteration count used for new digests."""
    pwd_context.update(pbkdf2_sha256__default_rounds=rounds)


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2-SHA256 with a random salt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash.

    Malformed or unrecognized digests never verify.
    """
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def is_password_hash(value: str) -> bool:
    """Return True if value looks like a digest this context can verify."""
    return bool(value) and pwd_context.identify(value, required=False) is not None

"""Column conversion and store-error translation shared by the DAOs."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Iterator

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from taskledger.exceptions import IntegrityViolationError, PersistenceError

logger = structlog.get_logger(__name__)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes returned by stores that drop tzinfo."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def as_date(value: date | datetime | None) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    return value


@contextmanager
def store_errors(operation: str, table: str) -> Iterator[None]:
    """Translate SQLAlchemy failures into taskledger persistence errors."""
    try:
        yield
    except IntegrityError as e:
        logger.warning("integrity_violation", operation=operation, table=table, error=str(e.orig))
        raise IntegrityViolationError(f"{operation} on {table} violated a constraint: {e.orig}") from e
    except SQLAlchemyError as e:
        logger.error("store_failure", operation=operation, table=table, error=str(e))
        raise PersistenceError(f"{operation} on {table} failed: {e}") from e

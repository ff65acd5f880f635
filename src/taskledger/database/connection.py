"""Database connection management for taskledger.

A single ``Database`` object is built once at startup from
``DatabaseConfig`` and handed to every DAO. The engine (and with it the
connection pool) is created lazily on first use and shared by all DAOs.
All calls are synchronous and block on I/O.

Example usage:
    >>> from taskledger.config import DatabaseConfig
    >>> from taskledger.database.connection import Database
    >>>
    >>> db = Database(DatabaseConfig(url="sqlite:///ledger.db"))
    >>> db.create_schema()
    >>> with db.begin() as conn:
    ...     conn.execute(select(users))
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

import structlog
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import Connection
from sqlalchemy.engine.url import make_url
from sqlalchemy.pool import StaticPool

from taskledger.config import DatabaseConfig
from taskledger.database.tables import metadata

logger = structlog.get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine(config: DatabaseConfig) -> Engine:
    """Create a SQLAlchemy engine from database configuration.

    Server databases get a connection pool sized from pool_size and
    max_overflow. In-memory SQLite uses a single static connection so every
    DAO sees the same database; SQLite always has foreign keys enabled.

    Args:
        config: Database configuration containing URL, pool settings,
                and SQL echo preference.

    Returns:
        Configured Engine instance.
    """
    url = make_url(config.url)

    if url.get_backend_name() == "sqlite":
        if url.database in (None, "", ":memory:"):
            engine = create_engine(
                url,
                echo=config.echo,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            engine = create_engine(url, echo=config.echo)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        url,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        echo=config.echo,
    )


class Database:
    """Shared handle on the backing store, injected into every DAO.

    Attributes:
        config: Connection settings the engine is built from.
    """

    def __init__(self, config: DatabaseConfig, engine: Engine | None = None):
        self.config = config
        self._engine = engine

    @classmethod
    def from_url(cls, url: str, echo: bool = False) -> Database:
        return cls(DatabaseConfig(url=url, echo=echo))

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = get_engine(self.config)
            logger.debug("engine_created", backend=self._engine.dialect.name)
        return self._engine

    @contextmanager
    def begin(self) -> Iterator[Connection]:
        """Yield a connection inside a transaction committed on normal exit."""
        with self.engine.begin() as conn:
            yield conn

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Yield a connection for read-only work."""
        with self.engine.connect() as conn:
            yield conn

    def create_schema(self) -> None:
        """Create any missing tables."""
        metadata.create_all(self.engine)
        logger.info("schema_created", tables=sorted(metadata.tables))

    def drop_schema(self) -> None:
        metadata.drop_all(self.engine)

    def dispose(self) -> None:
        """Close pooled connections; the engine is rebuilt on next use."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

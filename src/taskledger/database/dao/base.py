"""Generic persistence contract shared by every entity type.

``DAO`` implements find/save/delete/count once. Each entity type plugs in
through an ``EntityMapping`` that supplies:

- table: the storage location
- from_row: row -> entity mapping (may load referenced entities through
  the same connection)
- insert_params / update_params: parameter binding for the insert and
  update statements built from the table

``save`` is the only place that decides between insert and update, based
on whether the entity already has an identity. Trackable entities also get
their pending status-history entries written in the same transaction.

Store failures are wrapped in PersistenceError and re-raised. Nothing is
retried; a failed statement rolls back its own transaction and leaves the
in-memory entity without a newly assigned identity.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Sequence, TypeVar

import structlog
from sqlalchemy import ColumnElement, Table, delete, func, insert, select, update
from sqlalchemy.engine import Connection, RowMapping
from sqlalchemy.sql import Select

from taskledger.database.connection import Database
from taskledger.database.dao.history import StatusHistoryDAO
from taskledger.database.dao.support import store_errors
from taskledger.domain.base import Entity
from taskledger.domain.capabilities import Trackable
from taskledger.domain.history import EntityType, StatusHistoryEntry
from taskledger.domain.results import Outcome
from taskledger.exceptions import EntityNotFoundError, StateError, ValidationError

logger = structlog.get_logger(__name__)

T = TypeVar("T", bound=Entity)


@dataclass(frozen=True)
class EntityMapping(Generic[T]):
    """Hooks that bind one entity type to its table.

    Attributes:
        table: Table the entity is stored in.
        from_row: Builds an entity from a row; receives the open connection
            so referenced entities can be loaded in the same unit of work.
        insert_params: Column values for inserting a new entity.
        update_params: Column values for updating an existing entity.
        history_type: Set for trackable entities whose status history is
            written to status_history on save.
        default_order: Ordering used by find_all; newest first when None.
    """

    table: Table
    from_row: Callable[[Connection, RowMapping], T]
    insert_params: Callable[[T], dict[str, Any]]
    update_params: Callable[[T], dict[str, Any]]
    history_type: EntityType | None = None
    default_order: Sequence[ColumnElement[Any]] | None = None


class DAO(Generic[T]):
    """Template find/save/delete implementation for one entity type.

    Subclasses pass their mapping to ``__init__`` and may add query methods
    built on ``_find_where``; they never override ``save``.
    """

    def __init__(
        self,
        database: Database,
        mapping: EntityMapping[T],
        history: StatusHistoryDAO | None = None,
    ):
        self._db = database
        self._mapping = mapping
        self._history = history
        self._table = mapping.table

    @property
    def table_name(self) -> str:
        return self._table.name

    # Reads

    def find_by_id(self, entity_id: int) -> T | None:
        """Return the entity with the given identity, or None."""
        with store_errors("find_by_id", self.table_name), self._db.connect() as conn:
            return self.load_by_id(conn, entity_id)

    def find_all(self) -> list[T]:
        """Return every entity, newest first unless the mapping says otherwise."""
        order = self._mapping.default_order or (self._table.c.created_at.desc(), self._table.c.id.desc())
        return self._find_where(order_by=order)

    def count(self) -> int:
        with store_errors("count", self.table_name), self._db.connect() as conn:
            stmt = select(func.count()).select_from(self._table)
            return int(conn.execute(stmt).scalar_one())

    def exists(self, entity_id: int) -> bool:
        with store_errors("exists", self.table_name), self._db.connect() as conn:
            stmt = select(self._table.c.id).where(self._table.c.id == entity_id)
            return conn.execute(stmt).first() is not None

    # Writes

    def save(self, entity: T) -> Outcome[T]:
        """Insert a new entity or update a persisted one.

        Returns:
            Successful outcome carrying the entity (now with an identity), or
            a failed outcome with a ValidationError/StateError when the
            entity was rejected before touching the store.

        Raises:
            EntityNotFoundError: If an update matched no row.
            IntegrityViolationError: If a store constraint was violated.
            PersistenceError: For any other store failure.
        """
        if entity is None:
            return Outcome.failure(ValidationError("nothing to save"))
        if entity.is_deleted:
            return Outcome.failure(StateError(f"{entity.label} has been deleted"))
        errors = entity.validation_errors()
        if errors:
            logger.info("save_rejected", table=self.table_name, entity=entity.label, reasons=errors)
            return Outcome.failure(ValidationError(errors))

        is_new = entity.id is None
        operation = "insert" if is_new else "update"
        with store_errors(operation, self.table_name), self._db.begin() as conn:
            if is_new:
                entity_id = self._insert(conn, entity)
            else:
                entity_id = self._update(conn, entity)
            stored_history = self._write_history(conn, entity, entity_id)

        # Identity and stored history are applied only once the transaction committed
        if is_new:
            entity.assign_identity(entity_id)
        if stored_history:
            entity.mark_history_stored(stored_history)  # type: ignore[attr-defined]

        logger.info(
            "entity_saved",
            table=self.table_name,
            entity_id=entity_id,
            operation=operation,
            history_written=len(stored_history),
        )
        return Outcome.success(entity)

    def delete_by_id(self, entity_id: int) -> bool:
        """Delete the row with the given identity.

        Returns:
            True if a row was deleted, False if none matched.
        """
        with store_errors("delete", self.table_name), self._db.begin() as conn:
            result = conn.execute(delete(self._table).where(self._table.c.id == entity_id))
        deleted = result.rowcount > 0
        if deleted:
            logger.info("entity_deleted", table=self.table_name, entity_id=entity_id)
        else:
            logger.warning("entity_not_found", table=self.table_name, entity_id=entity_id)
        return deleted

    def delete(self, entity: T) -> bool:
        """Delete a persisted entity and make the in-memory object inert."""
        if entity.id is None:
            return False
        deleted = self.delete_by_id(entity.id)
        if deleted:
            entity.mark_deleted()
        return deleted

    # Helpers for subclasses

    def load_by_id(self, conn: Connection, entity_id: int | None) -> T | None:
        """Load by identity on an open connection, for use inside another load."""
        if entity_id is None:
            return None
        row = conn.execute(
            select(self._table).where(self._table.c.id == entity_id)
        ).mappings().first()
        return self._mapping.from_row(conn, row) if row is not None else None

    def _find_where(
        self,
        *criteria: ColumnElement[bool],
        order_by: Sequence[ColumnElement[Any]] = (),
        limit: int | None = None,
    ) -> list[T]:
        stmt: Select[Any] = select(self._table)
        if criteria:
            stmt = stmt.where(*criteria)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        with store_errors("select", self.table_name), self._db.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
            return [self._mapping.from_row(conn, row) for row in rows]

    def _find_one_where(self, *criteria: ColumnElement[bool]) -> T | None:
        found = self._find_where(*criteria, limit=1)
        return found[0] if found else None

    def _count_where(self, *criteria: ColumnElement[bool]) -> int:
        stmt = select(func.count()).select_from(self._table).where(*criteria)
        with store_errors("count", self.table_name), self._db.connect() as conn:
            return int(conn.execute(stmt).scalar_one())

    def _load_history(self, conn: Connection, entity_id: int) -> list[StatusHistoryEntry]:
        if self._history is None or self._mapping.history_type is None:
            return []
        return self._history.load(conn, self._mapping.history_type, entity_id)

    # Template steps

    def _insert(self, conn: Connection, entity: T) -> int:
        params = self._mapping.insert_params(entity)
        result = conn.execute(insert(self._table).values(**params))
        return int(result.inserted_primary_key[0])

    def _update(self, conn: Connection, entity: T) -> int:
        assert entity.id is not None
        params = self._mapping.update_params(entity)
        result = conn.execute(
            update(self._table).where(self._table.c.id == entity.id).values(**params)
        )
        if result.rowcount == 0:
            raise EntityNotFoundError(self.table_name, entity.id)
        return entity.id

    def _write_history(self, conn: Connection, entity: T, entity_id: int) -> list[StatusHistoryEntry]:
        if self._history is None or self._mapping.history_type is None:
            return []
        if not isinstance(entity, Trackable):
            return []
        return [
            self._history.insert(conn, entry, entity_id)
            for entry in entity.pending_history()
        ]

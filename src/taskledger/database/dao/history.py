"""Append-only storage for status history entries.

Entries are only ever inserted and read; updating or deleting them is a
maintenance concern outside taskledger.
"""

from __future__ import annotations

import structlog
from sqlalchemy import insert, select
from sqlalchemy.engine import Connection, RowMapping

from taskledger.database.connection import Database
from taskledger.database.dao.support import as_utc, store_errors
from taskledger.database.tables import status_history
from taskledger.domain.history import EntityType, HistoryEvent, StatusHistoryEntry

logger = structlog.get_logger(__name__)


def _entry_from_row(row: RowMapping) -> StatusHistoryEntry:
    return StatusHistoryEntry(
        id=row["id"],
        entity_type=EntityType(row["entity_type"]),
        entity_id=row["entity_id"],
        event=HistoryEvent(row["event"]),
        old_status=row["old_status"],
        new_status=row["new_status"],
        actor_id=row["changed_by"],
        actor_name=row["actor_name"],
        changed_at=as_utc(row["changed_at"]),
        note=row["notes"],
    )


class StatusHistoryDAO:
    """Reads and appends rows of the status_history table."""

    def __init__(self, database: Database):
        self._db = database

    def insert(self, conn: Connection, entry: StatusHistoryEntry, entity_id: int) -> StatusHistoryEntry:
        """Write one entry for the given owner and return its stored copy."""
        result = conn.execute(
            insert(status_history).values(
                entity_type=entry.entity_type.value,
                entity_id=entity_id,
                event=entry.event.value,
                old_status=entry.old_status,
                new_status=entry.new_status,
                changed_by=entry.actor_id,
                actor_name=entry.actor_name,
                changed_at=entry.changed_at,
                notes=entry.note,
            )
        )
        return entry.stored_as(int(result.inserted_primary_key[0]), entity_id)

    def append(self, entry: StatusHistoryEntry, entity_id: int) -> StatusHistoryEntry:
        """Write one entry in its own transaction."""
        with store_errors("insert", status_history.name), self._db.begin() as conn:
            stored = self.insert(conn, entry, entity_id)
        logger.debug(
            "history_appended",
            entity_type=entry.entity_type.value,
            entity_id=entity_id,
            event=entry.event.value,
        )
        return stored

    def load(self, conn: Connection, entity_type: EntityType, entity_id: int) -> list[StatusHistoryEntry]:
        """Return an entity's history, oldest first."""
        stmt = (
            select(status_history)
            .where(
                status_history.c.entity_type == entity_type.value,
                status_history.c.entity_id == entity_id,
            )
            .order_by(status_history.c.changed_at.asc(), status_history.c.id.asc())
        )
        return [_entry_from_row(row) for row in conn.execute(stmt).mappings()]

    def for_entity(self, entity_type: EntityType, entity_id: int) -> list[StatusHistoryEntry]:
        with store_errors("select", status_history.name), self._db.connect() as conn:
            return self.load(conn, entity_type, entity_id)

    def recent(self, limit: int = 20, entity_type: EntityType | None = None) -> list[StatusHistoryEntry]:
        """Return the latest entries across all entities, newest first."""
        stmt = select(status_history)
        if entity_type is not None:
            stmt = stmt.where(status_history.c.entity_type == entity_type.value)
        stmt = stmt.order_by(status_history.c.changed_at.desc(), status_history.c.id.desc()).limit(limit)
        with store_errors("select", status_history.name), self._db.connect() as conn:
            return [_entry_from_row(row) for row in conn.execute(stmt).mappings()]

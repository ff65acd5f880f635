"""Database layer for taskledger.

This module handles the engine and connection lifecycle, the relational
schema, and the data access objects built on them.

Public API:
    Database: Shared handle on the store, injected into every DAO.
    get_engine: Create an Engine from DatabaseConfig.
    metadata: SQLAlchemy MetaData holding every table.
"""

from taskledger.database.connection import Database, get_engine
from taskledger.database.dao import (
    DAO,
    EntityMapping,
    ProjectDAO,
    StatusHistoryDAO,
    TaskCounts,
    TaskDAO,
    UserDAO,
)
from taskledger.database.tables import metadata, projects, status_history, tasks, users

__all__ = [
    "Database",
    "get_engine",
    "metadata",
    "users",
    "projects",
    "tasks",
    "status_history",
    "DAO",
    "EntityMapping",
    "UserDAO",
    "ProjectDAO",
    "TaskDAO",
    "StatusHistoryDAO",
    "TaskCounts",
]

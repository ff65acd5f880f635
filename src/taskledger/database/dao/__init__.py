"""Data access objects.

``DAO`` carries the generic find/save/delete contract; each concrete DAO
binds one entity type to its table and adds its own finders.
"""

from taskledger.database.dao.base import DAO, EntityMapping
from taskledger.database.dao.history import StatusHistoryDAO
from taskledger.database.dao.project import ProjectDAO
from taskledger.database.dao.statistics import TaskCounts
from taskledger.database.dao.task import TaskDAO
from taskledger.database.dao.user import UserDAO

__all__ = [
    "DAO",
    "EntityMapping",
    "StatusHistoryDAO",
    "UserDAO",
    "ProjectDAO",
    "TaskDAO",
    "TaskCounts",
]

"""Domain entities, roles and the status state machine.

Everything in this package is in-memory; persistence lives in
``taskledger.database``.
"""

from taskledger.domain.base import Entity
from taskledger.domain.capabilities import Assignable, Trackable
from taskledger.domain.history import EntityType, HistoryEvent, StatusHistoryEntry
from taskledger.domain.project import Project
from taskledger.domain.results import Outcome
from taskledger.domain.roles import Role, can_act_on, rank
from taskledger.domain.state_machine import PROJECT_POLICY, TASK_POLICY, StatusLog, TransitionPolicy
from taskledger.domain.statuses import Priority, ProjectStatus, TaskStatus
from taskledger.domain.task import Task
from taskledger.domain.user import User

__all__ = [
    "Entity",
    "Trackable",
    "Assignable",
    "EntityType",
    "HistoryEvent",
    "StatusHistoryEntry",
    "Outcome",
    "Role",
    "rank",
    "can_act_on",
    "TransitionPolicy",
    "StatusLog",
    "TASK_POLICY",
    "PROJECT_POLICY",
    "Priority",
    "ProjectStatus",
    "TaskStatus",
    "User",
    "Project",
    "Task",
]

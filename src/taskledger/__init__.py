"""taskledger - role-aware project and task tracking.

This package provides users with ranked roles, projects and tasks whose
statuses follow explicit transition tables with an append-only history,
and a synchronous persistence layer over SQLAlchemy Core.
"""

__version__ = "0.1.0"

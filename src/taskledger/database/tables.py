"""Relational schema targeted by the DAOs.

Defines the users, projects, tasks and status_history tables with
SQLAlchemy Core. Enum-valued columns hold the enum value as text so the
schema stays portable between SQLite and PostgreSQL; the DAO mapping hooks
convert in both directions.

Referential policy:
    projects.creator_id -> users.id         ON DELETE RESTRICT
    tasks.project_id -> projects.id         ON DELETE CASCADE
    tasks.assigned_user_id -> users.id      ON DELETE SET NULL
    tasks.assigner_id -> users.id           ON DELETE SET NULL
    status_history.changed_by -> users.id   ON DELETE SET NULL
"""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(50), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("email", String(100), nullable=False, unique=True),
    Column("full_name", String(100), nullable=False),
    Column("role", String(20), nullable=False, default="EMPLOYEE"),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Index("idx_users_role", "role"),
)

projects = Table(
    "projects",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False),
    Column("description", Text, nullable=True),
    Column("status", String(20), nullable=False, default="PLANNING"),
    Column("priority", String(20), nullable=False, default="MEDIUM"),
    Column("start_date", Date, nullable=True),
    Column("end_date", Date, nullable=True),
    Column(
        "creator_id",
        Integer,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Index("idx_projects_name", "name"),
    Index("idx_projects_status", "status"),
    Index("idx_projects_creator", "creator_id"),
)

tasks = Table(
    "tasks",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(200), nullable=False),
    Column("description", Text, nullable=True),
    Column("status", String(20), nullable=False, default="TODO"),
    Column("priority", String(20), nullable=False, default="MEDIUM"),
    Column(
        "project_id",
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=True,
    ),
    Column(
        "assigned_user_id",
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column(
        "assigner_id",
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("due_date", Date, nullable=True),
    Column("completed_at", DateTime(timezone=True), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Index("idx_tasks_status", "status"),
    Index("idx_tasks_project", "project_id"),
    Index("idx_tasks_assigned_user", "assigned_user_id"),
    Index("idx_tasks_due_date", "due_date"),
)

status_history = Table(
    "status_history",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("entity_type", String(20), nullable=False),
    Column("entity_id", Integer, nullable=False),
    Column("event", String(20), nullable=False),
    Column("old_status", String(50), nullable=True),
    Column("new_status", String(50), nullable=False),
    Column(
        "changed_by",
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("actor_name", String(50), nullable=True),
    Column("changed_at", DateTime(timezone=True), nullable=False),
    Column("notes", Text, nullable=True),
    Index("idx_status_history_entity", "entity_type", "entity_id"),
    Index("idx_status_history_changed_at", "changed_at"),
)

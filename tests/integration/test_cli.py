"""Integration tests for CLI commands.

This module tests the Typer-based CLI interface including the db, user,
project and task commands against an in-memory database.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterator

import pytest
from typer.testing import CliRunner

from taskledger.config import DatabaseConfig, TaskLedgerConfig
from taskledger.database.connection import Database
from taskledger.domain.roles import Role
from taskledger.domain.statuses import ProjectStatus, TaskStatus
from taskledger.main import AppContext, app, initialize_context, reset_context


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Typer CLI runner.

    Returns:
        CliRunner instance for invoking CLI commands
    """
    return CliRunner()


@pytest.fixture
def cli_context(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[AppContext]:
    """Initialize the CLI application context on an in-memory database.

    Logging is kept at ERROR so JSON output is not interleaved with events,
    and the working directory is isolated from developer config files.

    Yields:
        Initialized application context
    """
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("TASKLEDGER_LOGGING__LEVEL", "ERROR")
    monkeypatch.setenv("TASKLEDGER_SECURITY__PBKDF2_ROUNDS", "1000")

    database = Database(DatabaseConfig(url="sqlite:///:memory:"))
    database.create_schema()
    ctx = initialize_context(TaskLedgerConfig(), database=database)
    yield ctx
    reset_context()


@pytest.fixture
def team(cli_context: AppContext) -> AppContext:
    """Seed one manager and two employees."""
    service = cli_context.service
    admin = service.register_user("admin", "admin@example.com", "Admin", "secret1", role=Role.ADMIN).unwrap()
    service.register_user(
        "maria", "maria@example.com", "Maria Manager", "secret1", role=Role.MANAGER, actor=admin
    ).unwrap()
    service.register_user("alice", "alice@example.com", "Alice Smith", "secret1").unwrap()
    service.register_user("bob", "bob@example.com", "Bob Jones", "secret1").unwrap()
    return cli_context


@pytest.mark.integration
class TestDbCLI:
    def test_init_is_idempotent(self, cli_runner: CliRunner, cli_context: AppContext) -> None:
        result = cli_runner.invoke(app, ["db", "init"])
        assert result.exit_code == 0
        assert "Schema ready" in result.output
        assert "status_history" in result.output

    def test_reset_drops_existing_rows(self, cli_runner: CliRunner, team: AppContext) -> None:
        result = cli_runner.invoke(app, ["db", "init", "--reset"])
        assert result.exit_code == 0
        assert team.service.users.count() == 0


@pytest.mark.integration
class TestUserCLI:
    def test_add_first_user_as_admin(self, cli_runner: CliRunner, cli_context: AppContext) -> None:
        result = cli_runner.invoke(
            app,
            ["user", "add", "root", "root@example.com", "Root User", "--password", "secret1", "--role", "admin"],
        )

        assert result.exit_code == 0
        assert "User registered successfully" in result.output
        assert "Administrator" in result.output
        user = cli_context.service.users.find_by_username("root")
        assert user.role is Role.ADMIN
        assert user.verify_password("secret1")

    def test_add_manager_requires_actor(self, cli_runner: CliRunner, team: AppContext) -> None:
        args = ["user", "add", "carol", "carol@example.com", "Carol", "-p", "secret1", "-r", "manager"]

        denied = cli_runner.invoke(app, args)
        assert denied.exit_code == 1
        assert "Not permitted" in denied.output

        allowed = cli_runner.invoke(app, [*args, "--as", "admin"])
        assert allowed.exit_code == 0
        assert team.service.users.find_by_username("carol").role is Role.MANAGER

    def test_add_duplicate_username(self, cli_runner: CliRunner, team: AppContext) -> None:
        result = cli_runner.invoke(
            app, ["user", "add", "alice", "other@example.com", "Alice Two", "-p", "secret1"]
        )
        assert result.exit_code == 1
        assert "Invalid input" in result.output
        assert "already taken" in result.output

    def test_add_invalid_role(self, cli_runner: CliRunner, cli_context: AppContext) -> None:
        result = cli_runner.invoke(
            app, ["user", "add", "carol", "carol@example.com", "Carol", "-p", "secret1", "-r", "owner"]
        )
        assert result.exit_code == 1
        assert "Invalid role" in result.output

    def test_list_json(self, cli_runner: CliRunner, team: AppContext) -> None:
        result = cli_runner.invoke(app, ["user", "list", "--role", "employee", "--format", "json"])

        assert result.exit_code == 0
        users = json.loads(result.stdout)
        assert [u["username"] for u in users] == ["alice", "bob"]
        assert all(u["role"] == "EMPLOYEE" for u in users)

    def test_list_active_only(self, cli_runner: CliRunner, team: AppContext) -> None:
        bob = team.service.require_user("bob")
        bob.is_active = False
        team.service.users.save(bob).unwrap()

        result = cli_runner.invoke(app, ["user", "list", "--active", "--format", "json"])

        assert result.exit_code == 0
        names = [u["username"] for u in json.loads(result.stdout)]
        assert "bob" not in names
        assert "alice" in names

    def test_project_name_with_brackets_in_json(self, cli_runner: CliRunner, team: AppContext) -> None:
        cli_runner.invoke(app, ["project", "create", "[Q3] Website", "--as", "maria"])
        result = cli_runner.invoke(app, ["project", "list", "--format", "json"])
        assert [p["name"] for p in json.loads(result.stdout)] == ["[Q3] Website"]

    def test_list_empty(self, cli_runner: CliRunner, cli_context: AppContext) -> None:
        result = cli_runner.invoke(app, ["user", "list"])
        assert result.exit_code == 0
        assert "No users found" in result.output


@pytest.mark.integration
class TestProjectCLI:
    def test_create(self, cli_runner: CliRunner, team: AppContext) -> None:
        result = cli_runner.invoke(
            app,
            [
                "project",
                "create",
                "Website",
                "--as",
                "maria",
                "--priority",
                "high",
                "--start",
                "2030-01-01",
                "--end",
                "2030-03-31",
            ],
        )

        assert result.exit_code == 0
        assert "Project created successfully" in result.output
        project = team.service.projects.find_by_name("Website")
        assert project.creator.username == "maria"
        assert project.end_date.isoformat() == "2030-03-31"

    def test_create_unknown_actor(self, cli_runner: CliRunner, team: AppContext) -> None:
        result = cli_runner.invoke(app, ["project", "create", "Website", "--as", "nobody"])
        assert result.exit_code == 1
        assert "Unknown user" in result.output
        assert team.service.projects.count() == 0

    def test_create_requires_actor(self, cli_runner: CliRunner, team: AppContext) -> None:
        result = cli_runner.invoke(app, ["project", "create", "Website"])
        assert result.exit_code != 0

    def test_status_flow(self, cli_runner: CliRunner, team: AppContext) -> None:
        cli_runner.invoke(app, ["project", "create", "Website", "--as", "maria"])
        project_id = str(team.service.projects.find_by_name("Website").id)

        moved = cli_runner.invoke(app, ["project", "status", project_id, "active", "--as", "maria"])
        assert moved.exit_code == 0
        assert "PLANNING -> ACTIVE" in moved.output

        again = cli_runner.invoke(app, ["project", "status", project_id, "ACTIVE", "--as", "maria"])
        assert again.exit_code == 0
        assert "already ACTIVE" in again.output

        denied = cli_runner.invoke(app, ["project", "status", project_id, "completed", "--as", "bob"])
        assert denied.exit_code == 1
        assert "Not permitted" in denied.output

        illegal = cli_runner.invoke(app, ["project", "status", project_id, "planning", "--as", "maria"])
        assert illegal.exit_code == 1
        assert "Rejected" in illegal.output

        assert team.service.require_project(int(project_id)).status is ProjectStatus.ACTIVE

    def test_list_filters(self, cli_runner: CliRunner, team: AppContext) -> None:
        cli_runner.invoke(app, ["project", "create", "Website", "--as", "maria"])
        cli_runner.invoke(app, ["project", "create", "Archive", "--as", "maria"])
        archive_id = str(team.service.projects.find_by_name("Archive").id)
        cli_runner.invoke(app, ["project", "status", archive_id, "cancelled", "--as", "maria"])

        active = cli_runner.invoke(app, ["project", "list", "--active", "--format", "json"])
        assert [p["name"] for p in json.loads(active.stdout)] == ["Website"]

        cancelled = cli_runner.invoke(app, ["project", "list", "--status", "cancelled", "--format", "json"])
        assert [p["name"] for p in json.loads(cancelled.stdout)] == ["Archive"]

        invalid = cli_runner.invoke(app, ["project", "list", "--status", "finished"])
        assert invalid.exit_code == 1
        assert "Invalid status" in invalid.output

    def test_show_and_history(self, cli_runner: CliRunner, team: AppContext) -> None:
        cli_runner.invoke(app, ["project", "create", "Website", "--as", "maria"])
        project_id = str(team.service.projects.find_by_name("Website").id)
        cli_runner.invoke(app, ["task", "create", "Copy", "--as", "maria", "--project", project_id])
        cli_runner.invoke(app, ["project", "status", project_id, "active", "--as", "maria", "--note", "go"])

        shown = cli_runner.invoke(app, ["project", "show", project_id])
        assert shown.exit_code == 0
        assert "Website" in shown.output
        assert "1 todo" in shown.output

        history = cli_runner.invoke(app, ["project", "history", project_id])
        assert history.exit_code == 0
        assert "CREATED" in history.output
        assert "STATUS_CHANGED" in history.output

    def test_show_unknown_project(self, cli_runner: CliRunner, team: AppContext) -> None:
        result = cli_runner.invoke(app, ["project", "show", "999"])
        assert result.exit_code == 1
        assert "Error loading project" in result.output


@pytest.mark.integration
class TestTaskCLI:
    @pytest.fixture
    def project_id(self, cli_runner: CliRunner, team: AppContext) -> str:
        cli_runner.invoke(app, ["project", "create", "Website", "--as", "maria"])
        return str(team.service.projects.find_by_name("Website").id)

    def test_create_with_project_and_assignee(
        self, cli_runner: CliRunner, team: AppContext, project_id: str
    ) -> None:
        result = cli_runner.invoke(
            app,
            [
                "task",
                "create",
                "Write copy",
                "--as",
                "maria",
                "--project",
                project_id,
                "--assignee",
                "alice",
                "--due",
                "2030-05-01",
                "--priority",
                "urgent",
            ],
        )

        assert result.exit_code == 0
        assert "Task created successfully" in result.output
        task = team.service.tasks.search_by_title("write copy")[0]
        assert task.assigned_user.username == "alice"
        assert task.project.name == "Website"
        assert task.due_date.isoformat() == "2030-05-01"

    def test_create_in_foreign_project_is_denied(
        self, cli_runner: CliRunner, team: AppContext, project_id: str
    ) -> None:
        result = cli_runner.invoke(app, ["task", "create", "Sneaky", "--as", "alice", "-P", project_id])
        assert result.exit_code == 1
        assert "Not permitted" in result.output
        assert team.service.tasks.count() == 0

    def test_status_assign_unassign(self, cli_runner: CliRunner, team: AppContext) -> None:
        cli_runner.invoke(app, ["task", "create", "Fix bug", "--as", "maria"])
        task_id = str(team.service.tasks.search_by_title("fix bug")[0].id)

        denied = cli_runner.invoke(app, ["task", "status", task_id, "in_progress", "--as", "bob"])
        assert denied.exit_code == 1

        assigned = cli_runner.invoke(app, ["task", "assign", task_id, "bob", "--as", "alice"])
        assert assigned.exit_code == 0
        assert "assigned to bob" in assigned.output

        started = cli_runner.invoke(app, ["task", "status", task_id, "in progress", "--as", "bob"])
        assert started.exit_code == 0
        assert "TODO -> IN_PROGRESS" in started.output

        not_yours = cli_runner.invoke(app, ["task", "unassign", task_id, "--as", "alice"])
        assert not_yours.exit_code == 1
        assert "Not permitted" in not_yours.output

        released = cli_runner.invoke(app, ["task", "unassign", task_id, "--as", "maria"])
        assert released.exit_code == 0

        task = team.service.require_task(int(task_id))
        assert task.status is TaskStatus.IN_PROGRESS
        assert task.assigned_user is None

        history = cli_runner.invoke(app, ["task", "history", task_id])
        for event in ("CREATED", "ASSIGNED", "STATUS_CHANGED", "UNASSIGNED"):
            assert event in history.output

    def test_done_task_cannot_restart(self, cli_runner: CliRunner, team: AppContext) -> None:
        cli_runner.invoke(app, ["task", "create", "Ship", "--as", "maria"])
        task_id = str(team.service.tasks.search_by_title("ship")[0].id)
        for target in ("in_progress", "done"):
            assert cli_runner.invoke(app, ["task", "status", task_id, target, "--as", "maria"]).exit_code == 0

        result = cli_runner.invoke(app, ["task", "status", task_id, "in_progress", "--as", "maria"])

        assert result.exit_code == 1
        assert "Rejected" in result.output
        assert team.service.require_task(int(task_id)).status is TaskStatus.DONE

    def test_list_json_and_filters(
        self, cli_runner: CliRunner, team: AppContext, project_id: str
    ) -> None:
        cli_runner.invoke(app, ["task", "create", "Low one", "--as", "maria", "-P", project_id, "-p", "low"])
        cli_runner.invoke(app, ["task", "create", "Urgent one", "--as", "maria", "-P", project_id, "-p", "urgent"])
        cli_runner.invoke(app, ["task", "create", "Late one", "--as", "maria", "--due", "2000-01-01", "-a", "bob"])

        by_project = cli_runner.invoke(app, ["task", "list", "--project", project_id, "--format", "json"])
        assert [t["title"] for t in json.loads(by_project.stdout)] == ["Urgent one", "Low one"]

        overdue = cli_runner.invoke(app, ["task", "list", "--overdue", "--format", "json"])
        late = json.loads(overdue.stdout)
        assert [t["title"] for t in late] == ["Late one"]
        assert late[0]["assignee"] == "bob"

        unassigned = cli_runner.invoke(app, ["task", "list", "--unassigned", "--format", "json"])
        assert {t["title"] for t in json.loads(unassigned.stdout)} == {"Urgent one", "Low one"}

        table = cli_runner.invoke(app, ["task", "list"])
        assert table.exit_code == 0
        assert "Urgent one" in table.output

    def test_json_keeps_brackets_and_long_titles(self, cli_runner: CliRunner, team: AppContext) -> None:
        bracketed = "Fix [urgent] login"
        long_title = "Migrate " + "legacy reporting module " * 3 + "to the new ledger export format"
        for title in (bracketed, long_title):
            created = cli_runner.invoke(app, ["task", "create", title, "--as", "maria"])
            assert created.exit_code == 0
        assert len(long_title) > 80

        result = cli_runner.invoke(app, ["task", "list", "--format", "json"])

        assert result.exit_code == 0
        assert {t["title"] for t in json.loads(result.stdout)} == {bracketed, long_title}

    def test_table_keeps_brackets(self, cli_runner: CliRunner, team: AppContext) -> None:
        cli_runner.invoke(app, ["task", "create", "Fix [urgent] login", "--as", "maria"])
        result = cli_runner.invoke(app, ["task", "list"])
        assert result.exit_code == 0
        assert "[urgent]" in result.output

    def test_list_empty(self, cli_runner: CliRunner, team: AppContext) -> None:
        result = cli_runner.invoke(app, ["task", "list"])
        assert result.exit_code == 0
        assert "No tasks found" in result.output

    def test_stats(self, cli_runner: CliRunner, team: AppContext) -> None:
        cli_runner.invoke(app, ["task", "create", "One", "--as", "maria", "-a", "alice"])
        cli_runner.invoke(app, ["task", "create", "Two", "--as", "maria"])

        overall = cli_runner.invoke(app, ["task", "stats"])
        assert overall.exit_code == 0
        assert "All tasks" in overall.output
        assert "Completion: 0%" in overall.output

        mine = cli_runner.invoke(app, ["task", "stats", "--assignee", "alice"])
        assert mine.exit_code == 0
        assert "Tasks of alice" in mine.output

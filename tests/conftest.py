# ---------- tests/conftest.py ----------
import json

import pytest
from click.testing import CliRunner
from datetime import datetime, timedelta, timezone

from todo_cli.main import cli
from todo_core.database import init_db
from todo_core.models import Priority
from todo_core.repository import UserRepository, TodoRepository
from todo_core.schemas import TodoCreate
from todo_core.security import SessionManager


class FakeClock:
    """Callable clock the tests can move forward."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep every test away from the real ~/.todo_cli and .env settings."""
    monkeypatch.setenv("TODO_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("TODO_SECRET_KEY", "test-secret-key")


@pytest.fixture(name="clock")
def clock_fixture():
    return FakeClock(datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc))


@pytest.fixture(name="db")
def db_fixture(tmp_path):
    return init_db(tmp_path / "store")


@pytest.fixture(name="user_repo")
def user_repo_fixture(db, clock):
    return UserRepository(db, clock)


@pytest.fixture(name="todo_repo")
def todo_repo_fixture(db, clock):
    return TodoRepository(db, clock=clock)


@pytest.fixture(name="session_manager")
def session_manager_fixture(db, user_repo, clock):
    return SessionManager(db, user_repo, clock)


@pytest.fixture(name="test_user")
def test_user_fixture(user_repo):
    """Register alice."""
    return user_repo.create("alice", "secret123", "alice@example.com")


@pytest.fixture(name="other_user")
def other_user_fixture(user_repo):
    """Register bob."""
    return user_repo.create("bob", "hunter22")


@pytest.fixture(name="session")
def session_fixture(session_manager, test_user):
    """Alice's session."""
    return session_manager.login("alice", "secret123")


@pytest.fixture(name="other_session")
def other_session_fixture(session_manager, other_user):
    """Bob's session. It replaces alice's on disk; the repositories only need the value."""
    return session_manager.start_session(other_user.username)


@pytest.fixture(name="test_todo")
def test_todo_fixture(todo_repo, session):
    """A pending todo owned by alice."""
    todo_create = TodoCreate(
        title="Test Todo",
        description="This is a test todo",
        priority=Priority.HIGH,
    )
    return todo_repo.create(session, todo_create)


@pytest.fixture(name="runner")
def runner_fixture():
    return CliRunner()


@pytest.fixture(name="data_dir")
def data_dir_fixture(tmp_path):
    """The directory the CLI uses, via TODO_DATA_DIR."""
    return tmp_path / "data"


@pytest.fixture(name="logged_in")
def logged_in_fixture(runner):
    """Register and log in alice through the CLI."""
    result = runner.invoke(cli, ["register", "-u", "alice", "-p", "secret123"])
    assert result.exit_code == 0, result.output
    result = runner.invoke(cli, ["login", "-u", "alice", "-p", "secret123"])
    assert result.exit_code == 0, result.output


@pytest.fixture(name="stored_todos")
def stored_todos_fixture(data_dir):
    """Read todos.json as the CLI left it."""
    def read():
        path = data_dir / "todos.json"
        return json.loads(path.read_text()) if path.exists() else []
    return read

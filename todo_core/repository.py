from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Generator, Generic, List, Optional, Type, TypeVar

from pydantic import ValidationError

from logger import logger
from .database import Database, JsonFile
from .errors import (
    DuplicateUserError, ExportError, InvalidCredentialsError, InvalidInputError, StorageError,
    TodoNotFoundError,
)
from .exporter import MarkdownExporter
from .models import Priority, Session, Status, Todo, User, utcnow
from .schemas import TodoCreate, TodoUpdate, UserCreate, parse_input
from .security import get_password_hash, get_salt, pwd_context

# Generic type variable
T = TypeVar('T')

# Shortest id prefix accepted in place of a full id
MIN_ID_PREFIX = 4


class BaseRepository(Generic[T]):
    """Generic repository over one JSON file holding a list of records."""

    def __init__(self, file: JsonFile, model_class: Type[T], clock: Callable[[], datetime] = utcnow):
        self.file = file
        self.model_class = model_class
        self.clock = clock

    def _parse(self, rows) -> List[T]:
        if not isinstance(rows, list):
            raise StorageError(f"Malformed records in {self.file.path}: expected a list")
        try:
            return [self.model_class.model_validate(row) for row in rows]
        except (TypeError, ValidationError) as e:
            raise StorageError(f"Malformed records in {self.file.path}: {e}") from e

    def get_all(self) -> List[T]:
        """Load every record, in stored order."""
        return self._parse(self.file.load())

    @contextmanager
    def transaction(self) -> Generator[List[T], None, None]:
        """Yield the full collection; it is written back only if the block succeeds."""
        with self.file.transaction() as rows:
            items = self._parse(rows)
            yield items
            rows[:] = [item.model_dump(mode="json") for item in items]


class UserRepository(BaseRepository[User]):
    """Credential store: user records and password checks."""

    def __init__(self, db: Database, clock: Callable[[], datetime] = utcnow):
        super().__init__(db.users, User, clock)

    def get_by_username(self, username: str) -> Optional[User]:
        """Get a user by username."""
        return next((u for u in self.get_all() if u.username == username), None)

    def create(self, username: str, password: str, email: Optional[str] = None) -> User:
        """Register a new user."""
        user_create = parse_input(UserCreate, username=username, password=password, email=email)

        with self.transaction() as users:
            if any(u.username == user_create.username for u in users):
                raise DuplicateUserError(f"User {user_create.username} already exists")
            if user_create.email and any(u.email == user_create.email for u in users):
                raise DuplicateUserError(f"User with email {user_create.email} already exists")

            password_hash = get_password_hash(user_create.password)
            db_user = User(
                **user_create.model_dump(exclude={"password"}),
                password_hash=password_hash,
                salt=get_salt(password_hash),
                created_at=self.clock(),
            )
            users.append(db_user)

        logger.info(f"Registered user: {db_user.username}")
        return db_user

    def authenticate(self, username: str, password: str) -> User:
        """Return the user if the password matches, without revealing which part was wrong."""
        username = username.strip()
        user = self.get_by_username(username)
        if not user:
            # Spend the same hashing time as a real check
            pwd_context.dummy_verify()
        if not user or not user.verify_password(password):
            logger.warning(f"Failed login attempt for user: {username}")
            raise InvalidCredentialsError()
        logger.info(f"Successful login for user: {username}")
        return user


class TodoRepository(BaseRepository[Todo]):
    """
    Todo store. Holds every user's todos in one file; each operation takes
    the acting session and only ever sees that user's records.
    """

    def __init__(
            self,
            db: Database,
            exporter: Optional[MarkdownExporter] = None,
            clock: Callable[[], datetime] = utcnow,
    ):
        super().__init__(db.todos, Todo, clock)
        self.exporter = exporter if exporter is not None else MarkdownExporter(db.export_path)
        self.last_export_error: Optional[ExportError] = None

    def _export(self, todos: List[Todo]) -> None:
        """Regenerate the markdown file. Failures are recorded, never raised."""
        self.last_export_error = None
        try:
            self.exporter.export(todos, self.clock())
        except ExportError as e:
            logger.warning(f"Markdown export failed: {e}")
            self.last_export_error = e

    @staticmethod
    def _find(todos: List[Todo], todo_id: str, owner: str) -> Todo:
        owned = [t for t in todos if t.owner_username == owner]
        for todo in owned:
            if todo.id == todo_id:
                return todo

        if len(todo_id) >= MIN_ID_PREFIX:
            matches = [t for t in owned if t.id.startswith(todo_id)]
            if len(matches) == 1:
                return matches[0]
            if len(matches) > 1:
                raise InvalidInputError(f"Id prefix {todo_id} matches {len(matches)} todos")
        raise TodoNotFoundError(todo_id)

    def get_by_owner(
            self,
            session: Session,
            status: Optional[Status] = None,
            priority: Optional[Priority] = None,
    ) -> List[Todo]:
        """Todos owned by the session user, in creation order, optionally filtered."""
        return [
            todo for todo in self.get_all()
            if todo.owner_username == session.username
            and (status is None or todo.status == status)
            and (priority is None or todo.priority == priority)
        ]

    def get_user_todo(self, session: Session, todo_id: str) -> Todo:
        """Get a specific todo owned by the session user, by id or unique id prefix."""
        return self._find(self.get_all(), todo_id, session.username)

    def create(self, session: Session, todo_create: TodoCreate) -> Todo:
        """Create a new todo for the session user."""
        now = self.clock()
        db_todo = Todo(
            **todo_create.model_dump(),
            owner_username=session.username,
            created_at=now,
            updated_at=now,
        )
        with self.transaction() as todos:
            todos.append(db_todo)
            snapshot = list(todos)

        logger.info(f"Created todo {db_todo.short_id} for {session.username}")
        self._export(snapshot)
        return db_todo

    def update(self, session: Session, todo_id: str, todo_update: TodoUpdate) -> Todo:
        """Apply the fields set on todo_update to a todo owned by the session user."""
        update_data = todo_update.model_dump(exclude_unset=True)
        # These fields cannot be cleared, only replaced
        for key in ("title", "priority", "status"):
            if key in update_data and update_data[key] is None:
                raise InvalidInputError(f"{key.capitalize()} cannot be empty")

        now = self.clock()
        with self.transaction() as todos:
            db_todo = self._find(todos, todo_id, session.username)
            for key, value in update_data.items():
                setattr(db_todo, key, value)

            if "status" in update_data:
                if db_todo.status == Status.COMPLETED and db_todo.completed_at is None:
                    db_todo.completed_at = now
                elif db_todo.status == Status.PENDING:
                    db_todo.completed_at = None
            db_todo.updated_at = now
            snapshot = list(todos)

        logger.info(f"Updated todo {db_todo.short_id} for {session.username}")
        self._export(snapshot)
        return db_todo

    def complete(self, session: Session, todo_id: str) -> Todo:
        """Mark a todo completed. Completing an already completed todo changes nothing."""
        db_todo = self.get_user_todo(session, todo_id)
        if db_todo.status == Status.COMPLETED:
            return db_todo

        now = self.clock()
        with self.transaction() as todos:
            db_todo = self._find(todos, db_todo.id, session.username)
            db_todo.status = Status.COMPLETED
            db_todo.completed_at = now
            db_todo.updated_at = now
            snapshot = list(todos)

        logger.info(f"Completed todo {db_todo.short_id} for {session.username}")
        self._export(snapshot)
        return db_todo

    def delete_user_todo(self, session: Session, todo_id: str) -> Todo:
        """Delete a todo owned by the session user and return it."""
        with self.transaction() as todos:
            db_todo = self._find(todos, todo_id, session.username)
            todos.remove(db_todo)
            snapshot = list(todos)

        logger.info(f"Deleted todo {db_todo.short_id} for {session.username}")
        self._export(snapshot)
        return db_todo

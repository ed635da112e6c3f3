import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel

from .errors import InvalidInputError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, value: str) -> "Priority":
        aliases = {
            "low": cls.LOW, "l": cls.LOW,
            "medium": cls.MEDIUM, "med": cls.MEDIUM, "m": cls.MEDIUM,
            "high": cls.HIGH, "h": cls.HIGH,
        }
        try:
            return aliases[value.strip().lower()]
        except KeyError:
            raise InvalidInputError(f"Invalid priority: {value}. Use 'low', 'medium', or 'high'")


class Status(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, value: str) -> "Status":
        aliases = {
            "pending": cls.PENDING, "p": cls.PENDING,
            "completed": cls.COMPLETED, "complete": cls.COMPLETED,
            "done": cls.COMPLETED, "c": cls.COMPLETED,
        }
        try:
            return aliases[value.strip().lower()]
        except KeyError:
            raise InvalidInputError(f"Invalid status: {value}. Use 'pending' or 'completed'")


class UserBase(SQLModel):
    """Fields shared by user records and user views."""
    username: str
    email: Optional[str] = None


class User(UserBase):
    """Stored user record."""
    password_hash: str
    salt: str
    created_at: datetime = Field(default_factory=utcnow)

    def verify_password(self, password: str) -> bool:
        """Verify password against the stored hash."""
        # Import here to avoid circular imports
        from .security import verify_password
        return verify_password(password, self.password_hash)


class TodoBase(SQLModel):
    """Fields a user can set on a todo."""
    title: str
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    due_date: Optional[date] = None


class Todo(TodoBase):
    """Stored todo record."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    owner_username: str
    status: Status = Status.PENDING
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    @property
    def short_id(self) -> str:
        return self.id[:8]


class Session(SQLModel):
    """The single active login."""
    username: str
    issued_at: datetime
    expires_at: datetime
    token: str

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

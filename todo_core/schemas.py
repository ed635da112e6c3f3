from datetime import date
from typing import Optional, Type, TypeVar

from pydantic import EmailStr, ValidationError, field_validator

from sqlmodel import SQLModel

from .config import MIN_PASSWORD_LENGTH
from .errors import InvalidInputError, WeakPasswordError
from .models import Priority, Status, TodoBase


class UserCreate(SQLModel):
    """Schema for registration requests."""
    username: str
    password: str
    email: Optional[EmailStr] = None

    @field_validator("username")
    def username_not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Username cannot be empty")
        return v

    @field_validator("password")
    def password_min_length(cls, v):
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        return v


class TodoCreate(TodoBase):
    """Schema for new todos."""

    @field_validator("title")
    def title_not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be empty")
        return v

    @field_validator("description")
    def empty_description_is_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v


class TodoUpdate(SQLModel):
    """Schema for todo edits. Only fields explicitly set are applied."""
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[Priority] = None
    due_date: Optional[date] = None
    status: Optional[Status] = None

    @field_validator("title")
    def title_not_blank(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be empty")
        return v

    @field_validator("description")
    def empty_description_is_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v


S = TypeVar("S", bound=SQLModel)


def parse_input(schema: Type[S], **data) -> S:
    """Build a schema, turning validation failures into domain errors."""
    try:
        return schema(**data)
    except ValidationError as e:
        err = e.errors()[0]
        message = err["msg"].removeprefix("Value error, ")
        if schema is UserCreate and err["loc"][:1] == ("password",):
            raise WeakPasswordError(message)
        raise InvalidInputError(message)

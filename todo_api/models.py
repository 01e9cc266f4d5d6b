from typing import List, Optional
from datetime import datetime, timezone
from sqlmodel import Field, Relationship, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalizes a datetime to an aware UTC value. Naive values are taken to
    already be UTC, which is how SQLite hands stored timestamps back.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class User(SQLModel, table=True):
    """
    A registered account. Email is the login key and is unique across the
    table; the password is only ever stored as a bcrypt hash.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, nullable=False)
    email: str = Field(max_length=255, unique=True, index=True, nullable=False)
    hashed_password: str = Field(nullable=False)
    created_at: datetime = Field(default_factory=utc_now, nullable=False)
    updated_at: datetime = Field(default_factory=utc_now, nullable=False)

    todos: List["Todo"] = Relationship(back_populates="user")


class Todo(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True, nullable=False, foreign_key="user.id")
    title: str = Field(max_length=255, nullable=False)
    description: Optional[str] = Field(default=None)
    is_completed: bool = Field(default=False, nullable=False, index=True)
    due_date: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now, nullable=False)
    updated_at: datetime = Field(default_factory=utc_now, nullable=False)

    user: Optional[User] = Relationship(back_populates="todos")


class RevokedToken(SQLModel, table=True):
    """
    Denylist entry for a token that was logged out or refreshed away.
    Rows only need to outlive the token itself, see auth.invalidate_token.
    """
    jti: str = Field(primary_key=True, max_length=64)
    user_id: int = Field(index=True, nullable=False)
    expires_at: datetime = Field(index=True, nullable=False)

"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Associations are stored as plain foreign-key ids; services load related
rows explicitly through the repositories instead of relying on lazy
relationship attributes.
"""

import enum
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(SQLModel, table=True):
    """A registered user.

    Fields:
    - `email`: unique address, used to detect duplicates
    - `password`: hashed password string (never store plaintext)
    - `role`: `USER` or `ADMIN`
    """
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False)
    email: str = Field(index=True, nullable=False, unique=True)
    password: str = Field(nullable=False)
    role: UserRole = Field(default=UserRole.USER, nullable=False)
    created_at: datetime = Field(default_factory=_utcnow)


class Post(SQLModel, table=True):
    """A blog post written by a `User`.

    Comments belong exclusively to their post and are removed with it.
    """
    __tablename__ = "posts"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(nullable=False)
    content: str = Field(nullable=False)
    author_id: int = Field(foreign_key="users.id", index=True, nullable=False)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class Comment(SQLModel, table=True):
    """A comment left by a `User` on a `Post`."""
    __tablename__ = "comments"

    id: Optional[int] = Field(default=None, primary_key=True)
    content: str = Field(nullable=False)
    post_id: int = Field(foreign_key="posts.id", index=True, nullable=False)
    author_id: int = Field(foreign_key="users.id", index=True, nullable=False)
    created_at: datetime = Field(default_factory=_utcnow)

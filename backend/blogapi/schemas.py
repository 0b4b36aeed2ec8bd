"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable and provide validation for
controller handlers and tests. JSON keys are camelCase; request bodies
also accept the snake_case field names.
"""

from datetime import datetime, timezone
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from . import models

MAX_ID = 2**63 - 1


def _as_utc(value: datetime) -> datetime:
    # SQLite hands stored timestamps back without tzinfo; they are written in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDateTime = Annotated[datetime, AfterValidator(_as_utc)]


class ApiModel(BaseModel):
    """Base schema with camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserIn(ApiModel):
    """Payload for creating or fully replacing a user."""
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)
    role: models.UserRole = models.UserRole.USER


class UserOut(ApiModel):
    """Public view of a user; the password hash is never exposed."""
    id: int
    name: str
    email: str
    role: models.UserRole
    created_at: UtcDateTime

    @classmethod
    def from_model(cls, user: models.User) -> "UserOut":
        return cls(id=user.id, name=user.name, email=user.email, role=user.role, created_at=user.created_at)


class PostIn(ApiModel):
    """Request body for creating a post."""
    title: str = Field(min_length=1)
    content: str
    author_id: int = Field(ge=1, le=MAX_ID)


class PostUpdate(ApiModel):
    """Request body for replacing a post; the author cannot change."""
    title: str = Field(min_length=1)
    content: str


class PostOut(ApiModel):
    id: int
    title: str
    content: str
    author_id: int
    author: UserOut
    created_at: UtcDateTime
    updated_at: UtcDateTime

    @classmethod
    def from_model(cls, post: models.Post, author: models.User) -> "PostOut":
        return cls(
            id=post.id,
            title=post.title,
            content=post.content,
            author_id=post.author_id,
            author=UserOut.from_model(author),
            created_at=post.created_at,
            updated_at=post.updated_at,
        )


class CommentIn(ApiModel):
    """Request body for adding a comment to a post."""
    author_id: int = Field(ge=1, le=MAX_ID)
    content: str = Field(min_length=1)


class CommentOut(ApiModel):
    id: int
    content: str
    post_id: int
    author_id: int
    author: UserOut
    created_at: UtcDateTime

    @classmethod
    def from_model(cls, comment: models.Comment, author: models.User) -> "CommentOut":
        return cls(
            id=comment.id,
            content=comment.content,
            post_id=comment.post_id,
            author_id=comment.author_id,
            author=UserOut.from_model(author),
            created_at=comment.created_at,
        )


class UserDTO(ApiModel):
    """Flat user shape served by the in-memory user directory."""
    id: int
    name: str
    email: str
    roles: List[str] = []


class ProductDTO(ApiModel):
    """Flat product shape; only reachable through the type registry."""
    id: int
    name: str
    price: float
    description: str
    category: str


class CalculationOut(BaseModel):
    result: int


class TypeDescriptionOut(ApiModel):
    class_name: str
    fields: List[str]
    methods: List[str]
    is_interface: bool
    superclass: Optional[str]

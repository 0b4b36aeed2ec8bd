"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories.
Services are intentionally thin: they check that referenced rows exist,
apply the update rules for each aggregate and persist via repositories.
Failures are raised as `NotFoundError` / `ConflictError`; the HTTP layer
turns them into JSON error responses.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from passlib.context import CryptContext
from sqlmodel import Session

from . import models, repositories, schemas
from .errors import ConflictError, NotFoundError

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

logger = logging.getLogger("blogapi.services")


class UserService:
    """User CRUD backed by the relational store."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)
        self.post_repo = repositories.PostRepository(session)
        self.comment_repo = repositories.CommentRepository(session)

    def get_all_users(self, role: Optional[models.UserRole] = None) -> List[models.User]:
        if role is not None:
            return self.user_repo.list_by_role(role)
        return self.user_repo.list_all()

    def get_user_by_id(self, user_id: int) -> models.User:
        user = self.user_repo.get(user_id)
        if not user:
            raise NotFoundError(f"User not found with id: {user_id}")
        return user

    def create_user(self, data: schemas.UserIn) -> models.User:
        """Create a user with a hashed password.

        Raises `ConflictError` if the email is already registered.
        """
        if self.user_repo.get_by_email(data.email):
            raise ConflictError(f"Email already registered: {data.email}")
        user = models.User(
            name=data.name,
            email=data.email,
            password=PWD_CTX.hash(data.password),
            role=data.role,
        )
        user = self.user_repo.save(user)
        logger.info("user_created id=%s", user.id)
        return user

    def update_user(self, user_id: int, data: schemas.UserIn) -> models.User:
        """Replace every field of the user except `id` and `created_at`."""
        user = self.get_user_by_id(user_id)
        other = self.user_repo.get_by_email(data.email)
        if other and other.id != user.id:
            raise ConflictError(f"Email already registered: {data.email}")
        user.name = data.name
        user.email = data.email
        user.password = PWD_CTX.hash(data.password)
        user.role = data.role
        return self.user_repo.save(user)

    def delete_user(self, user_id: int) -> None:
        """Delete a user; unknown ids are ignored.

        Users that still author posts or comments are kept and a
        `ConflictError` is raised instead.
        """
        user = self.user_repo.get(user_id)
        if not user:
            return
        if self.post_repo.exists_by_author(user_id) or self.comment_repo.exists_by_author(user_id):
            raise ConflictError(f"User {user_id} still has posts or comments")
        self.user_repo.delete(user)
        logger.info("user_deleted id=%s", user_id)

    def verify_password(self, user: models.User, password: str) -> bool:
        return PWD_CTX.verify(password, user.password)


class InMemoryUserService:
    """User directory kept in a process-local dict.

    Nothing is persisted; the directory starts with two sample users.
    Single get/put calls are guarded by a lock, compound sequences are not
    atomic.
    """

    def __init__(self):
        self._users: Dict[int, schemas.UserDTO] = {}
        self._lock = threading.Lock()
        self.create_user(schemas.UserDTO(id=1, name="John Doe", email="john@example.com", roles=["USER"]))
        self.create_user(schemas.UserDTO(id=2, name="Jane Smith", email="jane@example.com", roles=["USER", "ADMIN"]))

    def get_users(self) -> List[schemas.UserDTO]:
        with self._lock:
            return list(self._users.values())

    def get_user_by_id(self, user_id: int) -> Optional[schemas.UserDTO]:
        with self._lock:
            return self._users.get(user_id)

    def create_user(self, user: schemas.UserDTO) -> schemas.UserDTO:
        """Store `user` under its own id, replacing any previous entry."""
        with self._lock:
            self._users[user.id] = user
        return user


class PostService:
    """Create, read, update and delete posts."""
    def __init__(self, session: Session):
        self.session = session
        self.post_repo = repositories.PostRepository(session)
        self.user_repo = repositories.UserRepository(session)

    def get_all_posts(self) -> List[Tuple[models.Post, models.User]]:
        return self.post_repo.list_all_with_author()

    def get_post_by_id(self, post_id: int) -> Tuple[models.Post, models.User]:
        row = self.post_repo.get_with_author(post_id)
        if not row:
            raise NotFoundError(f"Post not found with id: {post_id}")
        return row

    def get_posts_by_user(self, user_id: int) -> List[Tuple[models.Post, models.User]]:
        author = self._require_user(user_id)
        return [(p, author) for p in self.post_repo.list_by_author(author.id)]

    def create_post(self, title: str, content: str, author_id: int) -> Tuple[models.Post, models.User]:
        """Create a post for an existing author.

        The author is resolved first so a missing user fails before any
        row is written.
        """
        author = self._require_user(author_id)
        post = self.post_repo.save(models.Post(title=title, content=content, author_id=author.id))
        logger.info("post_created id=%s author_id=%s", post.id, author.id)
        return post, author

    def update_post(self, post_id: int, title: str, content: str) -> Tuple[models.Post, models.User]:
        """Replace title and content, keeping id, author and created_at.

        `updated_at` is refreshed on every update.
        """
        post, author = self.get_post_by_id(post_id)
        post.title = title
        post.content = content
        post.updated_at = datetime.now(timezone.utc)
        return self.post_repo.save(post), author

    def delete_post(self, post_id: int) -> None:
        """Delete a post and its comments; unknown ids are ignored."""
        post = self.post_repo.get(post_id)
        if not post:
            return
        self.post_repo.delete(post)
        logger.info("post_deleted id=%s", post_id)

    def _require_user(self, user_id: int) -> models.User:
        user = self.user_repo.get(user_id)
        if not user:
            raise NotFoundError(f"User not found with id: {user_id}")
        return user


class CommentService:
    """Comments attached to posts."""
    def __init__(self, session: Session):
        self.session = session
        self.comment_repo = repositories.CommentRepository(session)
        self.post_repo = repositories.PostRepository(session)
        self.user_repo = repositories.UserRepository(session)

    def get_comments_by_post(self, post_id: int) -> List[Tuple[models.Comment, models.User]]:
        """Return the post's comments with their authors, oldest first."""
        self._require_post(post_id)
        return self.comment_repo.list_for_post_with_author(post_id)

    def add_comment(self, post_id: int, author_id: int, content: str) -> Tuple[models.Comment, models.User]:
        post = self._require_post(post_id)
        author = self.user_repo.get(author_id)
        if not author:
            raise NotFoundError(f"User not found with id: {author_id}")
        comment = self.comment_repo.save(models.Comment(content=content, post_id=post.id, author_id=author.id))
        return comment, author

    def delete_comment(self, comment_id: int) -> None:
        self.comment_repo.delete_by_id(comment_id)

    def _require_post(self, post_id: int) -> models.Post:
        post = self.post_repo.get(post_id)
        if not post:
            raise NotFoundError(f"Post not found with id: {post_id}")
        return post

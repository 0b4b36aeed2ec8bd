"""Repository classes encapsulating database operations.

Each repository is small and focused on a single table (users, posts,
comments). Repositories return SQLModel objects and perform
commits/refreshes where appropriate. Queries that need the author of a
row join the `users` table explicitly and return `(row, author)` pairs.
"""

from typing import List, Optional, Tuple
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
from . import models
from .errors import ConflictError


def _commit(session: Session, conflict_message: str) -> None:
    """Commit the session, turning constraint violations into `ConflictError`.

    The session is rolled back first so it stays usable afterwards.
    """
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise ConflictError(conflict_message) from exc


class UserRepository:
    """CRUD operations for `User` objects."""
    def __init__(self, session: Session):
        self.session = session

    def save(self, user: models.User) -> models.User:
        """Insert or update a user and return the managed instance."""
        email = user.email
        self.session.add(user)
        _commit(self.session, f"Email already registered: {email}")
        self.session.refresh(user)
        return user

    def get(self, user_id: int) -> Optional[models.User]:
        """Get a `User` by primary key."""
        return self.session.get(models.User, user_id)

    def get_by_email(self, email: str) -> Optional[models.User]:
        """Return a `User` by email or `None` if not found."""
        stmt = select(models.User).where(models.User.email == email)
        return self.session.exec(stmt).first()

    def list_all(self) -> List[models.User]:
        return self.session.exec(select(models.User).order_by(models.User.id)).all()

    def list_by_role(self, role: models.UserRole) -> List[models.User]:
        stmt = select(models.User).where(models.User.role == role).order_by(models.User.id)
        return self.session.exec(stmt).all()

    def delete(self, user: models.User) -> None:
        user_id = user.id
        self.session.delete(user)
        _commit(self.session, f"User {user_id} still has posts or comments")


class PostRepository:
    """CRUD operations for `Post` records."""
    def __init__(self, session: Session):
        self.session = session

    def save(self, post: models.Post) -> models.Post:
        author_id = post.author_id
        self.session.add(post)
        _commit(self.session, f"Author {author_id} cannot be referenced")
        self.session.refresh(post)
        return post

    def get(self, post_id: int) -> Optional[models.Post]:
        """Fetch a post by id."""
        return self.session.get(models.Post, post_id)

    def get_with_author(self, post_id: int) -> Optional[Tuple[models.Post, models.User]]:
        """Fetch a post together with its author in one query."""
        stmt = (
            select(models.Post, models.User)
            .join(models.User, models.Post.author_id == models.User.id)
            .where(models.Post.id == post_id)
        )
        return self.session.exec(stmt).first()

    def list_all_with_author(self) -> List[Tuple[models.Post, models.User]]:
        """Return every post joined with its author, newest first."""
        stmt = (
            select(models.Post, models.User)
            .join(models.User, models.Post.author_id == models.User.id)
            .order_by(models.Post.created_at.desc(), models.Post.id.desc())
        )
        return self.session.exec(stmt).all()

    def list_by_author(self, author_id: int) -> List[models.Post]:
        stmt = select(models.Post).where(models.Post.author_id == author_id).order_by(models.Post.id)
        return self.session.exec(stmt).all()

    def exists_by_author(self, author_id: int) -> bool:
        """Return True if the user authored at least one post."""
        stmt = select(models.Post.id).where(models.Post.author_id == author_id)
        return self.session.exec(stmt).first() is not None

    def delete(self, post: models.Post) -> None:
        """Delete a post and every comment attached to it in one commit."""
        comments = self.session.exec(select(models.Comment).where(models.Comment.post_id == post.id)).all()
        for c in comments:
            self.session.delete(c)
        post_id = post.id
        # child rows go first so the foreign key check passes
        self.session.flush()
        self.session.delete(post)
        _commit(self.session, f"Post {post_id} could not be deleted")


class CommentRepository:
    """Query helpers for `Comment` records."""
    def __init__(self, session: Session):
        self.session = session

    def save(self, comment: models.Comment) -> models.Comment:
        post_id, author_id = comment.post_id, comment.author_id
        self.session.add(comment)
        _commit(self.session, f"Post {post_id} or author {author_id} cannot be referenced")
        self.session.refresh(comment)
        return comment

    def get(self, comment_id: int) -> Optional[models.Comment]:
        return self.session.get(models.Comment, comment_id)

    def exists_by_author(self, author_id: int) -> bool:
        """Return True if the user wrote at least one comment."""
        stmt = select(models.Comment.id).where(models.Comment.author_id == author_id)
        return self.session.exec(stmt).first() is not None

    def list_for_post_with_author(self, post_id: int) -> List[Tuple[models.Comment, models.User]]:
        """Return comments for a post joined with their authors, oldest first."""
        stmt = (
            select(models.Comment, models.User)
            .join(models.User, models.Comment.author_id == models.User.id)
            .where(models.Comment.post_id == post_id)
            .order_by(models.Comment.created_at.asc(), models.Comment.id.asc())
        )
        return self.session.exec(stmt).all()

    def delete_by_id(self, comment_id: int) -> None:
        """Delete a comment if present; an unknown id is ignored."""
        comment = self.get(comment_id)
        if comment is None:
            return
        self.session.delete(comment)
        self.session.commit()

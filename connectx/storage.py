"""Storage engine: the single owner of entity persistence.

A `Storage` is built once at application start and handed to request handlers
through `connectx.api.deps.get_storage`. Every public method opens its own short
database session, so callers may treat each call as an independent, possibly
blocking unit of work. Writes against the same like pair or follow pair are
serialized through a `KeyedLock`; the unique constraints on the tables catch
anything that slips past it (for example, a second worker process).
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from connectx.core.exceptions import ConstraintViolation, NotFound
from connectx.core.locks import KeyedLock
from connectx.crud import (
    PostView,
    crud_comment,
    crud_follow,
    crud_like,
    crud_post,
    crud_user,
)
from connectx.database import Base, make_engine, make_session_factory
from connectx.models import Comment, Follow, Like, Post, User
from connectx.schemas.post import CommentCreate, PostCreate
from connectx.schemas.user import UserCreate

logger = logging.getLogger(__name__)


class Storage:
    """CRUD and aggregation operations over users, posts, likes, comments and follows."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = make_session_factory(engine)
        self._locks = KeyedLock()

    @classmethod
    def from_url(cls, url: str, echo: bool = False) -> "Storage":
        return cls(make_engine(url, echo=echo))

    # ----- Lifecycle -----
    def create_all(self) -> None:
        """Create missing tables."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("[STORAGE] Tables ready")

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # ----- Users -----
    def get_user(self, user_id: int) -> Optional[User]:
        with self.session() as db:
            return crud_user.get(db, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        """Case-insensitive exact match."""
        with self.session() as db:
            return crud_user.get_by_username(db, username)

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive exact match."""
        with self.session() as db:
            return crud_user.get_by_email(db, email)

    def create_user(self, user_in: UserCreate, *, password_hash: str) -> User:
        """Persist a new user.

        Raises:
            ConstraintViolation: username or email already taken (any case)
        """
        with self.session() as db:
            user = crud_user.create_user(db, user_in=user_in, password_hash=password_hash)
        logger.info(f"[STORAGE] Created user id={user.id} username={user.username}")
        return user

    def get_user_stats(self, user_id: int) -> Dict[str, int]:
        """Live post, follower and following counts for a profile."""
        with self.session() as db:
            return {
                "post_count": crud_post.count_by_user(db, user_id=user_id),
                "follower_count": crud_follow.count_followers(db, user_id=user_id),
                "following_count": crud_follow.count_following(db, user_id=user_id),
            }

    # ----- Posts -----
    def get_posts(
        self,
        *,
        viewer_id: Optional[int] = None,
        author_id: Optional[int] = None,
    ) -> List[PostView]:
        """Feed read: every post (or one author's) with author and live counts, newest first."""
        with self.session() as db:
            return crud_post.get_feed(db, viewer_id=viewer_id, author_id=author_id)

    def get_post_view(self, post_id: int, *, viewer_id: Optional[int] = None) -> Optional[PostView]:
        with self.session() as db:
            views = crud_post.get_feed(db, viewer_id=viewer_id, post_id=post_id)
        return views[0] if views else None

    def get_post_by_id(self, post_id: int) -> Optional[Post]:
        with self.session() as db:
            return crud_post.get_by_id(db, post_id=post_id)

    def create_post(self, user_id: int, post_in: PostCreate) -> Post:
        with self.session() as db:
            self._require_user(db, user_id)
            post = crud_post.create_post(db, user_id=user_id, post_in=post_in)
        logger.info(f"[STORAGE] User {user_id} created post {post.id}")
        return post

    # ----- Likes -----
    def get_like(self, user_id: int, post_id: int) -> Optional[Like]:
        with self.session() as db:
            return crud_like.get_like(db, user_id=user_id, post_id=post_id)

    def create_like(self, user_id: int, post_id: int) -> Like:
        """
        Raises:
            NotFound: the user or the post does not exist
            ConstraintViolation: the pair is already liked
        """
        with self._locks.hold(("like", user_id, post_id)), self.session() as db:
            self._require_user(db, user_id)
            self._require_post(db, post_id)
            return crud_like.create_like(db, user_id=user_id, post_id=post_id)

    def remove_like(self, user_id: int, post_id: int) -> None:
        """No-op when the pair is not liked."""
        with self._locks.hold(("like", user_id, post_id)), self.session() as db:
            crud_like.remove_like(db, user_id=user_id, post_id=post_id)

    def toggle_like(self, user_id: int, post_id: int) -> bool:
        """Flip the like state for the pair. Returns True if the post is now liked."""
        with self._locks.hold(("like", user_id, post_id)), self.session() as db:
            self._require_user(db, user_id)
            self._require_post(db, post_id)
            liked = crud_like.toggle_like(db, user_id=user_id, post_id=post_id)
        logger.debug(f"[STORAGE] Like user={user_id} post={post_id} -> {liked}")
        return liked

    # ----- Comments -----
    def get_comments_by_post_id(self, post_id: int) -> List[Tuple[Comment, User]]:
        """Comments on a post with their authors, newest first."""
        with self.session() as db:
            return crud_comment.get_by_post_with_author(db, post_id=post_id)

    def create_comment(self, user_id: int, post_id: int, comment_in: CommentCreate) -> Comment:
        with self.session() as db:
            self._require_user(db, user_id)
            self._require_post(db, post_id)
            return crud_comment.create_comment(
                db, post_id=post_id, user_id=user_id, comment_in=comment_in
            )

    # ----- Follows -----
    def get_follow(self, follower_id: int, following_id: int) -> Optional[Follow]:
        with self.session() as db:
            return crud_follow.get_follow(db, follower_id=follower_id, following_id=following_id)

    def is_following(self, follower_id: int, following_id: int) -> bool:
        return self.get_follow(follower_id, following_id) is not None

    def create_follow(self, follower_id: int, following_id: int) -> Follow:
        """
        Raises:
            NotFound: either user does not exist
            ConstraintViolation: self-follow, or the pair already exists
        """
        self._reject_self_follow(follower_id, following_id)
        with self._locks.hold(("follow", follower_id, following_id)), self.session() as db:
            self._require_users(db, follower_id, following_id)
            return crud_follow.create_follow(db, follower_id=follower_id, following_id=following_id)

    def remove_follow(self, follower_id: int, following_id: int) -> None:
        with self._locks.hold(("follow", follower_id, following_id)), self.session() as db:
            crud_follow.remove_follow(db, follower_id=follower_id, following_id=following_id)

    def toggle_follow(self, follower_id: int, following_id: int) -> bool:
        """Flip the follow state for the pair. Returns True if now following."""
        self._reject_self_follow(follower_id, following_id)
        with self._locks.hold(("follow", follower_id, following_id)), self.session() as db:
            self._require_users(db, follower_id, following_id)
            following = crud_follow.toggle_follow(
                db, follower_id=follower_id, following_id=following_id
            )
        logger.debug(f"[STORAGE] Follow {follower_id} -> {following_id}: {following}")
        return following

    # ----- Helpers -----
    @staticmethod
    def _require_user(db: Session, user_id: int) -> User:
        user = crud_user.get(db, user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    @classmethod
    def _require_users(cls, db: Session, *user_ids: int) -> None:
        for user_id in user_ids:
            cls._require_user(db, user_id)

    @staticmethod
    def _require_post(db: Session, post_id: int) -> Post:
        post = crud_post.get_by_id(db, post_id=post_id)
        if post is None:
            raise NotFound("Post not found")
        return post

    @staticmethod
    def _reject_self_follow(follower_id: int, following_id: int) -> None:
        if follower_id == following_id:
            raise ConstraintViolation("You cannot follow yourself", status_code=400)


__all__ = ["Storage", "PostView"]

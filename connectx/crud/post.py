"""CRUD operations for Post, including the feed aggregation."""

import logging
from typing import List, NamedTuple, Optional
from sqlalchemy import select, func, desc
from sqlalchemy.orm import Session

from connectx.core.exceptions import InternalConsistencyError
from connectx.crud.base import CRUDBase
from connectx.crud.comment import crud_comment
from connectx.crud.like import crud_like
from connectx.crud.user import crud_user
from connectx.models.post import Post
from connectx.models.user import User
from connectx.schemas.post import PostCreate

logger = logging.getLogger(__name__)


class PostView(NamedTuple):
    """A post joined with its author and live counts."""
    post: Post
    author: User
    like_count: int
    comment_count: int
    liked: bool


class CRUDPost(CRUDBase[Post, PostCreate]):
    """CRUD operations for Post."""

    def create_post(
        self,
        db: Session,
        *,
        user_id: int,
        post_in: PostCreate
    ) -> Post:
        """Create a new post."""
        post = Post(
            user_id=user_id,
            image_url=post_in.image_url,
            caption=post_in.caption,
        )
        return self._persist(db, post)

    def get_by_id(self, db: Session, *, post_id: int) -> Optional[Post]:
        """Get post by ID."""
        return db.get(Post, post_id)

    def count_by_user(self, db: Session, *, user_id: int) -> int:
        stmt = select(func.count(Post.id)).where(Post.user_id == user_id)
        return db.scalar(stmt) or 0

    def get_feed(
        self,
        db: Session,
        *,
        viewer_id: Optional[int] = None,
        author_id: Optional[int] = None,
        post_id: Optional[int] = None,
    ) -> List[PostView]:
        """
        Posts joined with author, like count, comment count and viewer like state.

        Ordered newest first (`created_at DESC, id DESC`). Counts come from one
        GROUP BY per table and are merged in a single pass, so the cost is
        O(posts + likes + comments) rather than a re-scan per post.

        Raises:
            InternalConsistencyError: a post's author row is missing
        """
        stmt = select(Post)
        if author_id is not None:
            stmt = stmt.where(Post.user_id == author_id)
        if post_id is not None:
            stmt = stmt.where(Post.id == post_id)
        stmt = stmt.order_by(desc(Post.created_at), desc(Post.id))
        posts = list(db.scalars(stmt).all())
        if not posts:
            return []

        # Whole-table grouping for the full feed, IN-filtered for narrower reads
        scope = None if author_id is None and post_id is None else [p.id for p in posts]
        like_counts = crud_like.count_by_post(db, post_ids=scope)
        comment_counts = crud_comment.count_by_post(db, post_ids=scope)
        authors = crud_user.get_many(db, (p.user_id for p in posts))
        liked_ids = (
            crud_like.liked_post_ids(db, user_id=viewer_id, post_ids=scope)
            if viewer_id is not None else set()
        )

        views = []
        for post in posts:
            author = authors.get(post.user_id)
            if author is None:
                logger.error(
                    f"[STORAGE] Post {post.id} references missing user {post.user_id}"
                )
                raise InternalConsistencyError(f"User not found for post {post.id}")
            views.append(PostView(
                post=post,
                author=author,
                like_count=like_counts.get(post.id, 0),
                comment_count=comment_counts.get(post.id, 0),
                liked=post.id in liked_ids,
            ))
        return views


# Singleton instance
crud_post = CRUDPost(Post)

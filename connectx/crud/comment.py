"""CRUD operations for Comment."""

import logging
from typing import Dict, Iterable, List, Optional, Tuple
from sqlalchemy import select, desc, func
from sqlalchemy.orm import Session

from connectx.core.exceptions import InternalConsistencyError
from connectx.crud.base import CRUDBase
from connectx.models.comment import Comment
from connectx.models.user import User
from connectx.schemas.post import CommentCreate

logger = logging.getLogger(__name__)


class CRUDComment(CRUDBase[Comment, CommentCreate]):
    """CRUD operations for Comment."""

    def create_comment(
        self,
        db: Session,
        *,
        post_id: int,
        user_id: int,
        comment_in: CommentCreate
    ) -> Comment:
        """Create a new comment on a post."""
        comment = Comment(
            post_id=post_id,
            user_id=user_id,
            content=comment_in.content,
        )
        return self._persist(db, comment)

    def get_by_post_with_author(
        self,
        db: Session,
        *,
        post_id: int
    ) -> List[Tuple[Comment, User]]:
        """All comments for a post with their authors, newest first."""
        stmt = (
            select(Comment, User)
            .outerjoin(User, Comment.user_id == User.id)
            .where(Comment.post_id == post_id)
            .order_by(desc(Comment.created_at), desc(Comment.id))
        )
        rows = []
        for comment, author in db.execute(stmt):
            if author is None:
                logger.error(
                    f"[STORAGE] Comment {comment.id} references missing user {comment.user_id}"
                )
                raise InternalConsistencyError(f"User not found for comment {comment.id}")
            rows.append((comment, author))
        return rows

    def count_by_post(
        self,
        db: Session,
        *,
        post_ids: Optional[Iterable[int]] = None
    ) -> Dict[int, int]:
        """Comment counts grouped by post id; posts without comments are absent."""
        stmt = select(Comment.post_id, func.count(Comment.id)).group_by(Comment.post_id)
        if post_ids is not None:
            stmt = stmt.where(Comment.post_id.in_(list(post_ids)))
        return {post_id: count for post_id, count in db.execute(stmt)}


# Singleton instance
crud_comment = CRUDComment(Comment)

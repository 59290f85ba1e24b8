"""CRUD operations for Like."""

from typing import Dict, Iterable, Optional, Set
from sqlalchemy import select, and_, func
from sqlalchemy.orm import Session

from connectx.crud.base import CRUDBase
from connectx.models.like import Like


class CRUDLike(CRUDBase[Like, dict]):
    """CRUD operations for Like."""

    conflict_detail = "Post already liked"

    def get_like(
        self,
        db: Session,
        *,
        user_id: int,
        post_id: int
    ) -> Optional[Like]:
        """Get like record if exists."""
        stmt = select(Like).where(
            and_(
                Like.user_id == user_id,
                Like.post_id == post_id
            )
        )
        return db.scalars(stmt).first()

    def create_like(self, db: Session, *, user_id: int, post_id: int) -> Like:
        return self._persist(db, Like(user_id=user_id, post_id=post_id))

    def remove_like(self, db: Session, *, user_id: int, post_id: int) -> bool:
        """Delete the like if present. Returns whether a row was removed."""
        existing = self.get_like(db, user_id=user_id, post_id=post_id)
        if existing is None:
            return False
        self.delete(db, db_obj=existing)
        return True

    def toggle_like(
        self,
        db: Session,
        *,
        user_id: int,
        post_id: int
    ) -> bool:
        """
        Toggle like on a post.

        Callers must serialize toggles per (user_id, post_id).

        Returns:
            is_liked: the state after the toggle
        """
        if self.remove_like(db, user_id=user_id, post_id=post_id):
            return False
        self.create_like(db, user_id=user_id, post_id=post_id)
        return True

    def count_by_post(
        self,
        db: Session,
        *,
        post_ids: Optional[Iterable[int]] = None
    ) -> Dict[int, int]:
        """Like counts grouped by post id; posts without likes are absent."""
        stmt = select(Like.post_id, func.count(Like.id)).group_by(Like.post_id)
        if post_ids is not None:
            stmt = stmt.where(Like.post_id.in_(list(post_ids)))
        return {post_id: count for post_id, count in db.execute(stmt)}

    def liked_post_ids(
        self,
        db: Session,
        *,
        user_id: int,
        post_ids: Optional[Iterable[int]] = None
    ) -> Set[int]:
        """Ids of posts the user has liked."""
        stmt = select(Like.post_id).where(Like.user_id == user_id)
        if post_ids is not None:
            stmt = stmt.where(Like.post_id.in_(list(post_ids)))
        return set(db.scalars(stmt))


# Singleton instance
crud_like = CRUDLike(Like)

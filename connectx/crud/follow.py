"""CRUD operations for Follow."""

from typing import Optional
from sqlalchemy import select, and_, func
from sqlalchemy.orm import Session

from connectx.crud.base import CRUDBase
from connectx.models.follow import Follow


class CRUDFollow(CRUDBase[Follow, dict]):
    """CRUD operations for Follow."""

    conflict_detail = "Already following this user"

    def get_follow(
        self,
        db: Session,
        *,
        follower_id: int,
        following_id: int
    ) -> Optional[Follow]:
        stmt = select(Follow).where(
            and_(
                Follow.follower_id == follower_id,
                Follow.following_id == following_id
            )
        )
        return db.scalars(stmt).first()

    def create_follow(self, db: Session, *, follower_id: int, following_id: int) -> Follow:
        return self._persist(db, Follow(follower_id=follower_id, following_id=following_id))

    def remove_follow(self, db: Session, *, follower_id: int, following_id: int) -> bool:
        existing = self.get_follow(db, follower_id=follower_id, following_id=following_id)
        if existing is None:
            return False
        self.delete(db, db_obj=existing)
        return True

    def toggle_follow(self, db: Session, *, follower_id: int, following_id: int) -> bool:
        """Returns True if now following. Callers serialize per pair."""
        if self.remove_follow(db, follower_id=follower_id, following_id=following_id):
            return False
        self.create_follow(db, follower_id=follower_id, following_id=following_id)
        return True

    def count_followers(self, db: Session, *, user_id: int) -> int:
        stmt = select(func.count(Follow.id)).where(Follow.following_id == user_id)
        return db.scalar(stmt) or 0

    def count_following(self, db: Session, *, user_id: int) -> int:
        stmt = select(func.count(Follow.id)).where(Follow.follower_id == user_id)
        return db.scalar(stmt) or 0


# Singleton instance
crud_follow = CRUDFollow(Follow)

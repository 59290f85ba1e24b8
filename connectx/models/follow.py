"""Follow model: self-referential user-to-user relation."""

from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint, CheckConstraint, Index
from sqlalchemy.orm import relationship
from ..database import Base, utcnow


class Follow(Base):
    """`follower_id` follows `following_id`."""

    __tablename__ = "follows"

    id = Column(Integer, primary_key=True, index=True)

    # Foreign Keys
    follower_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    following_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Constraints
    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follow_pair"),
        CheckConstraint("follower_id <> following_id", name="check_follow_not_self"),
        Index("idx_follow_following", "following_id"),
    )

    # Relationships
    follower = relationship("User", foreign_keys=[follower_id])
    following = relationship("User", foreign_keys=[following_id])

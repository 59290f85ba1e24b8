"""Like model for post likes."""

from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from ..database import Base, utcnow


class Like(Base):
    """A user's like on a post."""

    __tablename__ = "likes"

    id = Column(Integer, primary_key=True, index=True)

    # Foreign Keys
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    post_id = Column(
        Integer,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Constraints
    __table_args__ = (
        # One like per user per post
        UniqueConstraint("user_id", "post_id", name="uq_like_user_post"),
        Index("idx_like_post", "post_id"),
    )

    # Relationships
    post = relationship("Post", back_populates="likes")
    user = relationship("User", foreign_keys=[user_id])

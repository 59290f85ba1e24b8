"""Comment model for post comments."""

from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from ..database import Base, utcnow


class Comment(Base):
    """Comment on a post. Immutable once written."""

    __tablename__ = "comments"

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

    # Comment Content
    content = Column(Text, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    # Constraints & Indexes
    __table_args__ = (
        Index("idx_comment_post_created", "post_id", "created_at"),
    )

    # Relationships
    post = relationship("Post", back_populates="comments")
    user = relationship("User", foreign_keys=[user_id])

"""Post model for the image feed."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from ..database import Base, utcnow


class Post(Base):
    """An image post. Like and comment counts are derived at read time, never stored here."""

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)

    # Foreign Keys
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Post Content
    image_url = Column(String(1000), nullable=False)
    caption = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    # Constraints & Indexes
    __table_args__ = (
        # Index for feed ordering and profile pages
        Index("idx_post_created_id", "created_at", "id"),
        Index("idx_post_user_created", "user_id", "created_at"),
    )

    # Relationships
    author = relationship("User", back_populates="posts")
    likes = relationship(
        "Like",
        back_populates="post",
        cascade="all, delete-orphan"
    )
    comments = relationship(
        "Comment",
        back_populates="post",
        cascade="all, delete-orphan"
    )

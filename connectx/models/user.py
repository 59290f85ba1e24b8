from sqlalchemy import Column, Integer, String, Text, DateTime, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base, utcnow


class User(Base):
    __tablename__ = "users"

    # Primary Key
    id = Column(Integer, primary_key=True, index=True)

    # Authentication & Contact
    username = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)

    # Profile
    full_name = Column(String(255))
    profile_image = Column(String(500))
    bio = Column(Text)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Constraints
    __table_args__ = (
        # Username and email are unique regardless of case
        Index("uq_users_username_lower", func.lower(username), unique=True),
        Index("uq_users_email_lower", func.lower(email), unique=True),
    )

    # Relationships
    posts = relationship("Post", back_populates="author")

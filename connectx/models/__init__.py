"""
SQLAlchemy Models for ConnectX
"""

from ..database import Base
from .user import User
from .post import Post
from .like import Like
from .comment import Comment
from .follow import Follow

# Export all models
__all__ = [
    "Base",
    "User",
    "Post",
    "Like",
    "Comment",
    "Follow",
]

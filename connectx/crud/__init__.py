"""CRUD operations package - exports singleton instances for all models."""

from .base import CRUDBase
from .user import crud_user
from .like import crud_like
from .comment import crud_comment
from .follow import crud_follow
from .post import crud_post, PostView


__all__ = [
    # Base
    "CRUDBase",
    "PostView",
    # CRUD instances
    "crud_user",
    "crud_post",
    "crud_like",
    "crud_comment",
    "crud_follow",
]

"""Pydantic schemas for posts, likes and comments."""

from datetime import datetime
from typing import Optional
from pydantic import Field, field_validator

from connectx.schemas.base import CamelModel
from connectx.schemas.user import UserSummary


class PostCreate(CamelModel):
    """Schema for creating a new post."""
    image_url: str = Field(..., min_length=1, max_length=1000, description="Image URL")
    caption: Optional[str] = Field(None, max_length=2200, description="Post caption")

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Image URL must not be empty")
        return v


class PostResponse(CamelModel):
    """Schema for a stored post."""
    id: int
    user_id: int
    image_url: str
    caption: Optional[str] = None
    created_at: datetime


class FeedPostResponse(PostResponse):
    """Post with its author and live counts."""
    like_count: int
    comment_count: int
    liked: bool = False  # whether the current viewer likes it
    user: UserSummary


class LikeToggleResponse(CamelModel):
    """Response for like action."""
    liked: bool


class CommentCreate(CamelModel):
    """Schema for creating a comment."""
    content: str = Field(..., min_length=1, max_length=2200, description="Comment content")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment must not be empty")
        return v


class CommentResponse(CamelModel):
    """Schema for a stored comment."""
    id: int
    post_id: int
    user_id: int
    content: str
    created_at: datetime


class CommentWithAuthorResponse(CommentResponse):
    user: UserSummary


def feed_post_response(view) -> FeedPostResponse:
    """Build the wire shape for a `PostView` (post + author + counts)."""
    post = view.post
    return FeedPostResponse(
        id=post.id,
        user_id=post.user_id,
        image_url=post.image_url,
        caption=post.caption,
        created_at=post.created_at,
        like_count=view.like_count,
        comment_count=view.comment_count,
        liked=view.liked,
        user=UserSummary.model_validate(view.author),
    )


def comment_response(comment, author) -> CommentWithAuthorResponse:
    return CommentWithAuthorResponse(
        id=comment.id,
        post_id=comment.post_id,
        user_id=comment.user_id,
        content=comment.content,
        created_at=comment.created_at,
        user=UserSummary.model_validate(author),
    )

from .base import (
	CamelModel,
	format_errors,
	validate_payload,
)
from .user import (
	UserCreate,
	UserLogin,
	UserSummary,
	UserResponse,
	UserProfileResponse,
	AuthResponse,
	FollowToggleResponse,
)
from .post import (
	PostCreate,
	PostResponse,
	FeedPostResponse,
	LikeToggleResponse,
	CommentCreate,
	CommentResponse,
	CommentWithAuthorResponse,
	feed_post_response,
	comment_response,
)

__all__ = [
	"CamelModel",
	"format_errors",
	"validate_payload",
	"UserCreate",
	"UserLogin",
	"UserSummary",
	"UserResponse",
	"UserProfileResponse",
	"AuthResponse",
	"FollowToggleResponse",
	"PostCreate",
	"PostResponse",
	"FeedPostResponse",
	"LikeToggleResponse",
	"CommentCreate",
	"CommentResponse",
	"CommentWithAuthorResponse",
	"feed_post_response",
	"comment_response",
]

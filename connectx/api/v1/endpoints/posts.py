"""Feed, post, like and comment endpoints."""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, status

from connectx.api.deps import get_current_user, get_optional_current_user, get_storage
from connectx.core.exceptions import NotFound
from connectx.models.user import User
from connectx.schemas.post import (
    CommentCreate,
    CommentResponse,
    CommentWithAuthorResponse,
    FeedPostResponse,
    LikeToggleResponse,
    PostCreate,
    PostResponse,
    comment_response,
    feed_post_response,
)
from connectx.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/posts",
    tags=["Posts"],
)


@router.get(
    "",
    response_model=List[FeedPostResponse],
    status_code=status.HTTP_200_OK,
    summary="Get the feed",
    description="""
    Every post with its author, live like and comment counts, newest first.

    `liked` reflects the caller when a session token is sent, otherwise false.

    **Access:** Public
    """,
)
def list_posts(
    current_user: Optional[User] = Depends(get_optional_current_user),
    storage: Storage = Depends(get_storage),
) -> List[FeedPostResponse]:
    """Feed of all posts."""
    views = storage.get_posts(viewer_id=current_user.id if current_user else None)
    return [feed_post_response(view) for view in views]


@router.post(
    "",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new post",
)
def create_post(
    post_in: PostCreate,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> PostResponse:
    """Publish an image post as the current user."""
    post = storage.create_post(current_user.id, post_in)
    return PostResponse.model_validate(post)


@router.get(
    "/{post_id}",
    response_model=FeedPostResponse,
    status_code=status.HTTP_200_OK,
    summary="Get post detail",
)
def get_post(
    post_id: int,
    current_user: Optional[User] = Depends(get_optional_current_user),
    storage: Storage = Depends(get_storage),
) -> FeedPostResponse:
    view = storage.get_post_view(post_id, viewer_id=current_user.id if current_user else None)
    if view is None:
        raise NotFound("Post not found")
    return feed_post_response(view)


@router.post(
    "/{post_id}/like",
    response_model=LikeToggleResponse,
    status_code=status.HTTP_200_OK,
    summary="Like or unlike a post",
)
def toggle_like(
    post_id: int,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> LikeToggleResponse:
    """Like the post if not yet liked, otherwise remove the like."""
    liked = storage.toggle_like(current_user.id, post_id)
    return LikeToggleResponse(liked=liked)


@router.get(
    "/{post_id}/comments",
    response_model=List[CommentWithAuthorResponse],
    status_code=status.HTTP_200_OK,
    summary="List comments on a post",
)
def list_comments(
    post_id: int,
    storage: Storage = Depends(get_storage),
) -> List[CommentWithAuthorResponse]:
    """Comments with their authors, newest first."""
    if storage.get_post_by_id(post_id) is None:
        raise NotFound("Post not found")
    return [
        comment_response(comment, author)
        for comment, author in storage.get_comments_by_post_id(post_id)
    ]


@router.post(
    "/{post_id}/comment",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a post",
)
def create_comment(
    post_id: int,
    comment_in: CommentCreate,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> CommentResponse:
    comment = storage.create_comment(current_user.id, post_id, comment_in)
    logger.info(f"User {current_user.id} commented on post {post_id}")
    return CommentResponse.model_validate(comment)


__all__ = ["router"]

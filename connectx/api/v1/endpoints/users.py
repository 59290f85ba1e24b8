"""User profile and follow endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from connectx.api.deps import get_current_user, get_optional_current_user, get_storage
from connectx.core.exceptions import ConstraintViolation, NotFound
from connectx.models.user import User
from connectx.schemas.post import FeedPostResponse, feed_post_response
from connectx.schemas.user import FollowToggleResponse, UserProfileResponse, UserResponse
from connectx.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["Users"],
)


def _get_user_or_404(storage: Storage, username: str) -> User:
    user = storage.get_user_by_username(username)
    if user is None:
        raise NotFound("User not found")
    return user


@router.get(
    "/{username}",
    response_model=UserProfileResponse,
    status_code=status.HTTP_200_OK,
    summary="Get user profile",
)
def get_user_profile(
    username: str,
    current_user: Optional[User] = Depends(get_optional_current_user),
    storage: Storage = Depends(get_storage),
) -> UserProfileResponse:
    """
    Public profile by username (case-insensitive), with live post/follower counts.

    Args:
        username: Profile to look up
        current_user: Caller, if authenticated; drives `isFollowing`
        storage: Storage engine

    Returns:
        UserProfileResponse: Profile without credentials

    Raises:
        NotFound: 404 if no such user
    """
    user = _get_user_or_404(storage, username)
    is_following = bool(
        current_user
        and current_user.id != user.id
        and storage.is_following(current_user.id, user.id)
    )
    return UserProfileResponse(
        **UserResponse.model_validate(user).model_dump(),
        **storage.get_user_stats(user.id),
        is_following=is_following,
    )


@router.get(
    "/{username}/posts",
    response_model=List[FeedPostResponse],
    status_code=status.HTTP_200_OK,
    summary="List a user's posts",
)
def list_user_posts(
    username: str,
    current_user: Optional[User] = Depends(get_optional_current_user),
    storage: Storage = Depends(get_storage),
) -> List[FeedPostResponse]:
    user = _get_user_or_404(storage, username)
    views = storage.get_posts(
        viewer_id=current_user.id if current_user else None,
        author_id=user.id,
    )
    return [feed_post_response(view) for view in views]


@router.post(
    "/{username}/follow",
    response_model=FollowToggleResponse,
    status_code=status.HTTP_200_OK,
    summary="Follow or unfollow a user",
)
def toggle_follow(
    username: str,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> FollowToggleResponse:
    """
    Follow the user if not yet following, otherwise unfollow.

    Raises:
        NotFound: 404 if no such user
        ConstraintViolation: 400 when following yourself
    """
    target = _get_user_or_404(storage, username)
    if target.id == current_user.id:
        raise ConstraintViolation("You cannot follow yourself", status_code=status.HTTP_400_BAD_REQUEST)

    following = storage.toggle_follow(current_user.id, target.id)
    logger.info(f"User {current_user.id} {'followed' if following else 'unfollowed'} {target.id}")
    return FollowToggleResponse(following=following)


__all__ = ["router"]

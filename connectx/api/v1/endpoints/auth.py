"""Authentication endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Response, status

from connectx.api.deps import (
    get_auth_service,
    get_current_user,
    get_token,
)
from connectx.models.user import User
from connectx.schemas.user import (
    AuthResponse,
    UserCreate,
    UserLogin,
    UserResponse,
)
from connectx.services.auth_service import AuthService

router = APIRouter(
    tags=["Authentication"],
)


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
)
def register(
    user_in: UserCreate,
    auth: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """
    Register a new user and log them in.

    Args:
        user_in: username, email, password and optional profile fields
        auth: Auth service

    Returns:
        AuthResponse: Created user (no password) and session token

    Raises:
        ConstraintViolation: 409 if username or email already registered
    """
    user, token = auth.register(user_in)
    return AuthResponse(user=UserResponse.model_validate(user), access_token=token)


@router.post(
    "/login",
    response_model=AuthResponse,
    status_code=status.HTTP_200_OK,
    summary="Login user",
)
def login(
    credentials: UserLogin,
    auth: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """
    Login with username and password.

    Raises:
        AuthenticationError: 401 if credentials invalid
    """
    user, token = auth.login(credentials)
    return AuthResponse(user=UserResponse.model_validate(user), access_token=token)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Logout user",
)
def logout(
    token: Optional[str] = Depends(get_token),
    auth: AuthService = Depends(get_auth_service),
) -> Response:
    """Invalidate the caller's session. Succeeds even without one."""
    auth.logout(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/user",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    summary="Get current user info",
)
def get_me(
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Get current authenticated user information.

    Args:
        current_user: Current user (resolved from the session token)

    Returns:
        User: Current user data
    """
    return current_user


__all__ = ["router"]

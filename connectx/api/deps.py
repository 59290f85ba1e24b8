"""FastAPI dependency injection functions for authentication and storage access."""

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from connectx.core.exceptions import Unauthorized
from connectx.models.user import User
from connectx.services.auth_service import AuthService
from connectx.storage import Storage

logger = logging.getLogger(__name__)

# Login takes JSON, so tokens are documented as plain bearer credentials.
# Missing tokens are handled below rather than by FastAPI.
bearer_scheme = HTTPBearer(auto_error=False)


def get_storage(request: Request) -> Storage:
    """The storage engine built by `create_app`."""
    return request.app.state.storage


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """Raw token from `Authorization: Bearer <token>`, or None."""
    return credentials.credentials if credentials else None


def get_optional_current_user(
    token: Optional[str] = Depends(get_token),
    auth: AuthService = Depends(get_auth_service),
) -> Optional[User]:
    """
    Current user if a valid session token was sent, else None.

    Useful for endpoints that allow both authenticated and unauthenticated access.
    """
    return auth.current_user(token)


def get_current_user(
    current_user: Optional[User] = Depends(get_optional_current_user),
) -> User:
    """
    Current authenticated user.

    Raises:
        Unauthorized: no token, bad token, or session gone
    """
    if current_user is None:
        raise Unauthorized()
    return current_user


__all__ = [
    "bearer_scheme",
    "get_storage",
    "get_auth_service",
    "get_token",
    "get_current_user",
    "get_optional_current_user",
]

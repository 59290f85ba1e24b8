"""Services package for ConnectX application."""

from .auth_service import AuthService

__all__ = [
    "AuthService",
]

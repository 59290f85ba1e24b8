"""Exception taxonomy for ConnectX.

Raised by the storage and auth layers; the handlers registered in
`connectx.main.create_app` turn them into JSON responses.
"""

from typing import Any, Dict, List, Optional

from fastapi import status


class ConnectXError(Exception):
    """Base exception carrying the HTTP status it maps to."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"
    headers: Optional[Dict[str, str]] = None

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(ConnectXError):
    """Malformed or missing input fields.

    `errors` lists every offending field, not just the first one:

        [{"field": "username", "message": "String should have at least 3 characters"}]
    """

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request data"

    def __init__(self, errors: List[Dict[str, Any]], detail: Optional[str] = None):
        super().__init__(detail)
        self.errors = errors


class AuthenticationError(ConnectXError):
    """Bad credentials. The message never says which half was wrong."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid username or password"
    headers = {"WWW-Authenticate": "Bearer"}


class Unauthorized(ConnectXError):
    """No valid session on a protected action."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Not authenticated"
    headers = {"WWW-Authenticate": "Bearer"}


class ConstraintViolation(ConnectXError):
    """Uniqueness or business-rule breach (duplicate username, self-follow)."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Constraint violated"

    def __init__(self, detail: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(detail)
        if status_code is not None:
            self.status_code = status_code


class NotFound(ConnectXError):
    """Referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class InternalConsistencyError(ConnectXError):
    """Referential integrity or a uniqueness invariant is broken in the store.

    Should be unreachable; always logged loudly and answered with a generic 500.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"


__all__ = [
    "ConnectXError",
    "ValidationError",
    "AuthenticationError",
    "Unauthorized",
    "ConstraintViolation",
    "NotFound",
    "InternalConsistencyError",
]

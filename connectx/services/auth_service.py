"""Service layer for registration, login and session resolution."""

import logging
from datetime import timedelta
from typing import Any, Callable, Optional, Tuple

from connectx.core.exceptions import AuthenticationError, ConstraintViolation, Unauthorized
from connectx.core.security import create_access_token, decode_token, get_password_hash, verify_password
from connectx.core.sessions import SessionStore
from connectx.models.user import User
from connectx.schemas.base import validate_payload
from connectx.schemas.user import UserCreate, UserLogin
from connectx.storage import Storage

logger = logging.getLogger(__name__)

PasswordVerifier = Callable[[str, Optional[str]], bool]
PasswordHasher = Callable[[str], str]


class AuthService:
    """
    Credential checks and session lifecycle.

    A token is a signed JWT naming the user (`sub`) and a session id (`sid`).
    It is honoured only while the session store still holds that id, so
    `logout` revokes it immediately regardless of the JWT expiry.

    `verify` and `hash_password` are pluggable; any replacement for `verify`
    must compare in constant time.
    """

    def __init__(
        self,
        storage: Storage,
        sessions: SessionStore,
        *,
        secret_key: str,
        session_ttl: timedelta,
        verify: PasswordVerifier = verify_password,
        hash_password: PasswordHasher = get_password_hash,
    ):
        self.storage = storage
        self.sessions = sessions
        self.secret_key = secret_key
        self.session_ttl = session_ttl
        self.verify = verify
        self.hash_password = hash_password

    def register(self, data: Any) -> Tuple[User, str]:
        """
        Create a user and open a session for them.

        Raises:
            ValidationError: payload fails `UserCreate`
            ConstraintViolation: username or email already taken
        """
        user_in = validate_payload(UserCreate, data)

        if self.storage.get_user_by_username(user_in.username):
            raise ConstraintViolation("Username already exists")
        if self.storage.get_user_by_email(user_in.email):
            raise ConstraintViolation("Email already exists")

        # The unique indexes still decide if two registrations race past the checks
        user = self.storage.create_user(
            user_in, password_hash=self.hash_password(user_in.password)
        )
        logger.info(f"[AUTH] Registered user id={user.id}")
        return user, self._open_session(user)

    def login(self, data: Any) -> Tuple[User, str]:
        """
        Verify credentials and open a session.

        Raises:
            ValidationError: payload fails `UserLogin`
            AuthenticationError: unknown user or wrong password (indistinguishable)
        """
        credentials = validate_payload(UserLogin, data)
        user = self.storage.get_user_by_username(credentials.username)
        stored_hash = user.password_hash if user else None

        # verify() runs even for unknown users so timing does not leak existence
        if not self.verify(credentials.password, stored_hash) or user is None:
            logger.warning(f"[AUTH] Failed login for username={credentials.username!r}")
            raise AuthenticationError()

        logger.info(f"[AUTH] User logged in: id={user.id}")
        return user, self._open_session(user)

    def logout(self, token: Optional[str]) -> None:
        """Invalidate the session behind `token`. Unknown or bad tokens are ignored."""
        if not token:
            return
        try:
            payload = decode_token(token, self.secret_key)
        except Unauthorized:
            return
        sid = payload.get("sid")
        if sid:
            self.sessions.delete(sid)
            logger.info(f"[AUTH] Session closed for user {payload.get('sub')}")

    def current_user(self, token: Optional[str]) -> Optional[User]:
        """User bound to `token`, or None when unauthenticated."""
        if not token:
            return None

        token_preview = token[:20] + "..." if len(token) > 20 else token
        try:
            payload = decode_token(token, self.secret_key)
        except Unauthorized:
            logger.debug(f"[AUTH] Token decode failed: {token_preview}")
            return None

        record = self.sessions.get(payload.get("sid") or "")
        if record is None:
            logger.debug(f"[AUTH] No live session for token {token_preview}")
            return None
        if str(record.user_id) != str(payload.get("sub")):
            logger.warning(f"[AUTH] Session/user mismatch for token {token_preview}")
            return None

        return self.storage.get_user(record.user_id)

    def _open_session(self, user: User) -> str:
        record = self.sessions.create(user.id, self.session_ttl)
        return create_access_token(
            data={"sub": str(user.id), "sid": record.sid},
            secret_key=self.secret_key,
            expires_delta=self.session_ttl,
        )

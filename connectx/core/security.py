"""Security utilities for session tokens and password hashing."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from connectx.core.exceptions import Unauthorized


# New hashes use PBKDF2; bcrypt hashes still verify and get flagged for rehash
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], default="pbkdf2_sha256", deprecated=["bcrypt"])

ALGORITHM = "HS256"

# bcrypt ignores input past 72 bytes; clip so both schemes see the same secret
MAX_PASSWORD_BYTES = 72


def _clip(password: str) -> str:
    return password.encode("utf-8")[:MAX_PASSWORD_BYTES].decode("utf-8", "ignore")


def get_password_hash(password: str) -> str:
    """One-way hash for storage in `users.password_hash`."""
    return pwd_context.hash(_clip(password))


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Check a password against a stored hash.

    Comparison is constant-time. With no hash (unknown user) a dummy
    verification still runs so both failure paths cost the same.
    """
    if hashed_password is None:
        pwd_context.dummy_verify()
        return False
    try:
        return pwd_context.verify(_clip(plain_password), hashed_password)
    except ValueError:
        # Unrecognised hash format
        return False


def create_access_token(
    data: Dict[str, Any], secret_key: str, expires_delta: timedelta
) -> str:
    """Create a signed JWT.

    Args:
        data: Token claims (e.g., {'sub': '42', 'sid': '...'})
        secret_key: Signing key
        expires_delta: Lifetime of the token

    Returns:
        Encoded JWT token

    Raises:
        ValueError: If the secret key is empty
    """
    if not secret_key:
        raise ValueError("SECRET_KEY environment variable is not set")

    to_encode = data.copy()
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
    return jwt.encode(to_encode, secret_key, algorithm=ALGORITHM)


def decode_token(token: str, secret_key: str) -> Dict[str, Any]:
    """Decode and verify a JWT token.

    Raises:
        Unauthorized: If token is invalid or expired
    """
    try:
        return jwt.decode(token, secret_key, algorithms=[ALGORITHM])
    except JWTError as e:
        raise Unauthorized("Could not validate credentials") from e

"""
security.py — Credentials and bearer-token handling.

  - Passwords are hashed with bcrypt directly (no passlib).
  - Access tokens are HS256 JWTs signed with settings.jwt_secret via python-jose.
    The `sub` claim carries the user's ObjectId as a string.

get_optional_user_id is a FastAPI dependency for routes that work for
anonymous callers but behave differently when a valid token is present
(e.g. the chat route falling back to the stored profile).
"""

from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional

import bcrypt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from nutricoach.core.config import settings

# Does not auto-raise on a missing header; routes decide between 401 and anonymous.
bearer_scheme = HTTPBearer(auto_error=False)
BearerCredentials = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


# ── Passwords ─────────────────────────────────────────────────────────────────

def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of *plain*."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


# ── Tokens ────────────────────────────────────────────────────────────────────

def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign an access token for *user_id*.

    Args:
        user_id:       String form of the user's ObjectId.
        expires_delta: Custom TTL; defaults to settings.jwt_expiry_hours.
    """
    issued = datetime.now(tz=timezone.utc)
    expires = issued + (expires_delta or timedelta(hours=settings.jwt_expiry_hours))
    claims = {"sub": user_id, "iat": issued, "exp": expires}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[str]:
    """Return the user id from a valid token, or None if it is invalid or expired."""
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    subject = claims.get("sub")
    return subject if isinstance(subject, str) and subject else None


def get_optional_user_id(credentials: BearerCredentials) -> Optional[str]:
    """Dependency: user id from the Authorization header, or None for anonymous callers."""
    if credentials is None:
        return None
    return decode_access_token(credentials.credentials)


OptionalUserId = Annotated[Optional[str], Depends(get_optional_user_id)]

"""Authentication for the Web API.

Passwords are hashed with passlib; sessions are stateless HS256 bearer
tokens carrying the user id in "sub".
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from passlib.context import CryptContext

from ielts_writing.config.app_config import load_app_config
from ielts_writing.db.profiles_repository import ProfileRecord, get_profile

logger = structlog.get_logger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id: str, expires_delta: timedelta | None = None) -> str:
    """Issue a signed bearer token for a user."""
    auth = load_app_config().auth
    if expires_delta is None:
        expires_delta = timedelta(minutes=auth.access_token_expire_minutes)

    now = datetime.now(timezone.utc)
    payload = {"sub": user_id, "iat": now, "exp": now + expires_delta}
    return jwt.encode(payload, auth.get_secret(), algorithm=auth.jwt_algorithm)


def decode_access_token(token: str) -> str | None:
    """Return the user id in a valid token, or None."""
    auth = load_app_config().auth
    try:
        payload = jwt.decode(token, auth.get_secret(), algorithms=[auth.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        logger.info("auth.token_expired")
        return None
    except jwt.InvalidTokenError:
        return None
    return payload.get("sub")


def get_current_user(token: str | None = Depends(oauth2_scheme)) -> ProfileRecord:
    """Resolve the caller's profile from the bearer token.

    Raises:
        HTTPException: 401 when there is no valid session
    """
    unauthenticated = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not token:
        raise unauthenticated

    user_id = decode_access_token(token)
    if user_id is None:
        raise unauthenticated

    profile = get_profile(user_id)
    if profile is None:
        raise unauthenticated
    return profile


def require_staff(user: ProfileRecord = Depends(get_current_user)) -> ProfileRecord:
    """Only teachers and admins pass.

    Raises:
        HTTPException: 403 for students
    """
    if not user.is_staff:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: admin or teacher role required.",
        )
    return user

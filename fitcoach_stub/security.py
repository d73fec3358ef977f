"""
Password hashing and token issuing/verification for the stub API.
Access tokens are HS256 JWTs; refresh tokens are opaque random strings stored in the DB.
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Annotated

import bcrypt
import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from fitcoach_stub.config import (
    ACCESS_TOKEN_SECONDS,
    JWT_ALGORITHM,
    JWT_AUDIENCE,
    JWT_ISSUER,
    JWT_SECRET,
)
from fitcoach_stub.database import get_db
from fitcoach_stub.models import User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    # Bcrypt has a 72-byte limit
    raw = password.encode("utf-8")
    if len(raw) > 72:
        raw = raw[:72]
    return bcrypt.hashpw(raw, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    raw = plain.encode("utf-8")[:72]
    return bcrypt.checkpw(raw, hashed.encode("utf-8"))


def create_access_token(user: User, lifetime_seconds: int | None = None) -> str:
    now = datetime.now(timezone.utc)
    lifetime = ACCESS_TOKEN_SECONDS if lifetime_seconds is None else lifetime_seconds
    payload = {
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "sub": user.id,
        "email": user.email,
        "role": user.role,
        "displayName": user.display_name or user.full_name,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=lifetime)).timestamp()),
    }
    token = jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM, headers={"typ": "JWT"})
    if isinstance(token, bytes):
        token = token.decode("utf-8")
    return token


def create_refresh_token() -> str:
    return secrets.token_urlsafe(48)


def decode_access_token(token: str) -> dict | None:
    """Verify signature, iss, aud and exp. Returns claims, or None if the token is not acceptable."""
    try:
        return jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except jwt.InvalidTokenError as e:
        logger.debug("Access token rejected: %s", e)
        return None


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Session = Depends(get_db),
) -> User:
    """Dependency: valid Bearer access token -> the user it was issued to. 401 otherwise."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _unauthorized("Authorization header missing")
    claims = decode_access_token(credentials.credentials)
    if claims is None:
        raise _unauthorized("Invalid token")
    user = db.query(User).filter(User.id == claims.get("sub")).first()
    if user is None:
        raise _unauthorized("User not found")
    return user

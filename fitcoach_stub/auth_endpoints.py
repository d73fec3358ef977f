"""
Auth endpoints: login, register, refresh, logout, me.
Response shapes follow the FitCoach backend: {token, refreshToken, user} on login/register,
{token, refreshToken} on refresh (the user is not repeated), errors as {"message": ...}.
"""
import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from fitcoach_stub.config import REFRESH_TOKEN_DAYS
from fitcoach_stub.database import get_db
from fitcoach_stub.models import ROLE_ADMIN, ROLE_CLIENT, ROLE_COACH, RefreshToken, User
from fitcoach_stub.security import (
    create_access_token,
    create_refresh_token,
    get_current_user,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth")

# Roles a user may pick at sign-up; admins are provisioned out of band
SELF_SERVICE_ROLES = {"coach": ROLE_COACH, "client": ROLE_CLIENT}


class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(BaseModel):
    email: str
    password: str
    firstName: str | None = None
    lastName: str | None = None
    role: str | None = None


class RefreshRequest(BaseModel):
    refreshToken: str | None = None


def _error(status_code: int, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"message": message})


def _issue_refresh_token(db: Session, user: User) -> str:
    value = create_refresh_token()
    db.add(
        RefreshToken(
            token=value,
            user_id=user.id,
            expires_at=datetime.now(timezone.utc) + timedelta(days=REFRESH_TOKEN_DAYS),
        )
    )
    return value


def _auth_response(db: Session, user: User) -> dict:
    refresh_token = _issue_refresh_token(db, user)
    db.commit()
    return {
        "token": create_access_token(user),
        "refreshToken": refresh_token,
        "user": user.to_identity(),
    }


@router.post("/login")
def login(req: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == req.email.strip().lower()).first()
    if user is None or not verify_password(req.password, user.password_hash):
        logger.info("Login failed for %s", req.email)
        raise _error(status.HTTP_401_UNAUTHORIZED, "Invalid credentials")
    logger.info("Login ok: user %s", user.id)
    return _auth_response(db, user)


@router.post("/register")
def register(req: RegisterRequest, db: Session = Depends(get_db)):
    email = req.email.strip().lower()
    if not email or not req.password:
        raise _error(status.HTTP_400_BAD_REQUEST, "Email and password are required")
    role_key = (req.role or "client").strip().lower()
    if role_key == ROLE_ADMIN.lower():
        raise _error(status.HTTP_400_BAD_REQUEST, "Admin accounts cannot be self-registered")
    if role_key not in SELF_SERVICE_ROLES:
        raise _error(status.HTTP_400_BAD_REQUEST, f"Unknown role: {req.role}")
    if db.query(User).filter(User.email == email).first() is not None:
        raise _error(status.HTTP_400_BAD_REQUEST, "Email already exists")

    user = User(
        email=email,
        password_hash=hash_password(req.password),
        role=SELF_SERVICE_ROLES[role_key],
        first_name=req.firstName,
        last_name=req.lastName,
    )
    db.add(user)
    db.flush()
    logger.info("Registered user %s (%s)", user.id, user.role)
    return _auth_response(db, user)


@router.post("/refresh")
def refresh(req: RefreshRequest, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new access token; the refresh token is rotated."""
    if not req.refreshToken:
        raise _error(status.HTTP_400_BAD_REQUEST, "refreshToken is required")
    row = db.query(RefreshToken).filter(RefreshToken.token == req.refreshToken).first()
    if (
        row is None
        or row.revoked
        or row.expires_at.replace(tzinfo=timezone.utc) <= datetime.now(timezone.utc)
    ):
        raise _error(status.HTTP_401_UNAUTHORIZED, "Refresh token invalid/expired")

    user = db.query(User).filter(User.id == row.user_id).first()
    if user is None:
        raise _error(status.HTTP_401_UNAUTHORIZED, "Refresh token invalid/expired")

    row.revoked = True
    new_refresh = _issue_refresh_token(db, user)
    db.commit()
    logger.info("Refresh ok: user %s (refresh token rotated)", user.id)
    return {"token": create_access_token(user), "refreshToken": new_refresh}


@router.post("/logout")
def logout(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Revoke every live refresh token of the caller."""
    rows = db.query(RefreshToken).filter(RefreshToken.user_id == user.id, RefreshToken.revoked.is_(False)).all()
    for row in rows:
        row.revoked = True
    db.commit()
    logger.info("Logout: user %s, %d refresh token(s) revoked", user.id, len(rows))
    return {"ok": True}


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return user.to_identity()

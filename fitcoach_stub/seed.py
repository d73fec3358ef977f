"""
Seed users from environment. No hardcoded credentials.
Optional: FITCOACH_STUB_SEED_EMAIL + FITCOACH_STUB_SEED_PASSWORD (+ FITCOACH_STUB_SEED_ROLE, default Coach).
"""
import logging
import os

from sqlalchemy.orm import Session

from fitcoach_stub.models import ROLE_ADMIN, ROLE_CLIENT, ROLE_COACH, User
from fitcoach_stub.security import hash_password

logger = logging.getLogger(__name__)

_ROLES = {r.lower(): r for r in (ROLE_ADMIN, ROLE_COACH, ROLE_CLIENT)}


def seed_from_env(db: Session) -> None:
    """Create one user from env if set and not present yet."""
    email = os.environ.get("FITCOACH_STUB_SEED_EMAIL")
    password = os.environ.get("FITCOACH_STUB_SEED_PASSWORD")
    if not (email and password):
        return
    email = email.strip().lower()
    role = _ROLES.get(os.environ.get("FITCOACH_STUB_SEED_ROLE", "coach").strip().lower(), ROLE_COACH)
    if db.query(User).filter(User.email == email).first() is not None:
        logger.debug("User already exists: %s", email)
        return
    db.add(User(email=email, password_hash=hash_password(password), role=role))
    db.commit()
    logger.info("Seeded user: %s (%s)", email, role)

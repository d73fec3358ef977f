"""
Stub storage: users and refresh tokens in SQLite.

Tests and the in-process client integration run against sqlite:///:memory:. Every request
handler opens its own Session, so that URL is pinned to a single shared connection
(StaticPool); otherwise each connection would see its own empty database.
"""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fitcoach_stub.config import DATABASE_URL
from fitcoach_stub.models import Base


def _make_engine(url: str) -> Engine:
    if not url.startswith("sqlite"):
        return create_engine(url)
    # FastAPI runs sync endpoints in a threadpool, so the connection crosses threads
    connect_args = {"check_same_thread": False}
    if url.startswith("sqlite:///:memory:"):
        return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
    return create_engine(url, connect_args=connect_args)


engine = _make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create the users and refresh_tokens tables if missing. Safe to call repeatedly."""
    Base.metadata.create_all(bind=engine)


def get_db():
    """FastAPI dependency: one Session per request, closed afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

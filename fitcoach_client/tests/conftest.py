"""
Pytest configuration for fitcoach_client. Integration tests drive the stub API in-process,
so point it at in-memory SQLite before anything imports fitcoach_stub.database.
"""
import os
import time

import jwt
import pytest

os.environ.setdefault("FITCOACH_STUB_DATABASE_URL", "sqlite:///:memory:")
for _var in ("FITCOACH_STUB_SEED_EMAIL", "FITCOACH_STUB_SEED_PASSWORD"):
    os.environ.pop(_var, None)

from fitcoach_client.session_store import MemoryStorage, SessionStore  # noqa: E402

TEST_SECRET = "client-tests-secret"


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return SessionStore(storage)


@pytest.fixture
def make_token():
    """make_token(exp=<epoch seconds>) or make_token(expires_in=<seconds from now>); exp=None omits the claim."""

    def _make(expires_in: int = 3600, exp="default", **claims) -> str:
        payload = {"sub": "user-1", **claims}
        if exp == "default":
            payload["exp"] = int(time.time()) + expires_in
        elif exp is not None:
            payload["exp"] = exp
        return jwt.encode(payload, TEST_SECRET, algorithm="HS256")

    return _make

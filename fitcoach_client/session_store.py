"""
Session store: the single in-memory source of the bearer token, backed by durable storage
so a restarted process can pick the session back up.
Storage is slot-based (one named value per key), like browser localStorage.
"""
import json
import logging
import os
import re
import tempfile
from pathlib import Path

from fitcoach_client.models import ROLE_CLIENT, ROLE_COACH, User

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "auth_token"
REFRESH_TOKEN_KEY = "refresh_token"
USER_KEY = "user"
VIEW_MODE_KEY = "view_mode"

VIEW_MODES = {ROLE_COACH, ROLE_CLIENT}

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class MemoryStorage:
    """Process-local storage; nothing survives a restart. Used in tests and short-lived scripts."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileStorage:
    """
    One file per slot under a directory. Writes go to a temp file and are moved into place,
    so a concurrent reader never sees a half-written value.
    """

    def __init__(self, directory: str | os.PathLike) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"invalid storage key: {key!r}")
        return self.directory / key

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, path)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

    def remove_item(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            return


class SessionStore:
    """Current access token (in memory, persisted on every change), refresh token and identity record."""

    def __init__(self, storage) -> None:
        self._storage = storage
        self._token: str | None = storage.get_item(ACCESS_TOKEN_KEY)

    def get_token(self) -> str | None:
        return self._token

    def set_token(self, token: str | None) -> None:
        """Takes effect for the very next outbound request."""
        self._token = token
        if token:
            self._storage.set_item(ACCESS_TOKEN_KEY, token)
        else:
            self._storage.remove_item(ACCESS_TOKEN_KEY)

    def get_refresh_token(self) -> str | None:
        return self._storage.get_item(REFRESH_TOKEN_KEY)

    def set_refresh_token(self, token: str | None) -> None:
        if token:
            self._storage.set_item(REFRESH_TOKEN_KEY, token)
        else:
            self._storage.remove_item(REFRESH_TOKEN_KEY)

    def get_stored_user(self) -> User | None:
        """Persisted identity, or None if absent or unreadable."""
        raw = self._storage.get_item(USER_KEY)
        if not raw:
            return None
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("identity record is not an object")
            return User.from_dict(data)
        except (ValueError, KeyError, TypeError) as e:
            logger.debug("Ignoring unreadable stored identity: %s", e)
            return None

    def set_user(self, user: User | None) -> None:
        if user is None:
            self._storage.remove_item(USER_KEY)
        else:
            self._storage.set_item(USER_KEY, json.dumps(user.to_dict()))

    def clear(self) -> None:
        self.set_token(None)
        self.set_refresh_token(None)
        self.set_user(None)

    def get_view_mode(self, role: str | None) -> str:
        """
        Coaches may switch to the client view (stored preference, default coach).
        Clients are always in client view and any stale preference is dropped; admins and anonymous users get client.
        """
        if role == ROLE_COACH:
            stored = self._storage.get_item(VIEW_MODE_KEY)
            return stored if stored in VIEW_MODES else ROLE_COACH
        if role == ROLE_CLIENT:
            self._storage.remove_item(VIEW_MODE_KEY)
        return ROLE_CLIENT

    def set_view_mode(self, mode: str) -> None:
        if mode not in VIEW_MODES:
            raise ValueError(f"unknown view mode: {mode!r}")
        self._storage.set_item(VIEW_MODE_KEY, mode)

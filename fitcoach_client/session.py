"""
Session context: login, register, logout and the current user, wired on top of the session store,
the refresh coordinator and the authenticated request wrapper.

One SessionContext per process. It is built explicitly (no module-level instance) and closed with
aclose() or `async with`.
"""
import asyncio
import logging

import httpx

from fitcoach_client import endpoints
from fitcoach_client.api import ApiClient, Navigator, log_navigation
from fitcoach_client.config import API_BASE_URL, LOGIN_PATH, REQUEST_TIMEOUT_SECONDS, STORAGE_DIR
from fitcoach_client.errors import FitCoachError
from fitcoach_client.models import ROLE_ADMIN, ROLE_CLIENT, TokenPair, User
from fitcoach_client.refresh import RefreshCoordinator, RefreshState
from fitcoach_client.session_store import FileStorage, SessionStore
from fitcoach_client.token_clock import REFRESH_BUFFER_MS

logger = logging.getLogger(__name__)

DASHBOARD_PATH = "/dashboard"
ADMIN_PATH = "/admin"


class SessionContext:
    def __init__(
        self,
        store: SessionStore | None = None,
        *,
        base_url: str = API_BASE_URL,
        navigate: Navigator | None = None,
        login_path: str = LOGIN_PATH,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        refresh_buffer_ms: int = REFRESH_BUFFER_MS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._store = store or SessionStore(FileStorage(STORAGE_DIR))
        self._navigate = navigate or log_navigation
        self._login_path = login_path
        self._user: User | None = None
        self._active = False
        # bumped on every login/logout; late validation results from an older session are ignored
        self._epoch = 0
        self._validation: asyncio.Task | None = None
        self.is_loading = True

        self._coordinator = RefreshCoordinator(
            self._store,
            self._exchange_refresh_token,
            on_expired=self._force_logout,
            buffer_ms=refresh_buffer_ms,
        )
        self.api = ApiClient(
            self._store,
            base_url=base_url,
            refresh=self._coordinator.request_refresh,
            on_logout=self._force_logout,
            navigate=self._navigate,
            login_path=login_path,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "SessionContext":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    @property
    def current_user(self) -> User | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def refresh_state(self) -> RefreshState:
        return self._coordinator.state

    @property
    def store(self) -> SessionStore:
        return self._store

    def initialize(self) -> asyncio.Task | None:
        """
        Restore a persisted session, if any. The stored identity is adopted right away and the token
        is checked against /auth/me in the background; the returned task completes when that check does.
        """
        stored_user = self._store.get_stored_user()
        token = self._store.get_token()
        task = None
        if stored_user and token:
            logger.info("Restoring stored session for user %s", stored_user.id)
            self._start_session(stored_user, token)
            task = asyncio.ensure_future(self._validate_session(self._epoch))
            self._validation = task
        self.is_loading = False
        return task

    async def login(self, email: str, password: str) -> User:
        data = await self.api.post(endpoints.AUTH_LOGIN, {"email": email, "password": password}, authenticated=False)
        return self._adopt_auth_response(data)

    async def register(self, email: str, password: str, first_name: str, last_name: str, role: str = ROLE_CLIENT) -> User:
        data = await self.api.post(
            endpoints.AUTH_REGISTER,
            {
                "email": email,
                "password": password,
                "firstName": first_name,
                "lastName": last_name,
                "role": role,
            },
            authenticated=False,
        )
        return self._adopt_auth_response(data)

    async def logout(self) -> None:
        """Explicit logout. The server call is best-effort; local state is always cleared."""
        self._coordinator.logout()
        self._active = False
        self._epoch += 1
        try:
            await self.api.post(endpoints.AUTH_LOGOUT)
        except FitCoachError as e:
            logger.info("Logout request failed, clearing local session anyway: %s", e)
        finally:
            self._clear_local()
        self._navigate(self._login_path)

    def landing_path(self) -> str:
        """Where a freshly authenticated (or anonymous) user belongs."""
        if self._user is None:
            return self._login_path
        if self._user.role == ROLE_ADMIN:
            return ADMIN_PATH
        return DASHBOARD_PATH

    async def aclose(self) -> None:
        if self._validation is not None and not self._validation.done():
            self._validation.cancel()
            try:
                await self._validation
            except asyncio.CancelledError:
                pass
        await self._coordinator.shutdown()
        await self.api.aclose()

    def _adopt_auth_response(self, data: dict) -> User:
        pair = TokenPair.from_api(data)
        if pair is None or not isinstance(data.get("user"), dict):
            raise FitCoachError("Unexpected response from the server: missing token or user")
        user = User.from_api(data["user"])
        self._store.set_token(pair.access_token)
        self._store.set_refresh_token(pair.refresh_token)
        self._store.set_user(user)
        self._start_session(user, pair.access_token)
        logger.info("Signed in as user %s (%s)", user.id, user.role)
        return user

    def _start_session(self, user: User, token: str) -> None:
        self._epoch += 1
        self._user = user
        self._active = True
        self._coordinator.schedule(token)

    async def _validate_session(self, epoch: int) -> None:
        try:
            data = await self.api.get(endpoints.AUTH_ME)
        except FitCoachError as e:
            if epoch == self._epoch:
                logger.warning("Stored session is no longer valid: %s", e)
                await self._force_logout()
            return
        if epoch != self._epoch or not isinstance(data, dict):
            return
        user = User.from_api(data, fallback=self._user)
        self._user = user
        self._store.set_user(user)

    async def _exchange_refresh_token(self) -> TokenPair | None:
        refresh_token = self._store.get_refresh_token()
        if not refresh_token:
            logger.info("No refresh token stored; cannot refresh")
            return None
        data = await self.api.post(endpoints.AUTH_REFRESH, {"refreshToken": refresh_token}, authenticated=False)
        return TokenPair.from_api(data)

    async def _force_logout(self) -> None:
        """
        Unrecoverable auth failure. Only the first trigger per session clears state and navigates.
        A context that never started a session (epoch 0) still ends on the login page.
        """
        if not self._active and self._epoch > 0:
            return
        logger.warning("Session ended by authentication failure; logging out")
        self._active = False
        self._epoch += 1
        self._coordinator.logout()
        self._clear_local()
        self._navigate(self._login_path)

    def _clear_local(self) -> None:
        self._store.clear()
        self._user = None

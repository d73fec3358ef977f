"""
Authenticated request wrapper around httpx.AsyncClient.
Attaches the bearer token to every call, and on a 401 asks for a fresh token and retries once.
When that cannot recover, the session is force-logged-out and UnauthorizedError is raised.
"""
import inspect
import logging
from typing import Any, Awaitable, Callable

import httpx

from fitcoach_client.config import API_BASE_URL, LOGIN_PATH, REQUEST_TIMEOUT_SECONDS
from fitcoach_client.errors import ApiError, NetworkError, UnauthorizedError

logger = logging.getLogger(__name__)

RefreshFn = Callable[[], Awaitable[str | None]]
LogoutFn = Callable[[], Awaitable[None] | None]
Navigator = Callable[[str], None]


def log_navigation(path: str) -> None:
    """Default navigator for headless use: there is no page to move, so record where we would go."""
    logger.info("Redirecting to %s", path)


def _error_message(response: httpx.Response) -> tuple[str, dict]:
    payload: dict = {}
    if response.content:
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            payload = data
    message = payload.get("message")
    if not message or not isinstance(message, str):
        message = f"An error occurred (HTTP {response.status_code})"
    return message, payload


class ApiClient:
    def __init__(
        self,
        store,
        *,
        base_url: str = API_BASE_URL,
        refresh: RefreshFn | None = None,
        on_logout: LogoutFn | None = None,
        navigate: Navigator | None = None,
        login_path: str = LOGIN_PATH,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        refresh: returns a fresh access token or None (the refresh coordinator's request_refresh).
        on_logout: called after tokens are cleared on forced logout; clears identity and navigates.
        Without on_logout, forced logout navigates straight to login_path.
        """
        self._store = store
        self._refresh = refresh
        self._on_logout = on_logout
        self._navigate = navigate or log_navigation
        self._login_path = login_path
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json: Any = None,
        params: dict | None = None,
        files: dict | None = None,
        authenticated: bool = True,
        _retry: bool = False,
    ) -> Any:
        """
        Perform one API call and return the parsed JSON body ({} for empty bodies such as 204).
        authenticated=False is for the auth endpoints themselves: no bearer token, and a 401 is an
        ordinary ApiError (e.g. wrong password) rather than an expired session.
        """
        headers = {}
        if files is None:
            headers["Content-Type"] = "application/json"
        if authenticated:
            token = self._store.get_token()
            if token:
                headers["Authorization"] = f"Bearer {token}"

        url = "/" + endpoint.lstrip("/")
        try:
            response = await self._http.request(method, url, headers=headers, json=json, params=params, files=files)
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise NetworkError() from e

        if response.status_code == 401 and authenticated:
            if not _retry and self._refresh is not None:
                new_token = await self._refresh()
                if new_token:
                    logger.debug("Retrying %s %s with refreshed token", method, url)
                    return await self.request(
                        method, endpoint, json=json, params=params, files=files, _retry=True
                    )
            logger.info("%s %s unauthorized; forcing logout", method, url)
            _, payload = _error_message(response)
            await self.force_logout()
            raise UnauthorizedError(payload=payload)

        if not response.is_success:
            message, payload = _error_message(response)
            raise ApiError(message, response.status_code, payload)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            logger.warning("%s %s returned a body that is not JSON", method, url)
            raise ApiError("Invalid JSON in response", response.status_code) from e

    async def force_logout(self) -> None:
        """Clear both tokens, then hand over to the logout callback (or navigate to login)."""
        self._store.set_token(None)
        self._store.set_refresh_token(None)
        if self._on_logout is None:
            self._navigate(self._login_path)
            return
        result = self._on_logout()
        if inspect.isawaitable(result):
            await result

    async def get(self, endpoint: str, **kwargs) -> Any:
        return await self.request("GET", endpoint, **kwargs)

    async def post(self, endpoint: str, data: Any = None, **kwargs) -> Any:
        return await self.request("POST", endpoint, json=data, **kwargs)

    async def put(self, endpoint: str, data: Any = None, **kwargs) -> Any:
        return await self.request("PUT", endpoint, json=data, **kwargs)

    async def patch(self, endpoint: str, data: Any = None, **kwargs) -> Any:
        return await self.request("PATCH", endpoint, json=data, **kwargs)

    async def delete(self, endpoint: str, **kwargs) -> Any:
        return await self.request("DELETE", endpoint, **kwargs)

    async def upload_file(
        self,
        endpoint: str,
        content: bytes,
        filename: str,
        field_name: str = "file",
        content_type: str = "application/octet-stream",
    ) -> Any:
        """Multipart POST; content is bytes so the single retry can resend it."""
        files = {field_name: (filename, content, content_type)}
        return await self.request("POST", endpoint, files=files)

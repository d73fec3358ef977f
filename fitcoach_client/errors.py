"""
Errors surfaced by the FitCoach client. Messages are human-readable and safe to show as-is.
"""

NETWORK_ERROR_MESSAGE = "Network error: API is unreachable. Is the backend running?"
UNAUTHORIZED_MESSAGE = "Session expired. Please log in again."


class FitCoachError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NetworkError(FitCoachError):
    """No response received (DNS, connection refused, timeout)."""

    def __init__(self, message: str = NETWORK_ERROR_MESSAGE) -> None:
        super().__init__(message)


class ApiError(FitCoachError):
    """Non-2xx response. message comes from the body when it has one."""

    def __init__(self, message: str, status_code: int, payload: dict | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}


class UnauthorizedError(ApiError):
    """401 that survived the refresh-and-retry cycle; the session has been logged out."""

    def __init__(self, message: str = UNAUTHORIZED_MESSAGE, payload: dict | None = None) -> None:
        super().__init__(message, 401, payload)

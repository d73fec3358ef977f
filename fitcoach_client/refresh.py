"""
Refresh coordinator: owns the one-shot refresh timer and the single-flight refresh call.

IDLE -> schedule(token) -> SCHEDULED -> timer fires -> REFRESHING
REFRESHING -> new token with readable expiry -> SCHEDULED (the steady-state cycle)
REFRESHING -> new token without expiry -> IDLE (401 handling only from here on)
REFRESHING -> no token -> LOGGED_OUT (on_expired runs when the timer started the refresh)
any -> logout() -> LOGGED_OUT

Every refresh runs tagged with the session generation it started in. logout() bumps the
generation, so a refresh that lands after logout is dropped instead of repopulating the store.
"""
import asyncio
import enum
import logging
from typing import Awaitable, Callable

from fitcoach_client.models import TokenPair
from fitcoach_client.token_clock import REFRESH_BUFFER_MS, delay_until_refresh, expiry_of, now_ms

logger = logging.getLogger(__name__)


class RefreshState(enum.Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"
    REFRESHING = "refreshing"
    LOGGED_OUT = "logged_out"


RefreshCall = Callable[[], Awaitable[TokenPair | None]]
ExpiredCallback = Callable[[], Awaitable[None]]


class RefreshCoordinator:
    def __init__(
        self,
        store,
        refresh_call: RefreshCall,
        *,
        on_expired: ExpiredCallback | None = None,
        buffer_ms: int = REFRESH_BUFFER_MS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """
        refresh_call: performs the refresh request and returns the new TokenPair (or None / raises on failure).
        on_expired: awaited when a timer-driven refresh yields no token (forced logout).
        """
        self._store = store
        self._refresh_call = refresh_call
        self._on_expired = on_expired
        self._buffer_ms = buffer_ms
        self._clock = clock
        self._state = RefreshState.IDLE
        self._generation = 0
        self._timer: asyncio.TimerHandle | None = None
        self._fire_at: int | None = None
        self._inflight: asyncio.Task | None = None
        self._fire_task: asyncio.Task | None = None

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def fire_at(self) -> int | None:
        """Epoch ms at which the pending timer fires, None when nothing is scheduled."""
        return self._fire_at

    @property
    def has_pending_timer(self) -> bool:
        return self._timer is not None and not self._timer.cancelled()

    def schedule(self, token: str | None) -> int | None:
        """
        Arm the refresh timer for token. Always cancels the previous timer first.
        Returns the delay in ms, or None when the token has no readable expiry (nothing armed).
        """
        self._cancel_timer()
        expiry = expiry_of(token)
        if not expiry.known:
            logger.info("Access token expiry unknown (%s); automatic refresh disabled", expiry.reason)
            self._state = RefreshState.IDLE
            return None
        now = self._clock()
        delay = delay_until_refresh(expiry.expires_at_ms, self._buffer_ms, now)
        self._fire_at = now + delay
        self._timer = asyncio.get_running_loop().call_later(delay / 1000, self._on_timer)
        self._state = RefreshState.SCHEDULED
        logger.debug("Token refresh scheduled in %.1fs", delay / 1000)
        return delay

    def cancel(self) -> None:
        self._cancel_timer()
        if self._state is RefreshState.SCHEDULED:
            self._state = RefreshState.IDLE

    def logout(self) -> None:
        """Cancel the timer and detach any in-flight refresh; its result will be discarded."""
        self._cancel_timer()
        self._generation += 1
        self._inflight = None
        self._state = RefreshState.LOGGED_OUT

    async def request_refresh(self) -> str | None:
        """
        Single-flight refresh. Concurrent callers share one network call and one outcome.
        Returns the new access token, or None if the refresh failed or the session ended meanwhile.
        """
        if self._state is RefreshState.LOGGED_OUT:
            return None
        if self._inflight is None:
            self._state = RefreshState.REFRESHING
            task = asyncio.ensure_future(self._run_refresh(self._generation))
            task.add_done_callback(self._release)
            self._inflight = task
        # shield: one caller giving up must not cancel the call the others are waiting on
        return await asyncio.shield(self._inflight)

    async def shutdown(self) -> None:
        """Teardown: drop the timer and cancel background work."""
        self._cancel_timer()
        for task in (self._fire_task, self._inflight):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._fire_task = None
        self._inflight = None

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._fire_at = None

    def _release(self, task: asyncio.Task) -> None:
        if self._inflight is task:
            self._inflight = None

    def _on_timer(self) -> None:
        self._timer = None
        self._fire_at = None
        self._fire_task = asyncio.ensure_future(self._fire())

    async def _fire(self) -> None:
        generation = self._generation
        token = await self.request_refresh()
        if token is None and generation == self._generation:
            logger.warning("Scheduled token refresh failed; ending session")
            if self._on_expired is not None:
                await self._on_expired()
            else:
                self.logout()

    async def _run_refresh(self, generation: int) -> str | None:
        try:
            pair = await self._refresh_call()
        except Exception as e:
            logger.warning("Token refresh failed: %s", e)
            pair = None

        if generation != self._generation:
            logger.info("Discarding token refresh that completed after logout")
            return None
        if pair is None or not pair.access_token:
            self._cancel_timer()
            self._state = RefreshState.LOGGED_OUT
            return None

        self._store.set_token(pair.access_token)
        if pair.refresh_token:
            self._store.set_refresh_token(pair.refresh_token)
        self.schedule(pair.access_token)
        logger.info("Access token refreshed")
        return pair.access_token

"""Tests for the refresh coordinator: scheduling, single-flight refresh, logout races."""
import asyncio
from unittest.mock import AsyncMock

import pytest

from fitcoach_client.models import TokenPair
from fitcoach_client.refresh import RefreshCoordinator, RefreshState

BUFFER_MS = 60_000
EXP = 2_000_000_000


def _clock_for_delay(delay_ms: int):
    """Fixed clock such that a token expiring at EXP gets exactly delay_ms of delay."""
    return lambda: EXP * 1000 - BUFFER_MS - delay_ms


class GatedRefresh:
    """refresh_call that blocks until released, counting network calls."""

    def __init__(self, result):
        self.calls = 0
        self.result = result
        self.release = asyncio.Event()

    async def __call__(self):
        self.calls += 1
        await self.release.wait()
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.mark.asyncio
async def test_concurrent_requests_share_one_refresh(store, make_token):
    new_token = make_token()
    refresh = GatedRefresh(TokenPair(new_token, "rt-2"))
    coordinator = RefreshCoordinator(store, refresh)

    waiters = [asyncio.ensure_future(coordinator.request_refresh()) for _ in range(5)]
    await asyncio.sleep(0)
    assert coordinator.state is RefreshState.REFRESHING
    refresh.release.set()
    results = await asyncio.gather(*waiters)

    assert refresh.calls == 1
    assert results == [new_token] * 5
    assert store.get_token() == new_token
    assert store.get_refresh_token() == "rt-2"
    await coordinator.shutdown()


@pytest.mark.asyncio
async def test_concurrent_failures_all_see_none(store):
    refresh = GatedRefresh(RuntimeError("refresh endpoint down"))
    coordinator = RefreshCoordinator(store, refresh)

    waiters = [asyncio.ensure_future(coordinator.request_refresh()) for _ in range(3)]
    await asyncio.sleep(0)
    refresh.release.set()
    results = await asyncio.gather(*waiters)

    assert refresh.calls == 1
    assert results == [None, None, None]
    assert coordinator.state is RefreshState.LOGGED_OUT


@pytest.mark.asyncio
async def test_slot_is_cleared_after_settling(store, make_token):
    refresh = AsyncMock(side_effect=[TokenPair(make_token()), TokenPair(make_token(expires_in=7200))])
    coordinator = RefreshCoordinator(store, refresh)
    first = await coordinator.request_refresh()
    await asyncio.sleep(0)
    second = await coordinator.request_refresh()
    assert refresh.await_count == 2
    assert first != second
    await coordinator.shutdown()


@pytest.mark.asyncio
async def test_refresh_returning_none_is_failure(store):
    coordinator = RefreshCoordinator(store, AsyncMock(return_value=None))
    store.set_token("old")
    assert await coordinator.request_refresh() is None
    assert store.get_token() == "old"


@pytest.mark.asyncio
async def test_schedule_twice_leaves_one_timer(store, make_token):
    coordinator = RefreshCoordinator(store, AsyncMock(), buffer_ms=BUFFER_MS)
    coordinator.schedule(make_token(expires_in=3600))
    first_timer = coordinator._timer
    coordinator.schedule(make_token(expires_in=7200))
    assert first_timer.cancelled()
    assert coordinator.has_pending_timer
    assert coordinator._timer is not first_timer
    assert coordinator.state is RefreshState.SCHEDULED
    await coordinator.shutdown()


@pytest.mark.asyncio
async def test_schedule_delay_uses_buffer(store, make_token):
    coordinator = RefreshCoordinator(store, AsyncMock(), buffer_ms=BUFFER_MS, clock=_clock_for_delay(30_000))
    delay = coordinator.schedule(make_token(exp=EXP))
    assert delay == 30_000
    assert coordinator.fire_at == EXP * 1000 - BUFFER_MS
    await coordinator.shutdown()


@pytest.mark.asyncio
async def test_schedule_without_expiry_goes_idle(store, make_token):
    coordinator = RefreshCoordinator(store, AsyncMock())
    coordinator.schedule(make_token(expires_in=3600))
    assert coordinator.schedule(make_token(exp=None)) is None
    assert not coordinator.has_pending_timer
    assert coordinator.state is RefreshState.IDLE


@pytest.mark.asyncio
async def test_timer_fires_refreshes_and_rearms(store, make_token):
    next_token = make_token(exp=EXP + 3600)
    refresh = AsyncMock(return_value=TokenPair(next_token))
    coordinator = RefreshCoordinator(store, refresh, buffer_ms=BUFFER_MS, clock=_clock_for_delay(20))

    coordinator.schedule(make_token(exp=EXP))
    await asyncio.sleep(0.2)

    assert refresh.await_count == 1
    assert store.get_token() == next_token
    assert coordinator.state is RefreshState.SCHEDULED
    assert coordinator.has_pending_timer
    await coordinator.shutdown()


@pytest.mark.asyncio
async def test_timer_failure_calls_on_expired_once(store, make_token):
    on_expired = AsyncMock()
    coordinator = RefreshCoordinator(
        store, AsyncMock(side_effect=RuntimeError("boom")), on_expired=on_expired,
        buffer_ms=BUFFER_MS, clock=_clock_for_delay(10),
    )
    coordinator.schedule(make_token(exp=EXP))
    await asyncio.sleep(0.2)
    on_expired.assert_awaited_once()
    assert coordinator.state is RefreshState.LOGGED_OUT
    assert not coordinator.has_pending_timer


@pytest.mark.asyncio
async def test_timer_failure_without_callback_logs_out(store, make_token):
    coordinator = RefreshCoordinator(store, AsyncMock(return_value=None), buffer_ms=BUFFER_MS, clock=_clock_for_delay(10))
    coordinator.schedule(make_token(exp=EXP))
    generation = coordinator.generation
    await asyncio.sleep(0.2)
    assert coordinator.state is RefreshState.LOGGED_OUT
    assert coordinator.generation == generation + 1


@pytest.mark.asyncio
async def test_logout_cancels_pending_timer(store, make_token):
    refresh = AsyncMock()
    coordinator = RefreshCoordinator(store, refresh, buffer_ms=BUFFER_MS, clock=_clock_for_delay(20))
    coordinator.schedule(make_token(exp=EXP))
    coordinator.logout()
    await asyncio.sleep(0.1)
    refresh.assert_not_awaited()
    assert coordinator.state is RefreshState.LOGGED_OUT


@pytest.mark.asyncio
async def test_refresh_landing_after_logout_is_discarded(store, make_token):
    refresh = GatedRefresh(TokenPair(make_token(), "rt-late"))
    coordinator = RefreshCoordinator(store, refresh)
    waiter = asyncio.ensure_future(coordinator.request_refresh())
    await asyncio.sleep(0)

    coordinator.logout()
    refresh.release.set()

    assert await waiter is None
    assert store.get_token() is None
    assert store.get_refresh_token() is None
    assert not coordinator.has_pending_timer


@pytest.mark.asyncio
async def test_no_refresh_while_logged_out(store):
    refresh = AsyncMock()
    coordinator = RefreshCoordinator(store, refresh)
    coordinator.logout()
    assert await coordinator.request_refresh() is None
    refresh.assert_not_awaited()


@pytest.mark.asyncio
async def test_schedule_after_logout_starts_new_session(store, make_token):
    coordinator = RefreshCoordinator(store, AsyncMock())
    coordinator.logout()
    coordinator.schedule(make_token())
    assert coordinator.state is RefreshState.SCHEDULED
    await coordinator.shutdown()


@pytest.mark.asyncio
async def test_cancel_returns_to_idle(store, make_token):
    coordinator = RefreshCoordinator(store, AsyncMock())
    coordinator.schedule(make_token())
    coordinator.cancel()
    assert coordinator.state is RefreshState.IDLE
    assert coordinator.fire_at is None

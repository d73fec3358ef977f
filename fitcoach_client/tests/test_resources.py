"""Resource wrappers build the right paths and payloads and unwrap the data envelope."""
import json

import httpx
import pytest

from fitcoach_client.api import ApiClient
from fitcoach_client.resources import (
    CheckIns,
    Clients,
    CoachLinks,
    Dashboard,
    DietPlans,
    Exercises,
    Foods,
    Meals,
    Notifications,
    Profile,
    WorkoutPlans,
    check_in_query,
)


class Recorder:
    def __init__(self, response=None):
        self.requests: list[httpx.Request] = []
        self.response = response if response is not None else {"data": {"id": "x"}}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(200, json=self.response)

    @property
    def last(self) -> tuple[str, str, dict]:
        request = self.requests[-1]
        body = json.loads(request.content) if request.content else None
        return request.method, request.url.path, body


def _api(store, recorder) -> ApiClient:
    store.set_token("tok")
    return ApiClient(store, base_url="http://api.test/api", transport=httpx.MockTransport(recorder))


def test_check_in_query_maps_and_drops_unset():
    assert check_in_query() == {}
    assert check_in_query(
        check_in_type="weight", status="pending", client_id="c1", date_from="2024-01-01", sort_direction="desc"
    ) == {"type": "weight", "status": "pending", "clientId": "c1", "from": "2024-01-01", "sortDirection": "desc"}


def test_check_in_query_rejects_unknown_values():
    with pytest.raises(ValueError):
        check_in_query(check_in_type="sleep")
    with pytest.raises(ValueError):
        check_in_query(status="archived")


@pytest.mark.asyncio
async def test_clients(store):
    recorder = Recorder()
    async with _api(store, recorder) as api:
        clients = Clients(api)
        await clients.list_all(page=2, page_size=25)
        params = recorder.requests[-1].url.params
        assert (params["page"], params["pageSize"]) == ("2", "25")

        assert await clients.get("c1") == {"id": "x"}
        assert recorder.last[:2] == ("GET", "/api/clients/c1")

        await clients.update("c1", {"name": "New"})
        assert recorder.last == ("PUT", "/api/clients/c1", {"name": "New", "id": "c1"})

        await clients.list_for_coach("k9")
        assert recorder.last[:2] == ("GET", "/api/clients/coach/k9")

        await clients.delete("c1")
        assert recorder.last[:2] == ("DELETE", "/api/clients/c1")


@pytest.mark.asyncio
async def test_check_ins(store):
    recorder = Recorder(response=[])
    async with _api(store, recorder) as api:
        check_ins = CheckIns(api)
        await check_ins.list_all(status="reviewed", search="knee")
        params = recorder.requests[-1].url.params
        assert dict(params) == {"status": "reviewed", "search": "knee"}

        await check_ins.mark_reviewed("ci-1")
        assert recorder.last[:2] == ("PUT", "/api/checkins/ci-1/review")

        await check_ins.mark_reviewed_bulk(["a", "b"])
        assert recorder.last == ("PUT", "/api/checkins/bulk/review", {"ids": ["a", "b"]})


@pytest.mark.asyncio
async def test_plans(store):
    recorder = Recorder()
    async with _api(store, recorder) as api:
        workouts = WorkoutPlans(api)
        assert await workouts.duplicate("w1") == {"id": "x"}
        assert recorder.last[:2] == ("POST", "/api/workout-plans/w1/duplicate")

        await workouts.assign({"clientId": "c1", "workoutPlanId": "w1", "startDate": "2024-02-01"})
        assert recorder.last[1] == "/api/workout-plans/assign"

        await workouts.for_client("c1")
        assert recorder.last[:2] == ("GET", "/api/workout-plans/client/c1")

        diets = DietPlans(api)
        await diets.templates()
        assert recorder.last[:2] == ("GET", "/api/diet-plans/templates")
        await diets.for_client("c1")
        assert recorder.last[:2] == ("GET", "/api/diet-plans/client/c1")


@pytest.mark.asyncio
async def test_catalogs_share_crud_shape(store):
    recorder = Recorder()
    async with _api(store, recorder) as api:
        for resource, base in ((Exercises(api), "/api/exercises"), (Foods(api), "/api/foods"), (Meals(api), "/api/meals")):
            await resource.create({"name": "n"})
            assert recorder.last == ("POST", base, {"name": "n"})
            await resource.update("i1", {"name": "m"})
            assert recorder.last == ("PUT", f"{base}/i1", {"name": "m"})


@pytest.mark.asyncio
async def test_notifications(store):
    recorder = Recorder(response={"updated": 3})
    async with _api(store, recorder) as api:
        notifications = Notifications(api)
        assert await notifications.mark_all_read() == 3
        assert recorder.last[:2] == ("POST", "/api/notifications/read-all")
        await notifications.mark_read("n1")
        assert recorder.last[:2] == ("POST", "/api/notifications/n1/read")


@pytest.mark.asyncio
async def test_profile_requires_display_name(store):
    recorder = Recorder(response={"displayName": "Kim"})
    async with _api(store, recorder) as api:
        profile = Profile(api)
        with pytest.raises(ValueError):
            await profile.update_me({"bio": "hi"})
        assert recorder.requests == []
        assert await profile.update_me({"displayName": "Kim"}) == {"displayName": "Kim"}
        assert recorder.last[:2] == ("PUT", "/api/profile/me")


@pytest.mark.asyncio
async def test_dashboard_and_links(store):
    recorder = Recorder(response={"clients": 4})
    async with _api(store, recorder) as api:
        assert await Dashboard(api).coach_stats() == {"clients": 4}
        assert recorder.last[1] == "/api/dashboard/coach"
        await Dashboard(api).client_stats()
        assert recorder.last[1] == "/api/dashboard/client"

        links = CoachLinks(api)
        await links.my_client("c7")
        assert recorder.last[1] == "/api/coach/clients/c7"
        await links.my_coach()
        assert recorder.last[1] == "/api/client/coach"

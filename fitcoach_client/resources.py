"""
Thin resource wrappers over ApiClient for the rest of the FitCoach API.
They only build paths and payloads; auth, retry and errors are ApiClient's job.
Some endpoints answer with an {"data": ...} envelope, which is unwrapped here.
"""
from typing import Any

from fitcoach_client import endpoints
from fitcoach_client.api import ApiClient

CHECK_IN_TYPES = {"weight", "workout", "diet", "photos"}
CHECK_IN_STATUSES = {"pending", "reviewed"}
CHECK_IN_QUERY_KEYS = ("type", "status", "clientId", "search", "from", "to", "sortBy", "sortDirection")


def _data(response: Any) -> Any:
    if isinstance(response, dict) and "data" in response:
        return response["data"]
    return response


class _Resource:
    def __init__(self, api: ApiClient) -> None:
        self.api = api


class Clients(_Resource):
    async def list_all(self, page: int = 1, page_size: int = 10) -> dict:
        """Paginated: {items/data, page, pageSize, total...} exactly as the backend sends it."""
        return await self.api.get(endpoints.CLIENTS, params={"page": page, "pageSize": page_size})

    async def list_for_coach(self, coach_id: str) -> list:
        return _data(await self.api.get(endpoints.clients_by_coach(coach_id)))

    async def get(self, client_id: str) -> dict:
        return _data(await self.api.get(endpoints.client_by_id(client_id)))

    async def create(self, payload: dict) -> dict:
        return _data(await self.api.post(endpoints.CLIENTS, payload))

    async def update(self, client_id: str, payload: dict) -> dict:
        return _data(await self.api.put(endpoints.client_by_id(client_id), {**payload, "id": client_id}))

    async def delete(self, client_id: str) -> None:
        await self.api.delete(endpoints.client_by_id(client_id))


def check_in_query(
    *,
    check_in_type: str | None = None,
    status: str | None = None,
    client_id: str | None = None,
    search: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    sort_by: str | None = None,
    sort_direction: str | None = None,
) -> dict[str, str]:
    """Query params for GET /checkins; unset filters are left out."""
    if check_in_type is not None and check_in_type not in CHECK_IN_TYPES:
        raise ValueError(f"unknown check-in type: {check_in_type!r}")
    if status is not None and status not in CHECK_IN_STATUSES:
        raise ValueError(f"unknown check-in status: {status!r}")
    values = (check_in_type, status, client_id, search, date_from, date_to, sort_by, sort_direction)
    return {key: value for key, value in zip(CHECK_IN_QUERY_KEYS, values) if value}


class CheckIns(_Resource):
    async def list_all(self, **filters) -> list:
        return await self.api.get(endpoints.CHECK_INS, params=check_in_query(**filters))

    async def get(self, check_in_id: str) -> dict:
        return await self.api.get(endpoints.check_in_by_id(check_in_id))

    async def create(self, payload: dict) -> dict:
        return await self.api.post(endpoints.CHECK_INS, payload)

    async def update(self, check_in_id: str, payload: dict) -> dict:
        return await self.api.put(endpoints.check_in_by_id(check_in_id), payload)

    async def delete(self, check_in_id: str) -> None:
        await self.api.delete(endpoints.check_in_by_id(check_in_id))

    async def mark_reviewed(self, check_in_id: str) -> dict:
        return await self.api.put(endpoints.check_in_review(check_in_id))

    async def mark_reviewed_bulk(self, check_in_ids: list[str]) -> list:
        return await self.api.put(endpoints.CHECK_INS_BULK_REVIEW, {"ids": list(check_in_ids)})


class WorkoutPlans(_Resource):
    async def list_all(self) -> list:
        return _data(await self.api.get(endpoints.WORKOUT_PLANS))

    async def get(self, plan_id: str) -> dict:
        return _data(await self.api.get(endpoints.workout_plan_by_id(plan_id)))

    async def create(self, payload: dict) -> dict:
        return _data(await self.api.post(endpoints.WORKOUT_PLANS, payload))

    async def update(self, plan_id: str, payload: dict) -> dict:
        return _data(await self.api.put(endpoints.workout_plan_by_id(plan_id), payload))

    async def delete(self, plan_id: str) -> None:
        await self.api.delete(endpoints.workout_plan_by_id(plan_id))

    async def duplicate(self, plan_id: str) -> dict:
        return _data(await self.api.post(endpoints.workout_plan_duplicate(plan_id)))

    async def assign(self, payload: dict) -> dict:
        """payload: {clientId, workoutPlanId, startDate, durationDays?}"""
        return _data(await self.api.post(endpoints.WORKOUT_PLANS_ASSIGN, payload))

    async def for_client(self, client_id: str) -> list:
        return _data(await self.api.get(endpoints.workout_plans_for_client(client_id)))


class DietPlans(_Resource):
    async def list_all(self) -> list:
        return _data(await self.api.get(endpoints.DIET_PLANS))

    async def templates(self) -> list:
        return _data(await self.api.get(endpoints.DIET_PLAN_TEMPLATES))

    async def get(self, plan_id: str) -> dict:
        return _data(await self.api.get(endpoints.diet_plan_by_id(plan_id)))

    async def create(self, payload: dict) -> dict:
        return _data(await self.api.post(endpoints.DIET_PLANS, payload))

    async def update(self, plan_id: str, payload: dict) -> dict:
        return _data(await self.api.put(endpoints.diet_plan_by_id(plan_id), payload))

    async def delete(self, plan_id: str) -> None:
        await self.api.delete(endpoints.diet_plan_by_id(plan_id))

    async def assign(self, payload: dict) -> dict:
        return _data(await self.api.post(endpoints.DIET_PLANS_ASSIGN, payload))

    async def for_client(self, client_id: str) -> list:
        return _data(await self.api.get(endpoints.diet_plans_for_client(client_id)))


class Notifications(_Resource):
    async def list_all(self) -> list:
        return await self.api.get(endpoints.NOTIFICATIONS)

    async def mark_read(self, notification_id: str) -> dict:
        return await self.api.post(endpoints.notification_mark_read(notification_id))

    async def mark_all_read(self) -> int:
        """Number of notifications updated."""
        response = await self.api.post(endpoints.NOTIFICATIONS_READ_ALL)
        return int(response.get("updated", 0))


class Dashboard(_Resource):
    async def coach_stats(self) -> dict:
        return await self.api.get(endpoints.DASHBOARD_COACH)

    async def client_stats(self) -> dict:
        return await self.api.get(endpoints.DASHBOARD_CLIENT)


class Profile(_Resource):
    async def get_me(self) -> dict:
        return await self.api.get(endpoints.PROFILE_ME)

    async def update_me(self, payload: dict) -> dict:
        if not payload.get("displayName"):
            raise ValueError("displayName is required")
        return await self.api.put(endpoints.PROFILE_ME, payload)


class _Catalog(_Resource):
    """Coach-owned catalog entries (exercises, foods, meals): plain CRUD with the {"data": ...} envelope."""

    base: str

    def _item(self, item_id: str) -> str:
        return f"{self.base}/{item_id}"

    async def list_all(self) -> list:
        return _data(await self.api.get(self.base))

    async def get(self, item_id: str) -> dict:
        return _data(await self.api.get(self._item(item_id)))

    async def create(self, payload: dict) -> dict:
        return _data(await self.api.post(self.base, payload))

    async def update(self, item_id: str, payload: dict) -> dict:
        return _data(await self.api.put(self._item(item_id), payload))

    async def delete(self, item_id: str) -> None:
        await self.api.delete(self._item(item_id))


class Exercises(_Catalog):
    base = endpoints.EXERCISES


class Foods(_Catalog):
    base = endpoints.FOODS


class Meals(_Catalog):
    base = endpoints.MEALS


class CoachLinks(_Resource):
    """Coach's view of linked clients, and a client's view of its coach."""

    async def my_clients(self) -> list:
        return await self.api.get(endpoints.COACH_CLIENTS)

    async def my_client(self, client_id: str) -> dict:
        return await self.api.get(endpoints.coach_client(client_id))

    async def my_coach(self) -> dict:
        return await self.api.get(endpoints.CLIENT_COACH)

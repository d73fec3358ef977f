"""
REST endpoint paths, relative to API_BASE_URL. Same routes the web front end calls.
"""

# Auth
AUTH_LOGIN = "/auth/login"
AUTH_REGISTER = "/auth/register"
AUTH_REFRESH = "/auth/refresh"
AUTH_LOGOUT = "/auth/logout"
AUTH_ME = "/auth/me"

# Profile (settings)
PROFILE_ME = "/profile/me"

# Coach <-> client links
COACH_CLIENTS = "/coach/clients"
CLIENT_COACH = "/client/coach"

CLIENTS = "/clients"
CHECK_INS = "/checkins"
CHECK_INS_BULK_REVIEW = "/checkins/bulk/review"
NOTIFICATIONS = "/notifications"
NOTIFICATIONS_READ_ALL = "/notifications/read-all"
EXERCISES = "/exercises"
WORKOUT_PLANS = "/workout-plans"
WORKOUT_PLANS_ASSIGN = "/workout-plans/assign"
FOODS = "/foods"
MEALS = "/meals"
DIET_PLANS = "/diet-plans"
DIET_PLAN_TEMPLATES = "/diet-plans/templates"
DIET_PLANS_ASSIGN = "/diet-plans/assign"
DASHBOARD_COACH = "/dashboard/coach"
DASHBOARD_CLIENT = "/dashboard/client"


def coach_client(client_id: str) -> str:
    return f"{COACH_CLIENTS}/{client_id}"


def client_by_id(client_id: str) -> str:
    return f"{CLIENTS}/{client_id}"


def clients_by_coach(coach_id: str) -> str:
    return f"{CLIENTS}/coach/{coach_id}"


def check_in_by_id(check_in_id: str) -> str:
    return f"{CHECK_INS}/{check_in_id}"


def check_in_review(check_in_id: str) -> str:
    return f"{CHECK_INS}/{check_in_id}/review"


def notification_mark_read(notification_id: str) -> str:
    return f"{NOTIFICATIONS}/{notification_id}/read"


def workout_plan_by_id(plan_id: str) -> str:
    return f"{WORKOUT_PLANS}/{plan_id}"


def workout_plan_duplicate(plan_id: str) -> str:
    return f"{WORKOUT_PLANS}/{plan_id}/duplicate"


def workout_plans_for_client(client_id: str) -> str:
    return f"{WORKOUT_PLANS}/client/{client_id}"


def diet_plan_by_id(plan_id: str) -> str:
    return f"{DIET_PLANS}/{plan_id}"


def diet_plans_for_client(client_id: str) -> str:
    return f"{DIET_PLANS}/client/{client_id}"

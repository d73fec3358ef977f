"""
Stub API configuration. Development defaults only; set FITCOACH_STUB_JWT_SECRET outside local runs.
"""
import os

# SQLite DB for development and tests
DATABASE_URL = os.environ.get("FITCOACH_STUB_DATABASE_URL", "sqlite:///./fitcoach_stub.db")

# HS256 signing secret for access tokens (the real backend uses a symmetric key as well)
JWT_SECRET = os.environ.get("FITCOACH_STUB_JWT_SECRET", "dev-only-fitcoach-stub-secret-change-me")
JWT_ALGORITHM = "HS256"
JWT_ISSUER = os.environ.get("FITCOACH_STUB_JWT_ISSUER", "FitCoachPro")
JWT_AUDIENCE = os.environ.get("FITCOACH_STUB_JWT_AUDIENCE", "FitCoachPro.Client")

# Access token lifetime (seconds). Short by default so the client's refresh cycle is easy to watch.
ACCESS_TOKEN_SECONDS = int(os.environ.get("FITCOACH_STUB_ACCESS_TOKEN_SECONDS", "300"))

# Refresh token lifetime (days)
REFRESH_TOKEN_DAYS = int(os.environ.get("FITCOACH_STUB_REFRESH_TOKEN_DAYS", "14"))

# All routes live under this prefix, matching the client's default base URL
API_PREFIX = "/api"

PORT = int(os.environ.get("FITCOACH_STUB_PORT", "5098"))

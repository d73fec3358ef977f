"""
FitCoach client configuration. Values come from the environment with local-dev defaults.
No secrets in this file; tokens live in the session store.
"""
import os

# REST API base URL (the backend mounts every route under /api)
API_BASE_URL = os.environ.get("FITCOACH_API_URL", "http://localhost:5098/api").rstrip("/")

# Directory holding the persisted session slots (access token, refresh token, identity, view mode)
STORAGE_DIR = os.environ.get("FITCOACH_STORAGE_DIR", os.path.join(os.path.expanduser("~"), ".fitcoach"))

# Login entry point; forced logout always ends here
LOGIN_PATH = os.environ.get("FITCOACH_LOGIN_PATH", "/login")

# Upper bound for every HTTP call, refresh and session validation included
REQUEST_TIMEOUT_SECONDS = float(os.environ.get("FITCOACH_REQUEST_TIMEOUT", "10"))

# Refresh this long before the access token's exp claim (clock skew + latency)
REFRESH_BUFFER_SECONDS = int(os.environ.get("FITCOACH_REFRESH_BUFFER_SECONDS", "60"))

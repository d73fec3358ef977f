"""
FitCoach stub API: the /api/auth subset of the FitCoach backend, for local runs and integration tests.
Port 5098 by default, same as the client's default base URL.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fitcoach_stub.auth_endpoints import router as auth_router
from fitcoach_stub.config import API_PREFIX, PORT
from fitcoach_stub.database import SessionLocal, init_db
from fitcoach_stub.seed import seed_from_env

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and seed a user from env on startup."""
    init_db()
    db = SessionLocal()
    try:
        seed_from_env(db)
    finally:
        db.close()
    yield


app = FastAPI(title="FitCoach Stub API", version="0.1.0", lifespan=lifespan)
app.include_router(auth_router, prefix=API_PREFIX, tags=["auth"])


@app.exception_handler(StarletteHTTPException)
async def message_error_handler(request: Request, exc: StarletteHTTPException):
    """Errors go out as {"message": ...} like the real backend, not FastAPI's {"detail": ...}."""
    if isinstance(exc.detail, dict):
        body = exc.detail
    else:
        body = {"message": str(exc.detail)}
    return JSONResponse(body, status_code=exc.status_code, headers=getattr(exc, "headers", None))


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "fitcoach_stub"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "fitcoach_stub.main:app",
        host="127.0.0.1",
        port=PORT,
        reload=True,
    )

import logging
import time
from datetime import datetime
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from .core.config import Config
from .core.dates import to_iso_instant, utcnow
from .core.middleware import global_exception_handler, log_requests, request_id_for
from .core.records import format_user_data, merge_user_defaults, process_external_data
from .core.validation import ensure_request, ensure_username, sanitize_input
from .services.generator import generate_random_user
from .services.stats import get_user_stats

logger = logging.getLogger(__name__)

REQUIRED_USER_FIELDS = ('username', 'email')


def build_user(payload: dict[str, Any], request_id: str) -> dict[str, Any]:
    """Sanitize a signup payload and fill in the default role, preferences and metadata.

    Only the username, email and preferences come from the client; role,
    active flag, metadata, id and timestamps are server-owned.
    """
    cleaned = {
        'username': sanitize_input(payload.get('username')),
        'email': sanitize_input(payload.get('email')),
        'createdAt': to_iso_instant(utcnow()),
    }
    ensure_username(cleaned['username'])
    ensure_request(cleaned, REQUIRED_USER_FIELDS)

    user = {**format_user_data(cleaned), **merge_user_defaults({'preferences': payload.get('preferences')})}
    logger.debug(f"[{request_id}] Built user {user['username']}")
    return user


Config.validate()

# Initialize FastAPI
app = FastAPI(title="User Data API")

# CORS setup
ALLOWED_ORIGINS = Config.allowed_origins()

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

@app.middleware("http")
async def _log_requests(request, call_next):
    return await log_requests(request, call_next)

@app.exception_handler(Exception)
async def _global_exception_handler(request, exc):
    return await global_exception_handler(request, exc)


@app.post("/users")
async def create_user(request: Request, payload: Any = Body(None)):
    """Validate a signup payload and return the user with defaults applied."""
    request_id = request_id_for(request)
    ensure_request(payload, REQUIRED_USER_FIELDS)
    return build_user(payload, request_id)


@app.post("/users/format")
async def format_user(payload: Any = Body(None)):
    return format_user_data(payload)


@app.post("/users/stats")
async def user_stats(payload: Any = Body(None)):
    stats = get_user_stats(payload, active_window_days=Config.ACTIVE_WINDOW_DAYS)
    if stats is None:
        raise HTTPException(status_code=400, detail="Request body must be a JSON array of users")
    return stats


@app.post("/users/import")
async def import_users(payload: Any = Body(None)):
    """Normalize records coming from an external system."""
    if not isinstance(payload, list):
        raise HTTPException(status_code=400, detail="Request body must be a JSON array of records")
    records = process_external_data(payload)
    logger.info(f"Imported {len(records)} external records")
    return {"count": len(records), "records": records}


@app.get("/users/random")
async def random_users(count: int = Query(1)):
    if count < 1 or count > Config.MAX_GENERATED_USERS:
        raise HTTPException(
            status_code=422,
            detail=f"count must be between 1 and {Config.MAX_GENERATED_USERS}",
        )
    return [generate_random_user() for _ in range(count)]


@app.get("/health")
async def health_check():
    """Basic health and configuration check for the API."""
    health_start_time = time.time()

    try:
        Config.validate()
        status = "healthy"
        error = None
    except ValueError as e:
        logger.error(f"Health check failed: {e}")
        status = "unhealthy"
        error = str(e)

    health_duration = time.time() - health_start_time
    result = {
        "status": status,
        "service": "user-data-api",
        "environment": Config.ENVIRONMENT,
        "timestamp": datetime.now().isoformat(),
        "response_time_ms": round(health_duration * 1000, 2)
    }
    if error:
        result["error"] = error
    return result


@app.get("/")
async def root():
    """Return basic API information."""

    return {
        "service": "User Data API",
        "version": "1.0",
        "endpoints": {
            "create_user": "/users",
            "format_user": "/users/format",
            "user_stats": "/users/stats",
            "import_users": "/users/import",
            "random_users": "/users/random",
            "health": "/health"
        },
        "timestamp": datetime.now().isoformat(),
        "description": "API for shaping, validating and summarizing user records"
    }

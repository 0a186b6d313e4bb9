import logging
import re
import time
import uuid
from typing import Callable

from fastapi import Request
from fastapi.responses import JSONResponse

from .config import Config


logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
REQUEST_ID_PATTERN = re.compile(r'^[A-Za-z0-9._-]{1,64}$')
SLOW_REQUEST_SECONDS = 1.0


def request_id_for(request: Request) -> str:
    """Return the id assigned to this request, minting one if the middleware did not run."""
    request_id = getattr(request.state, "request_id", None)
    if request_id is None:
        supplied = request.headers.get(REQUEST_ID_HEADER, "")
        request_id = supplied if REQUEST_ID_PATTERN.match(supplied) else uuid.uuid4().hex[:16]
        request.state.request_id = request_id
    return request_id


def _apply_cors_headers(request: Request, response):
    origin = request.headers.get("origin")
    if origin and origin in Config.allowed_origins():
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "*"
    return response


async def log_requests(request: Request, call_next: Callable):
    """Tag each request with an id, echo it back and log failed or slow calls."""
    start_time = time.perf_counter()
    request_id = request_id_for(request)

    try:
        response = await call_next(request)
    except Exception as e:
        elapsed = time.perf_counter() - start_time
        logger.error(f"[{request_id}] {request.method} {request.url.path} failed after {elapsed:.2f}s: {e}")
        raise

    elapsed = time.perf_counter() - start_time
    response.headers[REQUEST_ID_HEADER] = request_id
    if response.status_code >= 400:
        logger.info(f"[{request_id}] {request.method} {request.url.path} -> {response.status_code} in {elapsed:.2f}s")
    elif elapsed > SLOW_REQUEST_SECONDS:
        logger.warning(f"[{request_id}] Slow request {request.method} {request.url.path} took {elapsed:.2f}s")
    return response


async def global_exception_handler(request: Request, exc: Exception):
    request_id = request_id_for(request)
    logger.error(f"[{request_id}] Unhandled exception in {request.method} {request.url.path}: {exc}", exc_info=True)

    response = JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "request_id": request_id},
        headers={REQUEST_ID_HEADER: request_id},
    )
    return _apply_cors_headers(request, response)

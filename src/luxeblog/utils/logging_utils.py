"""
Request and lifecycle logging helpers used by `luxeblog.main`.

- `RequestLoggingMiddleware`: one line per request with method, path, status and duration.
- `log_application_lifecycle`: startup/shutdown milestones with structured details.
- `log_error_with_context`: an exception plus the operation context it happened in.
"""

import time
import uuid
from typing import Any, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from luxeblog.managers.logging_manager import get_logger

request_logger = get_logger(prefix="[REQUEST]")
lifecycle_logger = get_logger(prefix="[LIFECYCLE]")
error_logger = get_logger(prefix="[ERROR]")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every HTTP request and attaches an `X-Request-ID` header to the response."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        start_time = time.time()
        client = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.time() - start_time
            request_logger.error(
                "%s %s failed after %.3fs (id=%s, client=%s): %s",
                request.method, request.url.path, duration, request_id, client, e,
            )
            raise

        duration = time.time() - start_time
        log = request_logger.warning if response.status_code >= 500 else request_logger.info
        log(
            "%s %s -> %d in %.3fs (id=%s, client=%s)",
            request.method, request.url.path, response.status_code, duration, request_id, client,
        )
        response.headers["X-Request-ID"] = request_id
        return response


def log_application_lifecycle(event: str, details: Optional[Dict[str, Any]] = None) -> None:
    """Log a named lifecycle milestone such as `startup_completed`."""
    if details:
        lifecycle_logger.info("%s | %s", event, details)
    else:
        lifecycle_logger.info("%s", event)


def log_error_with_context(error: BaseException, context: Optional[Dict[str, Any]] = None) -> None:
    """Log `error` with its traceback and the operation context it was raised in."""
    error_logger.error(
        "%s: %s | context=%s",
        type(error).__name__, error, context or {},
        exc_info=(type(error), error, error.__traceback__),
    )

"""
# LuxeBlog API - Main Application Module

Entry point and lifecycle orchestrator for the LuxeBlog FastAPI application.

## Startup Sequence

1. **Database Connection**: `db_manager.connect()` (retries with exponential backoff)
2. **Index Creation**: unique slug, name and id indexes for posts, categories, tags, comments
3. **Taxonomy Seeding**: default categories and tags, when `SEED_DEFAULT_TAXONOMY` is set

Shutdown closes the MongoDB connection pool.

## Error Envelope

Every failure is rendered as:

```json
{"success": false, "message": "Post not found", "error": {"type": "NotFound", ...}}
```

| Exception | Status |
|-----------|--------|
| `ValidationError`, FastAPI request validation | 400 |
| `ConflictError`, stray `DuplicateKeyError` | 400 ("Duplicate field value") |
| `UnauthenticatedError` | 401 |
| `ForbiddenError` | 403 |
| `NotFoundError` | 404 |
| anything else | 500 ("Server error") |

Outside production (`DEBUG=True`) the `error` object also carries `details`, `path`, `method` and
`timestamp`; in production it carries only `type`.

## Running

```bash
uvicorn luxeblog.main:app --reload --host 127.0.0.1 --port 10000

# or via the console script
luxeblog-api
```

- **Swagger UI**: `/docs`
- **Prometheus Metrics**: `/metrics` (when `METRICS_ENABLED`)

Attributes:
    app (FastAPI): The ASGI application.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
import time
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware
import uvicorn

from luxeblog import __version__
from luxeblog.config import settings
from luxeblog.database import db_manager
from luxeblog.exceptions import BlogError, ConflictError, ServerError, ValidationError
from luxeblog.managers.logging_manager import get_logger
from luxeblog.routes.blog import router as blog_router
from luxeblog.routes.blog_taxonomy import router as taxonomy_router
from luxeblog.routes.main import router as main_router
from luxeblog.utils.init_database import seed_default_taxonomy
from luxeblog.utils.logging_utils import (
    RequestLoggingMiddleware,
    log_application_lifecycle,
    log_error_with_context,
)

logger = get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Connect to MongoDB, ensure indexes and default taxonomy, then close the pool on shutdown.

    Raises:
        HTTPException(503): The database could not be reached or prepared.
    """
    startup_start_time = time.time()
    log_application_lifecycle(
        "startup_initiated",
        {
            "app_name": "LuxeBlog API",
            "version": __version__,
            "environment": "production" if settings.is_production else "development",
            "debug_mode": settings.DEBUG,
        },
    )

    try:
        db_connect_start = time.time()
        logger.info("Initiating database connection...")
        await db_manager.connect()
        log_application_lifecycle(
            "database_connected",
            {
                "connection_duration": f"{time.time() - db_connect_start:.3f}s",
                "database_name": settings.MONGODB_DATABASE,
                "connection_url": (
                    settings.MONGODB_URL.split("@")[-1] if "@" in settings.MONGODB_URL else settings.MONGODB_URL
                ),
            },
        )

        indexes_start = time.time()
        logger.info("Creating/verifying database indexes...")
        await db_manager.create_indexes()
        log_application_lifecycle("database_indexes_ready", {"indexes_duration": f"{time.time() - indexes_start:.3f}s"})

        if settings.SEED_DEFAULT_TAXONOMY:
            seed_start = time.time()
            summary = await seed_default_taxonomy()
            log_application_lifecycle("taxonomy_seeded", {**summary, "duration": f"{time.time() - seed_start:.3f}s"})
        else:
            log_application_lifecycle("taxonomy_seed_skipped")

    except Exception as e:
        log_application_lifecycle(
            "startup_failed",
            {
                "error": str(e),
                "error_type": type(e).__name__,
                "startup_duration": f"{time.time() - startup_start_time:.3f}s",
            },
        )
        log_error_with_context(e, {"operation": "application_startup", "phase": "database_connection"})
        raise HTTPException(status_code=503, detail="Service not ready: Database connection failed") from e

    log_application_lifecycle(
        "startup_completed", {"total_startup_duration": f"{time.time() - startup_start_time:.3f}s"}
    )

    yield

    shutdown_start_time = time.time()
    log_application_lifecycle("shutdown_initiated")
    try:
        logger.info("Disconnecting from database...")
        await db_manager.disconnect()
        log_application_lifecycle("database_disconnected")
    except Exception as e:
        log_error_with_context(e, {"operation": "database_disconnection"})

    log_application_lifecycle(
        "shutdown_completed", {"total_shutdown_duration": f"{time.time() - shutdown_start_time:.3f}s"}
    )


app = FastAPI(
    title="LuxeBlog API",
    description="Multi-author blog backend: posts, categories, tags and moderated, threaded comments.",
    version=__version__,
    lifespan=lifespan,
)


# Error envelope

def error_response(
    request: Request,
    status_code: int,
    error_type: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """Render the `{success: false, message, error}` envelope."""
    if settings.is_production:
        error: Dict[str, Any] = {"type": error_type}
    else:
        error = {
            "type": error_type,
            "details": details or {},
            "path": request.url.path,
            "method": request.method,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, "error": error})


@app.exception_handler(BlogError)
async def blog_error_handler(request: Request, exc: BlogError):
    if exc.status_code >= 500:
        log_error_with_context(exc, {"path": request.url.path, "method": request.method, "error": exc.to_dict()})
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.error_type, exc.message)
    return error_response(request, exc.status_code, exc.error_type, exc.message, exc.details)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", ())[1:]), "message": err.get("msg")}
        for err in exc.errors()
    ]
    message = ", ".join(f"{err['field']}: {err['message']}" for err in errors) or "Invalid request"
    return error_response(request, ValidationError.status_code, ValidationError.error_type, message, {"errors": errors})


@app.exception_handler(DuplicateKeyError)
async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
    conflict = ConflictError()
    logger.warning("Unhandled duplicate key on %s %s: %s", request.method, request.url.path, exc)
    return error_response(request, conflict.status_code, conflict.error_type, conflict.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    error_type = {401: "Unauthenticated", 403: "Forbidden", 404: "NotFound"}.get(exc.status_code, "HTTPError")
    return error_response(request, exc.status_code, error_type, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    log_error_with_context(exc, {"path": request.url.path, "method": request.method})
    server_error = ServerError()
    return error_response(request, server_error.status_code, server_error.error_type, server_error.message)


# Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.CLIENT_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)
log_application_lifecycle(
    "middleware_configured",
    {"middleware": ["CORSMiddleware", "RequestLoggingMiddleware"], "cors_origins": [settings.CLIENT_URL]},
)

# Routers
routers_config = [
    ("main", main_router, "Health check"),
    ("blog", blog_router, "Post and comment endpoints"),
    ("taxonomy", taxonomy_router, "Category and tag endpoints"),
]

included_routers = []
for router_name, router, description in routers_config:
    app.include_router(router)
    included_routers.append({"name": router_name, "description": description})
    logger.debug("Included %s router: %s", router_name, description)

log_application_lifecycle(
    "routers_configured",
    {"total_routers": len(routers_config), "routers": included_routers},
)

# Prometheus metrics
if settings.METRICS_ENABLED:
    try:
        instrumentator = Instrumentator(
            should_group_status_codes=True,
            should_ignore_untemplated=True,
            should_respect_env_var=False,
            should_instrument_requests_inprogress=True,
        )
        instrumentator.instrument(app).expose(app, include_in_schema=False, endpoint="/metrics")
        log_application_lifecycle("prometheus_configured", {"metrics_endpoint": "/metrics"})
    except Exception as e:
        log_error_with_context(e, {"operation": "prometheus_setup"})
        logger.error("Failed to configure Prometheus metrics: %s", e)


def run():
    """Console entry point."""
    uvicorn.run("luxeblog.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG, log_level="info")


if __name__ == "__main__":
    run()

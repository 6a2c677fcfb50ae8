"""
Service-level endpoints that are not part of the blog domain.

- `GET /api/health` - Liveness plus a MongoDB ping. Returns 503 when the database is unreachable.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from luxeblog import __version__
from luxeblog.database import db_manager

router = APIRouter(prefix="/api", tags=["main"])


@router.get("/health")
async def health():
    database_ok = await db_manager.health_check()
    body = {
        "success": database_ok,
        "data": {
            "status": "ok" if database_ok else "degraded",
            "database": "connected" if database_ok else "unavailable",
            "version": __version__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    }
    return JSONResponse(status_code=200 if database_ok else 503, content=body)

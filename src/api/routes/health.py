"""Liveness and readiness endpoints.

Readiness requires the database, and also the Kafka producer when audit
publishing is enabled.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from src.api.dependencies import get_audit
from src.config import settings
from src.shared.audit import AuditEmitter

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    from src.main import get_uptime

    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "uptime_seconds": get_uptime(),
    }


@router.get("/ready")
async def ready(audit: AuditEmitter = Depends(get_audit)) -> JSONResponse:  # noqa: B008
    from src.db.database import check_db

    checks = {"database": await check_db()}
    if settings.audit_publish_enabled:
        checks["audit_publisher"] = audit.publishing

    is_ready = all(checks.values())
    return JSONResponse(
        status_code=200 if is_ready else 503,
        content={"status": "ready" if is_ready else "degraded", **checks},
    )

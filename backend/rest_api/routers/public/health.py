"""
Liveness and dependency health.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from shared.config.settings import settings
from shared.infrastructure.db import get_db_context
from shared.infrastructure.redis_client import get_redis_sync_client
from shared.utils.health import HealthStatus, aggregate_health_checks, health_check_with_timeout

SERVICE_NAME = "rest-api"

router = APIRouter(prefix="/api", tags=["health"])


@health_check_with_timeout(timeout=3.0, component="database")
def check_database_health() -> dict:
    with get_db_context() as db:
        db.execute(text("SELECT 1"))
        return {"dialect": db.get_bind().dialect.name}


@health_check_with_timeout(timeout=3.0, component="redis")
def check_redis_health() -> None:
    get_redis_sync_client().ping()


@router.get("/health")
def health_check():
    """Liveness only; no dependency is touched."""
    return {"status": HealthStatus.HEALTHY.value, "service": SERVICE_NAME, "environment": settings.environment}


@router.get("/health/detailed")
def detailed_health_check():
    """
    Database always; Redis only while token revocation is enabled.
    503 when any of them is down.
    """
    checks = [check_database_health()]
    if settings.token_blacklist_enabled:
        checks.append(check_redis_health())

    health = aggregate_health_checks(checks)
    body = {
        "service": SERVICE_NAME,
        "environment": settings.environment,
        "status": health["status"],
        "dependencies": health["components"],
    }
    if health["status"] == HealthStatus.HEALTHY.value:
        return body
    return JSONResponse(body, status_code=503)

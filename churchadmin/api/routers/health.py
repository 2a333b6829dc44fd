"""Health check endpoints for Church Admin.

Provides container-orchestrator style probes:
- /health: Basic health check
- /health/live: Liveness probe (is the app running?)
- /health/ready: Readiness probe (is the database reachable?)
- /health/detailed: Every check, including disk and memory

Redis only backs the rate limiter, which fails open, so an unreachable
Redis degrades the detailed report but never fails readiness.
"""

from datetime import datetime, timezone
from typing import Any, Dict

import psutil
import redis
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from churchadmin import __version__
from churchadmin.api.deps import get_db
from churchadmin.core.config import get_settings

router = APIRouter(tags=["health"])

# Thresholds
DISK_WARNING_PERCENT = 85
DISK_CRITICAL_PERCENT = 95
MEMORY_WARNING_PERCENT = 85
MEMORY_CRITICAL_PERCENT = 95


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _grade(percent_used: float, warning: float, critical: float) -> str:
    if percent_used >= critical:
        return "critical"
    if percent_used >= warning:
        return "warning"
    return "healthy"


def check_database(db: Session) -> Dict[str, Any]:
    """Check database connectivity."""
    try:
        db.execute(text("SELECT 1")).fetchone()
        return {
            "status": "healthy",
            "dialect": db.get_bind().dialect.name,
        }
    except SQLAlchemyError as e:
        return {
            "status": "unhealthy",
            "error": str(e),
        }


def check_redis() -> Dict[str, Any]:
    """Check Redis connectivity."""
    try:
        r = redis.from_url(
            get_settings().redis_url,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            r.ping()
            info = r.info("server")
        finally:
            r.close()

        return {
            "status": "healthy",
            "version": info.get("redis_version", "unknown"),
        }
    except (RedisError, OSError) as e:
        return {
            "status": "degraded",
            "error": str(e),
        }


def check_disk() -> Dict[str, Any]:
    """Check disk space."""
    try:
        disk = psutil.disk_usage("/")
    except OSError as e:
        return {"status": "unknown", "error": str(e)}

    return {
        "status": _grade(disk.percent, DISK_WARNING_PERCENT, DISK_CRITICAL_PERCENT),
        "total_gb": round(disk.total / (1024**3), 2),
        "used_gb": round(disk.used / (1024**3), 2),
        "free_gb": round(disk.free / (1024**3), 2),
        "percent_used": disk.percent,
    }


def check_memory() -> Dict[str, Any]:
    """Check memory usage."""
    try:
        memory = psutil.virtual_memory()
    except OSError as e:
        return {"status": "unknown", "error": str(e)}

    return {
        "status": _grade(memory.percent, MEMORY_WARNING_PERCENT, MEMORY_CRITICAL_PERCENT),
        "total_gb": round(memory.total / (1024**3), 2),
        "available_gb": round(memory.available / (1024**3), 2),
        "percent_used": memory.percent,
    }


@router.get("/health")
async def health_check():
    """Returns 200 whenever the application is running."""
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": _timestamp(),
    }


@router.get("/health/live")
async def liveness_probe():
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "alive",
            "timestamp": _timestamp(),
        },
    )


@router.get("/health/ready")
def readiness_probe(db: Session = Depends(get_db)):
    """
    Readiness probe.

    Returns 503 when the database cannot be reached, so traffic is not
    routed to this instance.
    """
    checks = {"database": check_database(db)}
    unhealthy = [name for name, check in checks.items() if check["status"] == "unhealthy"]

    if unhealthy:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "checks": checks,
                "failed": unhealthy,
                "timestamp": _timestamp(),
            },
        )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "ready",
            "checks": checks,
            "timestamp": _timestamp(),
        },
    )


@router.get("/health/detailed")
def detailed_health_check(db: Session = Depends(get_db)):
    """Database, Redis, disk and memory checks in one report."""
    checks = {
        "database": check_database(db),
        "redis": check_redis(),
        "disk": check_disk(),
        "memory": check_memory(),
    }

    statuses = [check.get("status", "unknown") for check in checks.values()]

    if "unhealthy" in statuses or "critical" in statuses:
        overall_status = "unhealthy"
        http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    elif "warning" in statuses or "degraded" in statuses:
        overall_status = "degraded"
        http_status = status.HTTP_200_OK
    else:
        overall_status = "healthy"
        http_status = status.HTTP_200_OK

    return JSONResponse(
        status_code=http_status,
        content={
            "status": overall_status,
            "version": __version__,
            "checks": checks,
            "timestamp": _timestamp(),
        },
    )

"""
Health check endpoints

- /health       - basic status
- /health/live  - liveness (process is up)
- /health/ready - readiness (database and Redis reachable)
- /health/deep  - every dependency, for dashboards
"""

from fastapi import APIRouter, Depends, HTTPException, status
from datetime import datetime
from typing import Dict, Any
import time

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notenexus.core.config import settings
from notenexus.core.database import get_db
from notenexus.core.exceptions import CacheUnavailableError
from notenexus.core.logging_config import logger
from notenexus.core.redis_client import RedisClient, get_redis
from notenexus.services.email_service import EmailService, get_email_service


router = APIRouter(prefix="/health", tags=["Health Checks"])


async def check_database(db: AsyncSession) -> Dict[str, Any]:
    """Check database connectivity"""
    start = time.time()
    try:
        await db.execute(text("SELECT 1"))
        await db.execute(text("SELECT COUNT(*) FROM users"))
    except SQLAlchemyError as e:
        logger.error(f"[HealthCheck] Database check failed: {e}")
        return {
            "status": "unhealthy",
            "latency_ms": round((time.time() - start) * 1000, 2),
            "error": type(e).__name__,
        }
    return {"status": "healthy", "latency_ms": round((time.time() - start) * 1000, 2)}


async def check_redis(redis: RedisClient) -> Dict[str, Any]:
    """Check Redis connectivity (verification tickets live there)"""
    start = time.time()
    try:
        await redis.ping()
    except CacheUnavailableError as e:
        logger.warning(f"[HealthCheck] Redis check failed: {e.message}")
        return {
            "status": "unhealthy",
            "latency_ms": round((time.time() - start) * 1000, 2),
            "message": "Redis unavailable - signup verification will fail",
        }
    return {"status": "healthy", "latency_ms": round((time.time() - start) * 1000, 2)}


def check_email_config(email_service: EmailService) -> Dict[str, Any]:
    """Configuration only; no connection is attempted"""
    if email_service.is_configured:
        return {"status": "healthy", "provider": "smtp", "host": settings.SMTP_HOST}
    return {
        "status": "degraded",
        "provider": "none",
        "message": "Email not configured - OTP emails will fail",
    }


def check_storage() -> Dict[str, Any]:
    if settings.is_s3_storage():
        return {
            "status": "healthy" if settings.S3_BUCKET_NAME else "degraded",
            "provider": "s3",
            "bucket": settings.S3_BUCKET_NAME,
            "region": settings.AWS_REGION,
        }
    return {"status": "healthy", "provider": "local", "path": settings.UPLOAD_PATH}


@router.get("")
async def basic_health_check():
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
    }


@router.get("/live")
async def liveness_check():
    return {
        "status": "alive",
        "timestamp": datetime.utcnow().isoformat(),
        "app": settings.APP_NAME,
    }


@router.get("/ready")
async def readiness_check(
    db: AsyncSession = Depends(get_db),
    redis: RedisClient = Depends(get_redis)
):
    """Returns 503 unless the database and Redis both answer"""
    checks = {
        "database": await check_database(db),
        "redis": await check_redis(redis),
    }
    is_ready = all(c["status"] == "healthy" for c in checks.values())

    response = {
        "status": "ready" if is_ready else "not_ready",
        "timestamp": datetime.utcnow().isoformat(),
        "checks": checks,
    }
    if not is_ready:
        logger.warning(f"[HealthCheck] Readiness check failed: {checks}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=response)
    return response


@router.get("/deep")
async def deep_health_check(
    db: AsyncSession = Depends(get_db),
    redis: RedisClient = Depends(get_redis),
    email_service: EmailService = Depends(get_email_service)
):
    start_time = time.time()
    checks = {
        "database": await check_database(db),
        "redis": await check_redis(redis),
        "email": check_email_config(email_service),
        "storage": check_storage(),
    }

    statuses = [c["status"] for c in checks.values()]
    if "unhealthy" in statuses:
        overall = "unhealthy"
    elif "degraded" in statuses:
        overall = "degraded"
    else:
        overall = "healthy"

    return {
        "status": overall,
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.ENVIRONMENT,
        "total_check_time_ms": round((time.time() - start_time) * 1000, 2),
        "checks": checks,
    }

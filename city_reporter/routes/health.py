"""
Health check endpoints.
Used for monitoring, deployment readiness checks, and basic connectivity tests.
"""

import logging

from fastapi import APIRouter
from city_reporter.config.firebase import get_db
from city_reporter.core.exceptions import PersistenceError
from city_reporter.core.settings import settings
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if service is running.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("/db")
async def database_health():
    """
    Database connectivity check.
    Lists collections to verify Firestore is reachable.
    """
    try:
        db = get_db()
        collections = list(db.collections())

        return {
            "status": "healthy",
            "database": "firestore",
            "connected": True,
            "collections_count": len(collections),
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    except Exception as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        raise PersistenceError("Database connection failed", retryable=True) from e

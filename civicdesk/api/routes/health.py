"""
Health Check Routes
Service health monitoring endpoints
Source: https://microservices.io/patterns/observability/health-check-api.html
"""

from typing import Any

from fastapi import APIRouter, Request

from civicdesk.db.connection import check_db_connection
from civicdesk.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Liveness check for load balancers."""
    return {
        "status": "healthy",
        "service": "civicdesk",
    }


@router.get("/health/detailed")
async def detailed_health_check(request: Request) -> dict[str, Any]:
    """Readiness check covering the database and the session store."""
    db_healthy = await check_db_connection()

    store = request.app.state.session_store
    try:
        await store.get("health-check")
        sessions_healthy = True
    except Exception as e:
        logger.error(f"Session store check failed: {e}")
        sessions_healthy = False

    overall_status = "healthy" if db_healthy and sessions_healthy else "unhealthy"
    if overall_status != "healthy":
        logger.warning(f"Detailed health check: database={db_healthy}, sessions={sessions_healthy}")

    return {
        "status": overall_status,
        "service": "civicdesk",
        "checks": {
            "database": "healthy" if db_healthy else "unhealthy",
            "sessions": "healthy" if sessions_healthy else "unhealthy",
        },
    }

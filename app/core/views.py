"""
Core views providing infrastructure endpoints.
"""

import logging

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Health check endpoint for load balancers and container probes.

    The database is required; the cache is reported but never fails the
    check because the cache backend ignores connection errors.

    HTTP Status Codes:
        200: Database reachable
        503: Database unreachable
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
    }
    status_code = 200

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        logger.error("Health check: database unreachable", exc_info=True)
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        status_code = 503

    cache.set("health_check", "ok", timeout=1)
    health_status["cache"] = (
        "connected" if cache.get("health_check") == "ok" else "disconnected"
    )

    return JsonResponse(health_status, status=status_code)

import time
from typing import Any, Dict

import structlog
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

logger = structlog.get_logger(__name__)


def _check_database() -> Dict[str, Any]:
    start = time.monotonic()
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()
    return {
        "status": "up",
        "vendor": conn.vendor,
        "response_time_ms": round((time.monotonic() - start) * 1000, 2),
    }


def _check_cache() -> Dict[str, Any]:
    start = time.monotonic()
    cache.set("_health_check", "ok", 10)
    if cache.get("_health_check") != "ok":
        raise ConnectionError("Cache read failed")
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - start) * 1000, 2),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    """Report database and cache reachability (200 healthy / 503 degraded)."""
    services: Dict[str, Dict[str, Any]] = {}
    overall_healthy = True

    for name, probe in (("database", _check_database), ("cache", _check_cache)):
        try:
            services[name] = probe()
        except Exception:
            services[name] = {"status": "down"}
            overall_healthy = False
            logger.exception("health_check.failure", service=name)

    logger.info(
        "health_check.completed",
        status="healthy" if overall_healthy else "unhealthy",
    )

    return JsonResponse(
        {
            "status": "healthy" if overall_healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if overall_healthy else 503,
    )

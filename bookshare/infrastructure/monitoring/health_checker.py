#!/usr/bin/env python3
"""
Health Checker Module

This module provides health checks for the service's dependencies:
- Relational store connectivity (critical)
- Cache tiers (external tier optional, fallback tier always present)

The external cache is never critical: without it the service keeps serving
from the process-local tiers, so its absence only makes the report
"degraded".
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from bookshare.core.config.settings import Settings, get_settings
from bookshare.core.logging.logger import get_logger
from bookshare.infrastructure.cache.cache_manager import CacheService
from bookshare.infrastructure.database.session import Database

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    """Health status enumeration."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class HealthChecker:
    """
    Health checker for all system components.

    STAGE-H: Health check orchestration

    Usage:
        checker = HealthChecker(database, cache_service)

        status = await checker.check_health()
        ready = await checker.readiness_check()
        report = await checker.detailed_health_report()
    """

    def __init__(
        self,
        database: Database,
        cache: CacheService,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self._database = database
        self._cache = cache

    async def check_health(self) -> dict[str, Any]:
        """
        Quick health check.

        STAGE-H.1: Quick health status
        """
        database_ok = await self._database.ping()
        cache_health = await self._cache.health_check()

        if not database_ok:
            status = HealthStatus.UNHEALTHY
        elif cache_health["status"] != HealthStatus.HEALTHY.value:
            status = HealthStatus.DEGRADED
        else:
            status = HealthStatus.HEALTHY

        return {
            "status": status.value,
            "timestamp": _now(),
            "version": self.settings.app.APP_VERSION,
            "components": {
                "database": "healthy" if database_ok else "unhealthy",
                "cache": cache_health["status"],
            },
        }

    async def liveness_check(self) -> dict[str, Any]:
        """The process is up; dependencies are not consulted."""
        return {"status": "alive", "timestamp": _now()}

    async def readiness_check(self) -> dict[str, Any]:
        """
        Ready when the relational store answers.

        STAGE-H.3: Readiness
        """
        database_ok = await self._database.ping()
        cache_health = await self._cache.health_check()

        if not database_ok:
            logger.warning("Readiness check failed: database unreachable", stage="H.3")

        return {
            "status": "ready" if database_ok else "not_ready",
            "timestamp": _now(),
            "components": {
                "database": "healthy" if database_ok else "unhealthy",
                "cache": cache_health["status"],
            },
        }

    async def detailed_health_report(self) -> dict[str, Any]:
        """
        Detailed health report for all components.

        STAGE-H.2: Detailed health report
        """
        database_ok = await self._database.ping()
        cache_health = await self._cache.health_check()

        issues = []
        if not database_ok:
            issues.append("database")
        if cache_health["status"] != HealthStatus.HEALTHY.value:
            issues.append("cache")

        if "database" in issues:
            status = HealthStatus.UNHEALTHY
        elif issues:
            status = HealthStatus.DEGRADED
        else:
            status = HealthStatus.HEALTHY

        return {
            "status": status.value,
            "timestamp": _now(),
            "version": self.settings.app.APP_VERSION,
            "environment": self.settings.app.ENVIRONMENT,
            "components": {
                "database": {"status": "healthy" if database_ok else "unhealthy"},
                "cache": {**cache_health, "stats": self._cache.stats()},
            },
            "issues": issues,
        }

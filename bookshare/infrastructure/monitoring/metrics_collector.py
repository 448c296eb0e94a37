#!/usr/bin/env python3
"""
Metrics Collector with Prometheus Integration

This module provides metrics collection with:
- Cache hit/miss counters per tier
- External cache failure counters
- Listing request outcomes
- HTTP request latency
- Error counts by type

Architectural Decision: prometheus-client for industry-standard metrics
- Compatible with Grafana dashboards
- Histogram buckets for latency percentiles
"""


from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    Info,
    generate_latest,
)

from bookshare.core.config.settings import Settings, get_settings
from bookshare.core.logging.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Metric Definitions
# ============================================================================

# Cache metrics
CACHE_HITS = Counter(
    'bookshare_cache_hits_total',
    'Total cache hits',
    ['tier']  # external, fallback, local
)

CACHE_MISSES = Counter(
    'bookshare_cache_misses_total',
    'Total cache misses across all tiers',
    ['namespace']
)

EXTERNAL_CACHE_FAILURES = Counter(
    'bookshare_external_cache_failures_total',
    'External cache operations that degraded to the fallback tier',
    ['operation']
)

# Listing metrics
LISTING_REQUESTS = Counter(
    'bookshare_listing_requests_total',
    'Listing reads by outcome',
    ['outcome']  # hit, miss, preload, error
)

# Request metrics
REQUEST_DURATION = Histogram(
    'bookshare_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'route'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)
)

# Error metrics
ERRORS = Counter(
    'bookshare_errors_total',
    'Total errors by type',
    ['error_type', 'stage']
)

# App info
APP_INFO = Info(
    'bookshare_app',
    'Application information'
)


class MetricsCollector:
    """
    Centralized metrics collector.

    STAGE-M: Metrics collection

    Usage:
        metrics = MetricsCollector()
        metrics.record_cache_hit("external")
        output = metrics.get_prometheus_metrics()
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

        APP_INFO.info({
            'version': self.settings.app.APP_VERSION,
            'environment': self.settings.app.ENVIRONMENT,
            'app_name': self.settings.app.APP_NAME
        })

        logger.info("Metrics collector initialized", stage="M.0")

    # =========================================================================
    # Cache Metrics
    # =========================================================================

    def record_cache_hit(self, tier: str) -> None:
        """Record cache hit."""
        CACHE_HITS.labels(tier=tier).inc()

    def record_cache_miss(self, namespace: str) -> None:
        """Record cache miss."""
        CACHE_MISSES.labels(namespace=namespace).inc()

    def record_external_cache_failure(self, operation: str) -> None:
        EXTERNAL_CACHE_FAILURES.labels(operation=operation).inc()

    # =========================================================================
    # Listing / Request Metrics
    # =========================================================================

    def record_listing_request(self, outcome: str) -> None:
        LISTING_REQUESTS.labels(outcome=outcome).inc()

    def record_request_duration(self, method: str, route: str, duration_seconds: float) -> None:
        """Record request duration by route template."""
        REQUEST_DURATION.labels(method=method, route=route).observe(duration_seconds)

    def record_error(self, error_type: str, stage: str) -> None:
        """Record error."""
        ERRORS.labels(error_type=error_type, stage=stage).inc()

    # =========================================================================
    # Export
    # =========================================================================

    def get_prometheus_metrics(self) -> bytes:
        """
        Get Prometheus metrics output.

        Returns:
            bytes: Prometheus text format metrics
        """
        return generate_latest(REGISTRY)

    def get_content_type(self) -> str:
        """Get Prometheus content type."""
        return CONTENT_TYPE_LATEST

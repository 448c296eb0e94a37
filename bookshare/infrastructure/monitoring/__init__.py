"""
Monitoring Module

Prometheus metrics for the cache tiers and the HTTP layer. Dependency health
checks live in ``health_checker`` (imported directly, it depends on the
cache and database layers).
"""

from .metrics_collector import MetricsCollector

__all__ = ["MetricsCollector"]

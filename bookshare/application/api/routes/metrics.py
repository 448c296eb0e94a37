"""
Prometheus Metrics Route

    GET /metrics    text exposition format for Prometheus scraping
"""

from fastapi import APIRouter, Response

from bookshare.application.api.dependencies import MetricsDep

router = APIRouter(tags=["Monitoring"])


@router.get("/metrics", include_in_schema=False)
async def prometheus_metrics(metrics: MetricsDep) -> Response:
    return Response(content=metrics.get_prometheus_metrics(), media_type=metrics.get_content_type())

"""
Health Check Routes

    GET /health            quick status for load balancers
    GET /health/live       liveness check:  the process is running
    GET /health/ready      readiness check: 503 until the database answers
    GET /health/detailed   full component report for debugging

Liveness never looks at dependencies, so a database outage takes the
instance out of rotation (readiness) without getting it restarted.
"""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from bookshare.infrastructure.monitoring.health_checker import HealthChecker

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    status: str  # "healthy", "degraded", "unhealthy"
    timestamp: str
    version: str | None = None
    components: dict | None = None


def get_health_checker(request: Request) -> HealthChecker:
    return request.app.state.health_checker


@router.get("", response_model=HealthResponse)
async def health_check(request: Request):
    return await get_health_checker(request).check_health()


@router.get("/live")
async def liveness(request: Request):
    return await get_health_checker(request).liveness_check()


@router.get("/ready")
async def readiness(request: Request):
    """
    Raises:
        HTTPException: 503 with the full readiness report when not ready
    """
    result = await get_health_checker(request).readiness_check()
    if result["status"] != "ready":
        raise HTTPException(status_code=503, detail=result)
    return result


@router.get("/detailed")
async def detailed_health(request: Request):
    """Always 200; the overall status is in the body."""
    return await get_health_checker(request).detailed_health_report()

"""Liveness and readiness checks, mounted outside the /api prefix."""

import time

from fastapi import APIRouter, Response, status

from src.core.supabase import check_database_connection
from src.schemas.common import CheckResult, HealthResponse, HealthStatus, ReadinessResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse, summary="Liveness check")
async def health_check() -> HealthResponse:
    return HealthResponse(status=HealthStatus.HEALTHY)


async def _check_database() -> CheckResult:
    started = time.perf_counter()
    result = await check_database_connection()
    return CheckResult(
        name="database",
        healthy=result["healthy"],
        latency_ms=round((time.perf_counter() - started) * 1000, 2),
        error=result.get("error"),
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "The database is unreachable"}},
    summary="Readiness check",
)
async def readiness_check(response: Response) -> ReadinessResponse:
    """Report whether the orders database answers a trivial query.

    Responds 503 when it does not, so the load balancer stops routing here.
    """
    checks = [await _check_database()]

    if all(check.healthy for check in checks):
        return ReadinessResponse(status=HealthStatus.HEALTHY, checks=checks)

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(status=HealthStatus.UNHEALTHY, checks=checks)

"""Schemas shared by every router: health checks, acknowledgements and errors."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """Liveness check body. Says nothing about dependencies."""

    status: HealthStatus
    timestamp: datetime = Field(default_factory=_utcnow)
    version: str = Field(default="0.1.0", description="API version")


class CheckResult(BaseModel):
    """Outcome of checking one dependency."""

    name: str
    healthy: bool
    latency_ms: float | None = None
    error: str | None = Field(default=None, description="Failure reason when unhealthy")


class ReadinessResponse(BaseModel):
    """Readiness check body; unhealthy when any check failed."""

    status: HealthStatus
    timestamp: datetime = Field(default_factory=_utcnow)
    checks: list[CheckResult] = Field(default_factory=list)


class MessageResponse(BaseModel):
    message: str = Field(description="Human-readable status message")


class ErrorDetail(BaseModel):
    """One field-level problem, e.g. a total that does not match the fee schedule."""

    loc: list[str] | None = Field(default=None, description="Path to the offending field")
    msg: str
    type: str = "error"

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "ErrorDetail":
        loc = raw.get("loc")
        return cls(
            loc=[str(part) for part in loc] if loc else None,
            msg=raw.get("msg", str(raw)),
            type=raw.get("type", "error"),
        )


class ErrorResponse(BaseModel):
    """Body of every APIError response.

    Clients show ``message`` to the user and branch on ``error``.
    """

    error: str = Field(description="Machine-readable error category")
    message: str = Field(description="Human-readable error description")
    details: list[ErrorDetail] | None = None
    request_id: str | None = Field(default=None, description="Request id for log correlation")
    timestamp: datetime = Field(default_factory=_utcnow)

    @classmethod
    def from_exception(
        cls,
        error_type: str,
        message: str,
        details: list[dict[str, Any]] | None = None,
        request_id: str | None = None,
    ) -> "ErrorResponse":
        return cls(
            error=error_type,
            message=message,
            details=[ErrorDetail.from_dict(d) for d in details] if details else None,
            request_id=request_id,
        )

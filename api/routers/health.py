"""Health check endpoints."""

import time
from datetime import UTC, datetime

import structlog
from fastapi import APIRouter
from pydantic import BaseModel, Field

from api.config import get_settings
from api.deps import OrchestratorDep

router = APIRouter(tags=["Health"])
logger = structlog.get_logger()

VERSION = "0.1.0"

# Track server start time for uptime calculation
_server_start_time = time.time()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Health status: healthy, degraded, unhealthy")
    timestamp: str = Field(..., description="ISO 8601 timestamp")
    version: str = Field(..., description="API version")
    uptime_seconds: int = Field(..., description="Server uptime in seconds")


class DependencyCheck(BaseModel):
    """Individual dependency check result."""

    status: str = Field(..., description="Status: healthy, unhealthy")
    latency_ms: float | None = Field(None, description="Check latency in milliseconds")
    error: str | None = Field(None, description="Error message if unhealthy")


class ReadyResponse(BaseModel):
    """Readiness check response with dependency status."""

    status: str = Field(..., description="Overall status")
    timestamp: str = Field(..., description="ISO 8601 timestamp")
    version: str = Field(..., description="API version")
    uptime_seconds: int = Field(..., description="Server uptime in seconds")
    checks: dict[str, DependencyCheck] = Field(..., description="Individual dependency checks")


class ApiInfoResponse(BaseModel):
    """API information response."""

    name: str
    version: str
    env: str
    docs: str | None


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns healthy if the API is running. Does not check dependencies.
    Use /ready for upstream checks.
    """
    uptime = int(time.time() - _server_start_time)
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC).isoformat(),
        version=VERSION,
        uptime_seconds=uptime,
    )


@router.get("/ready", response_model=ReadyResponse)
async def readiness_check(orchestrator: OrchestratorDep) -> ReadyResponse:
    """
    Readiness check with upstream verification.

    Checks:
    - Each signal source (a failing source only degrades audits)
    - The generation engine (audits cannot complete without it)
    """
    checks: dict[str, DependencyCheck] = {}
    uptime = int(time.time() - _server_start_time)

    for source in await orchestrator.collector.probe():
        checks[f"signal_{source.category.value}"] = DependencyCheck(
            status="healthy" if source.healthy else "unhealthy",
            latency_ms=round(source.latency_ms, 2),
            error=None if source.healthy else source.detail,
        )

    try:
        start = time.perf_counter()
        engine_ok = await orchestrator.runner.health_check()
        latency_ms = (time.perf_counter() - start) * 1000
        checks["generation_engine"] = DependencyCheck(
            status="healthy" if engine_ok else "unhealthy",
            latency_ms=round(latency_ms, 2),
            error=None if engine_ok else "Engine health check failed",
        )
    except Exception as e:
        logger.warning("engine_health_check_failed", error=str(e))
        checks["generation_engine"] = DependencyCheck(
            status="unhealthy",
            latency_ms=None,
            error=str(e),
        )

    # Engine down blocks every audit; a signal source down only degrades them
    if checks["generation_engine"].status == "unhealthy":
        overall_status = "unhealthy"
    elif any(c.status == "unhealthy" for c in checks.values()):
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    return ReadyResponse(
        status=overall_status,
        timestamp=datetime.now(UTC).isoformat(),
        version=VERSION,
        uptime_seconds=uptime,
        checks=checks,
    )


@router.get("/", response_model=ApiInfoResponse)
async def root() -> ApiInfoResponse:
    """Root endpoint with API information."""
    settings = get_settings()
    return ApiInfoResponse(
        name="Clinic Audit API",
        version=VERSION,
        env=settings.env,
        docs="/docs" if settings.debug else None,
    )

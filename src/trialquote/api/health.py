"""Health check endpoints for TrialQuote."""

import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from trialquote import __version__
from trialquote.config import get_settings

router = APIRouter(tags=["health"])

# Track startup time
_startup_time = time.time()


class HealthStatus(BaseModel):
    """Basic health check response."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    timestamp: datetime = Field(..., description="Current server time")
    version: str = Field(..., description="Application version")


class ReadinessStatus(BaseModel):
    """Readiness check response with component status."""

    status: str = Field(..., description="Overall status: 'ready' or 'not_ready'")
    timestamp: datetime = Field(..., description="Current server time")
    checks: dict[str, Any] = Field(..., description="Individual component checks")


class LivenessStatus(BaseModel):
    """Liveness check response."""

    status: str = Field(..., description="Status: 'alive'")
    uptime_seconds: float = Field(..., description="Seconds since startup")


def _check_storage() -> dict[str, Any]:
    """Check that the case store directory is writable."""
    storage_path = get_settings().storage_path

    try:
        storage_path.mkdir(parents=True, exist_ok=True)
        probe = storage_path / ".health_check"
        probe.write_text("ok")
        probe.unlink()
        return {"status": "healthy", "path": str(storage_path), "writable": True}
    except OSError as e:
        return {"status": "unhealthy", "path": str(storage_path), "error": str(e)}


def _check_llm() -> dict[str, Any]:
    """Report LLM configuration; extraction degrades to heuristics without a key."""
    settings = get_settings()

    return {
        "status": "healthy" if settings.has_llm_key else "degraded",
        "provider": settings.llm_provider.value,
        "model": settings.llm_model,
        "api_key_configured": settings.has_llm_key,
    }


@router.get("/health", response_model=HealthStatus, summary="Basic health check")
async def health_check() -> HealthStatus:
    """Basic health check endpoint."""
    return HealthStatus(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
    )


@router.get("/health/live", response_model=LivenessStatus, summary="Liveness probe")
async def liveness_check() -> LivenessStatus:
    """Liveness probe for Kubernetes."""
    return LivenessStatus(
        status="alive",
        uptime_seconds=round(time.time() - _startup_time, 2),
    )


@router.get("/health/ready", response_model=ReadinessStatus, summary="Readiness probe")
async def readiness_check() -> ReadinessStatus:
    """Readiness probe for Kubernetes."""
    storage_check = _check_storage()

    return ReadinessStatus(
        status="ready" if storage_check["status"] == "healthy" else "not_ready",
        timestamp=datetime.now(timezone.utc),
        checks={
            "storage": storage_check,
            "llm": _check_llm(),
        },
    )


@router.get("/", response_model=dict[str, str], summary="API root")
async def root() -> dict[str, str]:
    """API root endpoint."""
    return {
        "name": "TrialQuote API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }

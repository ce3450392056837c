"""
Health Check Endpoints

Provides system health and readiness endpoints for:
- Load balancer health checks
- Kubernetes probes
"""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from consentry import __version__

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    environment: str


class ReadinessResponse(BaseModel):
    """Readiness check response with component health."""

    ready: bool
    components: dict


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check",
    description="Basic health check endpoint for load balancers",
)
async def health_check(request: Request) -> HealthResponse:
    """Returns 200 if the application is running."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=request.app.state.settings.env,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Readiness check including database and consent engine",
)
async def readiness_check(request: Request) -> ReadinessResponse:
    """
    Detailed readiness check.

    Ready when the consent engine is built and, if a database manager
    is attached, the database answers.
    """
    components = {
        "consent_engine": getattr(request.app.state, "consent_engine", None) is not None,
    }

    db = getattr(request.app.state, "db", None)
    if db is not None:
        components["database"] = await db.health_check()

    return ReadinessResponse(
        ready=all(components.values()),
        components=components,
    )

"""
API v1 Router

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter

from consentry.api.v1.endpoints.consent_record import router as consent_record_router
from consentry.api.v1.endpoints.health import router as health_router

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(
    health_router,
    prefix="/health",
    tags=["Health"],
)

api_router.include_router(
    consent_record_router,
    prefix="/consent-record",
    tags=["Consent"],
)

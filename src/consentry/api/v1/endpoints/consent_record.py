"""
Consent Record Endpoints

Public endpoint called by embedded consent widgets.
Any origin may call it; every response carries a permissive CORS header.
"""

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from consentry.config.logging_config import bind_widget_id, get_logger
from consentry.config.settings import Settings
from consentry.domain.exceptions import ConsentEngineError, InvalidPayloadError
from consentry.infrastructure.monitoring import (
    capture_exception_with_context,
    set_widget_context,
)
from consentry.services.identity import RequestSignals
from consentry.services.recording import ConsentEngine
from consentry.services.validation import enforce_activity_limits

logger = get_logger(__name__)
router = APIRouter()

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Cache-Control",
    "Access-Control-Max-Age": "86400",
}


def get_consent_engine(request: Request) -> ConsentEngine:
    """Engine built during application startup."""
    engine = getattr(request.app.state, "consent_engine", None)
    if engine is None:
        raise RuntimeError("Consent engine not initialized")
    return engine


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _error_response(error: ConsentEngineError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict(),
        headers=CORS_HEADERS,
    )


async def _read_payload(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as e:
        raise InvalidPayloadError("Invalid JSON in request body") from e


@router.post(
    "",
    summary="Record consent",
    description="Record or refresh a visitor's consent choice for a widget",
)
async def record_consent(
    request: Request,
    engine: ConsentEngine = Depends(get_consent_engine),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """
    Record a consent submission.

    Returns 200 with the written record id, or a typed error body.
    """
    try:
        payload = await _read_payload(request)

        if isinstance(payload, dict):
            if isinstance(payload.get("widgetId"), str):
                bind_widget_id(payload["widgetId"])
                set_widget_context(payload["widgetId"])
            if settings.consent.reject_oversized_activity_lists:
                enforce_activity_limits(payload, settings.consent.max_activities)

        result = await engine.submit(payload, RequestSignals.from_headers(request.headers))

    except ConsentEngineError as e:
        logger.info(
            "Consent submission rejected",
            code=e.code,
            status_code=e.status_code,
        )
        return _error_response(e)

    except Exception as e:
        correlation_id = getattr(request.state, "correlation_id", None)
        logger.exception(
            "Unexpected error recording consent",
            error_type=type(e).__name__,
        )
        capture_exception_with_context(e, correlation_id=correlation_id)
        return _error_response(ConsentEngineError("Internal server error"))

    logger.info(
        "Consent recorded",
        widget_id=result.record.widget_id,
        operation=result.operation.value,
        status=result.record.status.value,
        strategy=result.match.strategy,
    )
    return JSONResponse(status_code=200, content=result.to_response(), headers=CORS_HEADERS)


@router.options("", include_in_schema=False)
async def consent_preflight() -> Response:
    """CORS preflight for cross-origin widgets."""
    return Response(status_code=200, headers=PREFLIGHT_HEADERS)

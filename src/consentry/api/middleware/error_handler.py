"""
Error Handler Middleware

Outermost request wrapper: assigns the correlation id, counts every
response, and turns anything that escaped the endpoints into the
generic 500 body. Typed consent errors are mapped by the endpoints
themselves and never reach the except branch here.
"""

import re
from uuid import uuid4

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from consentry.config.logging_config import bind_correlation_id, clear_context, get_logger
from consentry.infrastructure.metrics import HTTP_REQUESTS_TOTAL
from consentry.infrastructure.monitoring import capture_exception_with_context

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
INBOUND_CORRELATION_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def correlation_id_for(request: Request) -> str:
    """Reuse a well-formed inbound id, otherwise mint one."""
    inbound = request.headers.get(CORRELATION_HEADER, "")
    return inbound if INBOUND_CORRELATION_ID.match(inbound) else str(uuid4())


def route_label(request: Request) -> str:
    # Route templates keep label cardinality bounded under 404 scans
    route = request.scope.get("route")
    return getattr(route, "path", "unmatched")


def _internal_error(correlation_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "code": "INTERNAL_ERROR",
            "details": {"correlationId": correlation_id},
        },
        headers={"Access-Control-Allow-Origin": "*"},
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Correlation ids, request counting and the last-resort 500."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = correlation_id_for(request)
        bind_correlation_id(correlation_id)
        request.state.correlation_id = correlation_id

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                "Unhandled exception",
                path=request.url.path,
                method=request.method,
                error_type=type(e).__name__,
            )
            capture_exception_with_context(e, correlation_id=correlation_id)
            response = _internal_error(correlation_id)
        finally:
            clear_context()

        response.headers[CORRELATION_HEADER] = correlation_id
        HTTP_REQUESTS_TOTAL.labels(
            method=request.method,
            endpoint=route_label(request),
            status_code=str(response.status_code),
        ).inc()
        return response

"""
Sentry Error Tracking Integration

Error tracking for the consent service, tagged with the submitting
widget and the request correlation id.

SECURITY: Events pass through the same masking rules as log lines
(consentry.config.logging_config) before leaving the process, and
cookies and credentials are dropped outright.
"""

from typing import Any, Optional

import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from consentry.config.logging_config import get_logger, mask_email, mask_value

logger = get_logger(__name__)

DROPPED_HEADERS = frozenset({"cookie", "authorization", "x-api-key"})


def _scrub_mapping(data: dict) -> dict:
    return {key: mask_value(str(key), value) for key, value in data.items()}


def _scrub_headers(headers: dict) -> dict:
    return {
        key: "[REDACTED]" if str(key).lower() in DROPPED_HEADERS else mask_value(str(key), value)
        for key, value in headers.items()
    }


def before_send(event: dict, hint: dict) -> Optional[dict]:
    """Mask request bodies, headers, breadcrumbs and extras."""
    request = event.get("request")
    if request:
        if isinstance(request.get("data"), dict):
            request["data"] = _scrub_mapping(request["data"])
        elif isinstance(request.get("data"), str):
            request["data"] = mask_email(request["data"])
        if isinstance(request.get("headers"), dict):
            request["headers"] = _scrub_headers(request["headers"])
        request.pop("cookies", None)

    for breadcrumb in event.get("breadcrumbs", {}).get("values", []):
        if isinstance(breadcrumb.get("data"), dict):
            breadcrumb["data"] = _scrub_mapping(breadcrumb["data"])
        if isinstance(breadcrumb.get("message"), str):
            breadcrumb["message"] = mask_email(breadcrumb["message"])

    if isinstance(event.get("extra"), dict):
        event["extra"] = _scrub_mapping(event["extra"])

    return event


def before_breadcrumb(breadcrumb: dict, hint: dict) -> Optional[dict]:
    """SQL breadcrumbs can carry bound e-mail values."""
    if breadcrumb.get("category") == "sql" and isinstance(breadcrumb.get("message"), str):
        breadcrumb["message"] = mask_email(breadcrumb["message"])
    return breadcrumb


def init_sentry(
    dsn: str,
    environment: str = "development",
    release: str = "consentry@0.1.0",
    sample_rate: float = 1.0,
    traces_sample_rate: float = 0.1,
) -> bool:
    """
    Initialize Sentry when a DSN is configured.

    Args:
        dsn: Sentry DSN; empty disables tracking
        environment: Deployment environment tag
        release: Release identifier
        sample_rate: Fraction of error events sent
        traces_sample_rate: Fraction of transactions traced

    Returns:
        True if Sentry was initialized
    """
    if not dsn:
        logger.info("Sentry disabled (no DSN)")
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
        sample_rate=sample_rate,
        traces_sample_rate=traces_sample_rate,
        before_send=before_send,
        before_breadcrumb=before_breadcrumb,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            AsyncioIntegration(),
            # structlog lines become breadcrumbs only; errors are captured explicitly
            LoggingIntegration(level=None, event_level=None),
        ],
        send_default_pii=False,
        attach_stacktrace=True,
        max_breadcrumbs=30,
    )

    logger.info("Sentry initialized", environment=environment, release=release)
    return True


def set_widget_context(widget_id: str, operation: Optional[str] = None) -> None:
    """Tag subsequent events with the widget being processed."""
    sentry_sdk.set_tag("widget_id", widget_id)
    if operation:
        sentry_sdk.set_tag("operation", operation)


def capture_exception_with_context(
    exception: Exception,
    correlation_id: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
) -> Optional[str]:
    """
    Capture `exception` in an isolated scope.

    Returns:
        Sentry event id, or None when Sentry is not initialized
    """
    with sentry_sdk.new_scope() as scope:
        if correlation_id:
            scope.set_tag("correlation_id", correlation_id)
        for key, value in _scrub_mapping(extra or {}).items():
            scope.set_extra(key, value)

        return sentry_sdk.capture_exception(exception)

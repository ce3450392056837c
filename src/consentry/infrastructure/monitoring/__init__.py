"""Monitoring infrastructure package."""

from consentry.infrastructure.monitoring.sentry_integration import (
    init_sentry,
    set_widget_context,
    capture_exception_with_context,
)

__all__ = [
    "init_sentry",
    "set_widget_context",
    "capture_exception_with_context",
]

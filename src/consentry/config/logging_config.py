"""
Consentry Logging Configuration

structlog pipeline shared by every module:
- request-scoped context (correlation id, widget id) via contextvars
- masking of visitor personal data before rendering
- console output in development, one JSON object per line elsewhere

SECURITY: Consent submissions carry e-mail addresses and client IPs.
Values under personal-data keys are masked, and e-mail addresses are
masked wherever they appear inside free-text values.
"""

import logging
import re
import sys
from typing import Any, Mapping

import structlog

from consentry.config.settings import Settings

SERVICE_NAME = "consentry"

# Values under these keys are dropped entirely
SECRET_KEY_FRAGMENTS: tuple[str, ...] = (
    "password",
    "token",
    "secret",
    "api_key",
    "apikey",
    "authorization",
    "credential",
)

# Values under these keys are masked but keep enough shape to debug with
EMAIL_KEY_FRAGMENTS: tuple[str, ...] = ("email",)
IP_KEY_FRAGMENTS: tuple[str, ...] = ("ip_address", "ipaddress", "client_ip", "forwarded_for")

EMAIL_IN_TEXT = re.compile(r"([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+\.[A-Za-z]{2,})")

# Hashes are safe to log and are what operators correlate on
PASSTHROUGH_KEYS = frozenset({"email_hash", "visitor_email_hash"})


def mask_email(value: str) -> str:
    """alice@example.com -> a***@example.com"""
    return EMAIL_IN_TEXT.sub(r"\1***@\2", value)


def mask_ip(value: str) -> str:
    """Zero the host part: last IPv4 octet, or everything after the third IPv6 group."""
    if "." in value and ":" not in value:
        head, _, _ = value.rpartition(".")
        return f"{head}.0" if head else "[REDACTED]"
    if ":" in value:
        groups = value.split(":")
        return ":".join(groups[:3]) + "::"
    return "[REDACTED]"


def mask_value(key: str, value: Any) -> Any:
    """Apply the masking rules to one field, recursing into containers."""
    key_lower = key.lower().replace("-", "_")

    if key_lower in PASSTHROUGH_KEYS:
        return value
    if any(fragment in key_lower for fragment in SECRET_KEY_FRAGMENTS):
        return "[REDACTED]"
    if isinstance(value, str):
        if any(fragment in key_lower for fragment in IP_KEY_FRAGMENTS):
            return mask_ip(value)
        if any(fragment in key_lower for fragment in EMAIL_KEY_FRAGMENTS):
            return mask_email(value) if "@" in value else "[REDACTED]"
        return mask_email(value) if "@" in value else value
    if isinstance(value, Mapping):
        return {k: mask_value(str(k), v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [mask_value(key, item) for item in value]
    return value


def mask_personal_data(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """structlog processor applying the masking rules to every field."""
    return {key: mask_value(key, value) for key, value in event_dict.items()}


def add_service_name(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def build_processors(json_output: bool) -> list[Any]:
    """
    Processor chain for structlog.

    Args:
        json_output: Render JSON lines instead of colored console output

    Returns:
        Ordered processor list
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        mask_personal_data,
        add_service_name,
    ]

    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    return processors


def configure_logging(settings: Settings) -> None:
    """
    Configure structlog and the stdlib root logger.

    Call once at process start, before the application is created.
    """
    level = getattr(logging, settings.log_level.upper())

    structlog.configure(
        processors=build_processors(json_output=settings.env != "development"),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    # Per-request access lines duplicate the middleware logs
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    # Bound parameters include visitor e-mails
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Logger for `name` (pass __name__)."""
    return structlog.get_logger(name)


def bind_correlation_id(correlation_id: str) -> None:
    """Attach the request correlation id to every log line of this request."""
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def bind_widget_id(widget_id: str) -> None:
    """Attach the submitting widget to every log line of this request."""
    structlog.contextvars.bind_contextvars(widget_id=widget_id)


def clear_context() -> None:
    """Drop request-scoped context (end of request)."""
    structlog.contextvars.clear_contextvars()

"""
Prometheus Metrics

Counters and timings for the consent pipeline, served at /metrics.

Services call the track_* helpers rather than touching collectors
directly; every helper is a non-blocking increment.
"""

from functools import wraps
from typing import Awaitable, Callable, TypeVar

from fastapi import APIRouter, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    Info,
    generate_latest,
)

T = TypeVar("T")

NAMESPACE = "consentry"

# Pipeline

CONSENT_SUBMISSIONS_TOTAL = Counter(
    "consent_submissions_total",
    "Consent submissions by outcome (recorded, or the error code)",
    ["outcome"],
    namespace=NAMESPACE,
)

CONSENT_SUBMISSION_DURATION = Histogram(
    "consent_submission_duration_seconds",
    "Time from validated payload to written record",
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
    namespace=NAMESPACE,
)

CONSENT_RECORDS_WRITTEN = Counter(
    "consent_records_written_total",
    "Primary record writes",
    ["operation", "status"],
    namespace=NAMESPACE,
)

STATUS_ADJUSTMENTS_TOTAL = Counter(
    "status_adjustments_total",
    "Claimed statuses contradicted by the submitted activity lists",
    ["claimed", "derived"],
    namespace=NAMESPACE,
)

MATCH_DECISIONS_TOTAL = Counter(
    "match_decisions_total",
    "Existing-record lookups by deciding strategy",
    ["strategy", "action"],
    namespace=NAMESPACE,
)

# Admission

QUOTA_DENIALS_TOTAL = Counter(
    "quota_denials_total",
    "Submissions refused because the owner's plan limit was reached",
    ["plan"],
    namespace=NAMESPACE,
)

QUOTA_CHECK_ERRORS_TOTAL = Counter(
    "quota_check_errors_total",
    "Entitlement lookups that failed open",
    namespace=NAMESPACE,
)

BEST_EFFORT_FAILURES_TOTAL = Counter(
    "best_effort_failures_total",
    "Side steps (notice_snapshot, projection_sync) that failed without failing the submission",
    ["step"],
    namespace=NAMESPACE,
)

# HTTP

HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "HTTP requests by route and status",
    ["method", "endpoint", "status_code"],
    namespace=NAMESPACE,
)

RATE_LIMIT_EXCEEDED = Counter(
    "rate_limit_exceeded_total",
    "Requests refused by the rate limiter",
    ["client_type"],
    namespace=NAMESPACE,
)

BUILD_INFO = Info("build", "Running version and environment", namespace=NAMESPACE)


def track_submission(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """Time an async submission handler and count its outcome."""

    @wraps(func)
    async def timed(*args, **kwargs) -> T:
        outcome = "recorded"
        with CONSENT_SUBMISSION_DURATION.time():
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                outcome = getattr(e, "code", "INTERNAL_ERROR")
                raise
            finally:
                CONSENT_SUBMISSIONS_TOTAL.labels(outcome=outcome).inc()

    return timed


def track_record_written(operation: str, status: str) -> None:
    CONSENT_RECORDS_WRITTEN.labels(operation=operation, status=status).inc()


def track_status_adjustment(claimed: str, derived: str) -> None:
    STATUS_ADJUSTMENTS_TOTAL.labels(claimed=claimed, derived=derived).inc()


def track_match_decision(strategy: str, action: str) -> None:
    MATCH_DECISIONS_TOTAL.labels(strategy=strategy, action=action).inc()


def track_quota_denial(plan: str) -> None:
    QUOTA_DENIALS_TOTAL.labels(plan=plan).inc()


def track_best_effort_failure(step: str) -> None:
    BEST_EFFORT_FAILURES_TOTAL.labels(step=step).inc()


def update_system_info(environment: str, version: str) -> None:
    BUILD_INFO.info({"version": version, "environment": environment})


metrics_router = APIRouter(tags=["metrics"])


@metrics_router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Prometheus text exposition of the default registry."""
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)

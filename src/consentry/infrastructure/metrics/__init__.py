"""Metrics infrastructure package."""

from consentry.infrastructure.metrics.prometheus_metrics import (
    # Pipeline metrics
    CONSENT_SUBMISSIONS_TOTAL,
    CONSENT_SUBMISSION_DURATION,
    CONSENT_RECORDS_WRITTEN,
    STATUS_ADJUSTMENTS_TOTAL,
    MATCH_DECISIONS_TOTAL,
    # Admission metrics
    QUOTA_DENIALS_TOTAL,
    QUOTA_CHECK_ERRORS_TOTAL,
    # Best-effort metrics
    BEST_EFFORT_FAILURES_TOTAL,
    # API metrics
    HTTP_REQUESTS_TOTAL,
    RATE_LIMIT_EXCEEDED,
    # Helpers
    track_submission,
    track_record_written,
    track_status_adjustment,
    track_match_decision,
    track_quota_denial,
    track_best_effort_failure,
    update_system_info,
    # Router
    metrics_router,
)

__all__ = [
    "CONSENT_SUBMISSIONS_TOTAL",
    "CONSENT_SUBMISSION_DURATION",
    "CONSENT_RECORDS_WRITTEN",
    "STATUS_ADJUSTMENTS_TOTAL",
    "MATCH_DECISIONS_TOTAL",
    "QUOTA_DENIALS_TOTAL",
    "QUOTA_CHECK_ERRORS_TOTAL",
    "BEST_EFFORT_FAILURES_TOTAL",
    "HTTP_REQUESTS_TOTAL",
    "RATE_LIMIT_EXCEEDED",
    "track_submission",
    "track_record_written",
    "track_status_adjustment",
    "track_match_decision",
    "track_quota_denial",
    "track_best_effort_failure",
    "update_system_info",
    "metrics_router",
]

"""Input validation services package."""

from consentry.services.validation.input_validator import (
    ConsentSubmissionPayload,
    InputValidator,
    clamp_consent_duration,
    enforce_activity_limits,
)

__all__ = [
    "ConsentSubmissionPayload",
    "InputValidator",
    "clamp_consent_duration",
    "enforce_activity_limits",
]

"""
Input Validator & Sanitizer

Turns a raw widget payload into a ConsentSubmission.

Two stages:
1. Schema checks (pydantic): required identifiers, enum status, container
   types. Failures raise SubmissionValidationError with field-level details.
2. Sanitization: malformed ids, invalid purpose entries and unusable
   metadata are dropped silently. Nothing in this stage fails the request.

Pure transform; performs no I/O.
"""

import re
from typing import Any, Mapping, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from consentry.domain.enums import ConsentStatus, DeviceType
from consentry.domain.exceptions import (
    FieldError,
    SubmissionValidationError,
    TooManyActivitiesError,
)
from consentry.domain.models import (
    MAX_CONSENT_DURATION_DAYS,
    MIN_CONSENT_DURATION_DAYS,
    ConsentMetadata,
    ConsentSubmission,
    RuleContext,
    is_valid_activity_id,
)
from consentry.config.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_ACTIVITIES = 100
MAX_TEXT_LENGTH = 2048

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Metadata wire fields that must parse as absolute URLs
URL_METADATA_FIELDS = frozenset({"referrer", "current_url"})

ACTIVITY_LIST_FIELDS = ("acceptedActivities", "rejectedActivities")

DEVICE_TYPES = frozenset(device_type.value for device_type in DeviceType)


class ConsentSubmissionPayload(BaseModel):
    """Wire schema of POST /consent-record."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    widget_id: str = Field(alias="widgetId", min_length=1, max_length=100)
    visitor_id: str = Field(alias="visitorId", min_length=1, max_length=200)
    consent_status: ConsentStatus = Field(alias="consentStatus")
    accepted_activities: Optional[list[Any]] = Field(default=None, alias="acceptedActivities")
    rejected_activities: Optional[list[Any]] = Field(default=None, alias="rejectedActivities")
    accepted_purpose_consents: Optional[dict[str, Any]] = Field(
        default=None, alias="acceptedPurposeConsents"
    )
    rejected_purpose_consents: Optional[dict[str, Any]] = Field(
        default=None, alias="rejectedPurposeConsents"
    )
    activity_purpose_consents: Optional[dict[str, Any]] = Field(
        default=None, alias="activityPurposeConsents"
    )
    rule_context: Optional[dict[str, Any]] = Field(default=None, alias="ruleContext")
    metadata: Optional[dict[str, Any]] = None
    visitor_email: Optional[str] = Field(default=None, alias="visitorEmail", max_length=320)
    consent_duration: Optional[int] = Field(default=None, alias="consentDuration")
    revocation_reason: Optional[str] = Field(
        default=None, alias="revocationReason", max_length=MAX_TEXT_LENGTH
    )

    @field_validator("visitor_email", mode="before")
    @classmethod
    def blank_email_is_absent(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("visitor_email")
    @classmethod
    def email_shape(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        if not EMAIL_PATTERN.match(v):
            raise ValueError("visitorEmail is not a valid e-mail address")
        return v.lower()


def enforce_activity_limits(raw: Mapping[str, Any], limit: int = DEFAULT_MAX_ACTIVITIES) -> None:
    """
    Reject raw activity arrays longer than `limit`.

    Applied at the HTTP boundary before validation. Internal callers of
    InputValidator get silent truncation instead.

    Raises:
        TooManyActivitiesError: If either array exceeds the limit
    """
    for field_name in ACTIVITY_LIST_FIELDS:
        value = raw.get(field_name)
        if isinstance(value, list) and len(value) > limit:
            raise TooManyActivitiesError(field_name, len(value), limit)


def clamp_consent_duration(days: Optional[int]) -> Optional[int]:
    """
    Clamp a duration override into the allowed range of days.

    Absent or non-positive values mean "no override" so the next default applies.
    """
    if days is None or days <= 0:
        return None
    return max(MIN_CONSENT_DURATION_DAYS, min(MAX_CONSENT_DURATION_DAYS, days))


def is_absolute_url(value: str) -> bool:
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return bool(parts.scheme and parts.netloc)


def clean_url(value: Optional[str]) -> Optional[str]:
    """Trimmed, length-capped absolute URL, or None."""
    if not value:
        return None
    value = value.strip()[:MAX_TEXT_LENGTH]
    return value if is_absolute_url(value) else None


def clean_activity_ids(values: Optional[list[Any]], limit: int) -> list[str]:
    """
    Keep valid ids, first occurrence wins, at most `limit` entries.

    Ids are lower-cased so case variants of one UUID collapse to one entry.
    """
    cleaned: list[str] = []
    seen: set[str] = set()
    for value in values or []:
        if not is_valid_activity_id(value):
            continue
        value = value.lower()
        if value in seen:
            continue
        seen.add(value)
        cleaned.append(value)
        if len(cleaned) >= limit:
            break
    return cleaned


def clean_purpose_map(raw: Optional[dict[str, Any]]) -> dict[str, list[str]]:
    """
    Validate a purpose map entry by entry.

    An entry survives only if its key and every purpose id are valid ids.
    """
    cleaned: dict[str, list[str]] = {}
    for activity_id, purpose_ids in (raw or {}).items():
        if not is_valid_activity_id(activity_id):
            continue
        if not isinstance(purpose_ids, list):
            continue
        if not all(is_valid_activity_id(purpose_id) for purpose_id in purpose_ids):
            continue
        key = activity_id.lower()
        purposes = [purpose_id.lower() for purpose_id in purpose_ids]
        cleaned[key] = list(dict.fromkeys(cleaned.get(key, []) + purposes))
    return cleaned


def clean_rule_context(raw: Optional[dict[str, Any]]) -> Optional[RuleContext]:
    """Keep a rule context only when every identifying field is populated."""
    if not raw:
        return None
    required = ("ruleId", "ruleName", "urlPattern", "pageUrl")
    values = {key: raw.get(key) for key in required}
    if not all(isinstance(v, str) and v.strip() for v in values.values()):
        return None
    matched_at = raw.get("matchedAt")
    return RuleContext(
        rule_id=values["ruleId"].strip(),
        rule_name=values["ruleName"].strip()[:MAX_TEXT_LENGTH],
        url_pattern=values["urlPattern"].strip()[:MAX_TEXT_LENGTH],
        page_url=values["pageUrl"].strip()[:MAX_TEXT_LENGTH],
        matched_at=matched_at.strip() if isinstance(matched_at, str) and matched_at.strip() else None,
    )


def clean_metadata(raw: Optional[dict[str, Any]]) -> ConsentMetadata:
    """Pass through metadata strings that are non-empty and well-formed."""
    if not raw:
        return ConsentMetadata()

    values: dict[str, Optional[str]] = {}
    for attr, wire in ConsentMetadata.WIRE_NAMES.items():
        value = raw.get(wire)
        if not isinstance(value, str):
            continue
        value = value.strip()[:MAX_TEXT_LENGTH]
        if not value:
            continue
        if attr in URL_METADATA_FIELDS and not is_absolute_url(value):
            continue
        if attr == "device_type" and value not in DEVICE_TYPES:
            continue
        values[attr] = value
    return ConsentMetadata(**values)


def _field_errors(exc: ValidationError) -> list[FieldError]:
    errors = []
    for error in exc.errors():
        field_path = ".".join(str(part) for part in error["loc"]) or "body"
        errors.append(FieldError(
            field=field_path,
            message=error["msg"],
            code=error["type"].upper(),
        ))
    return errors


class InputValidator:
    """
    Validates and sanitizes consent submissions.

    Usage:
        validator = InputValidator()
        submission = validator.validate(request_json)
    """

    def __init__(self, max_activities: int = DEFAULT_MAX_ACTIVITIES) -> None:
        self._max_activities = max_activities

    def validate(self, raw: Any) -> ConsentSubmission:
        """
        Validate a raw payload.

        Args:
            raw: Decoded JSON body

        Returns:
            Sanitized ConsentSubmission

        Raises:
            SubmissionValidationError: On schema-level failures
        """
        if not isinstance(raw, dict):
            raise SubmissionValidationError([
                FieldError("body", "Request body must be a JSON object", "TYPE_ERROR"),
            ])

        try:
            payload = ConsentSubmissionPayload.model_validate(raw)
        except ValidationError as e:
            errors = _field_errors(e)
            logger.info(
                "Consent submission rejected by schema",
                fields=[error.field for error in errors],
            )
            raise SubmissionValidationError(errors) from e

        return self._sanitize(payload)

    def _sanitize(self, payload: ConsentSubmissionPayload) -> ConsentSubmission:
        accepted = clean_activity_ids(payload.accepted_activities, self._max_activities)
        rejected = clean_activity_ids(payload.rejected_activities, self._max_activities)

        # An id in both sets is treated as rejected
        rejected_set = set(rejected)
        accepted = [activity_id for activity_id in accepted if activity_id not in rejected_set]

        accepted_purposes = clean_purpose_map(payload.accepted_purpose_consents)
        rejected_purposes = clean_purpose_map(payload.rejected_purpose_consents)
        legacy_purposes = clean_purpose_map(payload.activity_purpose_consents)
        if not accepted_purposes and legacy_purposes:
            accepted_purposes = dict(legacy_purposes)

        reason = payload.revocation_reason or None

        return ConsentSubmission(
            widget_id=payload.widget_id,
            visitor_id=payload.visitor_id,
            claimed_status=payload.consent_status,
            accepted_activities=accepted,
            rejected_activities=rejected,
            accepted_purpose_consents=accepted_purposes,
            rejected_purpose_consents=rejected_purposes,
            activity_purpose_consents=legacy_purposes,
            rule_context=clean_rule_context(payload.rule_context),
            metadata=clean_metadata(payload.metadata),
            visitor_email=payload.visitor_email,
            consent_duration=clamp_consent_duration(payload.consent_duration),
            revocation_reason=reason,
        )

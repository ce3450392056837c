"""
Unit Tests for Input Validator

Tests schema rejection and the silent sanitization rules.
"""

import pytest

from consentry.domain.enums import ConsentStatus
from consentry.domain.exceptions import SubmissionValidationError, TooManyActivitiesError
from consentry.services.validation import (
    InputValidator,
    clamp_consent_duration,
    enforce_activity_limits,
)

from fakes import ANALYTICS, MARKETING, PURPOSE_ONE, PURPOSE_TWO, SUPPORT


@pytest.fixture
def validator():
    return InputValidator()


def base_payload(**overrides) -> dict:
    payload = {
        "widgetId": "w1",
        "visitorId": "v1",
        "consentStatus": "accepted",
        "acceptedActivities": [ANALYTICS],
    }
    payload.update(overrides)
    return payload


class TestSchemaChecks:
    """Tests for schema-level rejection."""

    def test_non_object_body_rejected(self, validator):
        with pytest.raises(SubmissionValidationError) as exc_info:
            validator.validate(["not", "an", "object"])

        assert exc_info.value.details[0]["field"] == "body"

    @pytest.mark.parametrize("field_name", ["widgetId", "visitorId", "consentStatus"])
    def test_required_fields(self, validator, field_name):
        """Missing required identifiers are reported by wire name."""
        payload = base_payload()
        del payload[field_name]

        with pytest.raises(SubmissionValidationError) as exc_info:
            validator.validate(payload)

        assert field_name in [d["field"] for d in exc_info.value.details]
        assert exc_info.value.code == "VALIDATION_ERROR"
        assert exc_info.value.status_code == 400

    def test_unknown_status_rejected(self, validator):
        with pytest.raises(SubmissionValidationError):
            validator.validate(base_payload(consentStatus="maybe"))

    def test_widget_id_length_limit(self, validator):
        with pytest.raises(SubmissionValidationError):
            validator.validate(base_payload(widgetId="w" * 101))

    def test_activity_array_must_be_array(self, validator):
        with pytest.raises(SubmissionValidationError):
            validator.validate(base_payload(acceptedActivities="everything"))

    def test_purpose_map_must_be_object(self, validator):
        with pytest.raises(SubmissionValidationError):
            validator.validate(base_payload(acceptedPurposeConsents=[PURPOSE_ONE]))

    def test_malformed_email_rejected(self, validator):
        with pytest.raises(SubmissionValidationError) as exc_info:
            validator.validate(base_payload(visitorEmail="not-an-email"))

        assert exc_info.value.details[0]["field"] == "visitorEmail"

    def test_blank_email_treated_as_absent(self, validator):
        submission = validator.validate(base_payload(visitorEmail="   "))

        assert submission.visitor_email is None

    def test_email_is_lower_cased(self, validator):
        submission = validator.validate(base_payload(visitorEmail=" Alice@Example.COM "))

        assert submission.visitor_email == "alice@example.com"


class TestActivitySanitization:
    """Tests for activity list cleaning."""

    def test_invalid_entries_dropped(self, validator):
        """Non-strings and non-UUIDs vanish without failing the request."""
        submission = validator.validate(base_payload(
            acceptedActivities=[ANALYTICS, "nope", 7, None, MARKETING],
        ))

        assert submission.accepted_activities == [ANALYTICS, MARKETING]

    def test_duplicates_collapsed_first_wins(self, validator):
        submission = validator.validate(base_payload(
            acceptedActivities=[MARKETING, ANALYTICS, MARKETING],
        ))

        assert submission.accepted_activities == [MARKETING, ANALYTICS]

    def test_overlap_kept_only_in_rejected(self, validator):
        """An id sent in both lists counts as rejected."""
        submission = validator.validate(base_payload(
            consentStatus="partial",
            acceptedActivities=[ANALYTICS, MARKETING],
            rejectedActivities=[MARKETING],
        ))

        assert submission.accepted_activities == [ANALYTICS]
        assert submission.rejected_activities == [MARKETING]

    def test_ids_lower_cased_before_dedup_and_overlap(self, validator):
        """Case variants of one UUID are the same activity."""
        submission = validator.validate(base_payload(
            consentStatus="partial",
            acceptedActivities=[ANALYTICS.upper(), ANALYTICS, MARKETING],
            rejectedActivities=[ANALYTICS],
        ))

        assert submission.accepted_activities == [MARKETING]
        assert submission.rejected_activities == [ANALYTICS]

    def test_silent_truncation(self):
        validator = InputValidator(max_activities=2)

        submission = validator.validate(base_payload(
            acceptedActivities=[ANALYTICS, MARKETING, SUPPORT],
        ))

        assert submission.accepted_activities == [ANALYTICS, MARKETING]

    def test_boundary_guard_rejects_oversized_lists(self):
        raw = base_payload(rejectedActivities=[ANALYTICS] * 101)

        with pytest.raises(TooManyActivitiesError) as exc_info:
            enforce_activity_limits(raw, limit=100)

        assert exc_info.value.code == "TOO_MANY_ACTIVITIES"
        assert exc_info.value.details == {"field": "rejectedActivities", "count": 101, "limit": 100}

    def test_boundary_guard_allows_limit(self):
        enforce_activity_limits(base_payload(acceptedActivities=[ANALYTICS] * 100), limit=100)


class TestPurposeMaps:
    """Tests for purpose map validation."""

    def test_invalid_entries_dropped(self, validator):
        """An entry with a bad key or any bad purpose id is removed whole."""
        submission = validator.validate(base_payload(
            acceptedPurposeConsents={
                ANALYTICS: [PURPOSE_ONE, PURPOSE_TWO],
                MARKETING: [PURPOSE_ONE, "bad"],
                "bad-key": [PURPOSE_ONE],
                SUPPORT: "not-a-list",
            },
        ))

        assert submission.accepted_purpose_consents == {ANALYTICS: [PURPOSE_ONE, PURPOSE_TWO]}

    def test_ids_lower_cased(self, validator):
        submission = validator.validate(base_payload(
            acceptedPurposeConsents={ANALYTICS.upper(): [PURPOSE_TWO.upper(), PURPOSE_TWO]},
        ))

        assert submission.accepted_purpose_consents == {ANALYTICS: [PURPOSE_TWO]}

    def test_missing_maps_become_empty(self, validator):
        submission = validator.validate(base_payload())

        assert submission.accepted_purpose_consents == {}
        assert submission.rejected_purpose_consents == {}

    def test_legacy_map_feeds_accepted(self, validator):
        submission = validator.validate(base_payload(
            activityPurposeConsents={ANALYTICS: [PURPOSE_ONE]},
        ))

        assert submission.accepted_purpose_consents == {ANALYTICS: [PURPOSE_ONE]}
        assert submission.activity_purpose_consents == {ANALYTICS: [PURPOSE_ONE]}

    def test_explicit_accepted_map_wins_over_legacy(self, validator):
        submission = validator.validate(base_payload(
            acceptedPurposeConsents={ANALYTICS: [PURPOSE_TWO]},
            activityPurposeConsents={ANALYTICS: [PURPOSE_ONE]},
        ))

        assert submission.accepted_purpose_consents == {ANALYTICS: [PURPOSE_TWO]}


class TestMetadataAndRuleContext:
    """Tests for metadata and rule context cleaning."""

    def test_relative_urls_dropped(self, validator):
        submission = validator.validate(base_payload(metadata={
            "currentUrl": "/checkout",
            "referrer": "https://search.example/?q=shoes",
            "pageTitle": "  Checkout  ",
        }))

        assert submission.metadata.current_url is None
        assert submission.metadata.referrer == "https://search.example/?q=shoes"
        assert submission.metadata.page_title == "Checkout"

    def test_unknown_device_type_dropped(self, validator):
        submission = validator.validate(base_payload(metadata={"deviceType": "Toaster"}))

        assert submission.metadata.device_type is None

    def test_long_text_capped(self, validator):
        submission = validator.validate(base_payload(metadata={"pageTitle": "x" * 5000}))

        assert len(submission.metadata.page_title) == 2048

    def test_incomplete_rule_context_dropped(self, validator):
        submission = validator.validate(base_payload(ruleContext={
            "ruleId": "r1",
            "ruleName": "Checkout",
            "urlPattern": "",
            "pageUrl": "https://shop.example.com/checkout",
        }))

        assert submission.rule_context is None

    def test_rule_context_page_url_used_without_current_url(self, validator):
        submission = validator.validate(base_payload(ruleContext={
            "ruleId": "r1",
            "ruleName": "Checkout",
            "urlPattern": "/checkout*",
            "pageUrl": "https://shop.example.com/checkout",
            "matchedAt": "2026-03-15T12:00:00Z",
        }))

        assert submission.rule_context.matched_at == "2026-03-15T12:00:00Z"
        assert submission.page_url == "https://shop.example.com/checkout"


class TestDuration:
    """Tests for consent duration clamping."""

    @pytest.mark.parametrize("raw,expected", [
        (None, None),
        (0, None),
        (-5, None),
        (1, 1),
        (30, 30),
        (99999, 3650),
    ])
    def test_clamp(self, raw, expected):
        assert clamp_consent_duration(raw) == expected

    def test_zero_submission_duration_is_no_override(self, validator):
        submission = validator.validate(base_payload(consentDuration=0))

        assert submission.consent_duration is None

    def test_submission_duration_clamped(self, validator):
        submission = validator.validate(base_payload(consentDuration=5000))

        assert submission.consent_duration == 3650

    def test_claimed_status_parsed(self, validator):
        submission = validator.validate(base_payload(consentStatus="revoked"))

        assert submission.claimed_status == ConsentStatus.REVOKED

"""
Unit Tests for Consent Record Domain Model

Tests integrity rules, selection comparison and detail serialization.
"""

import pytest
from datetime import datetime, timedelta, timezone

from consentry.domain.enums import ConsentStatus
from consentry.domain.models import (
    ConsentDetails,
    ConsentMetadata,
    ConsentRecord,
    NoticeSnapshot,
    RuleContext,
    is_valid_activity_id,
)

from fakes import ANALYTICS, MARKETING, SUPPORT

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def make_record(**overrides) -> ConsentRecord:
    values = dict(
        widget_id="w1",
        visitor_id="v1",
        status=ConsentStatus.ACCEPTED,
        consented_activities=[ANALYTICS],
        rejected_activities=[],
        given_at=NOW,
        updated_at=NOW,
        expires_at=NOW + timedelta(days=365),
    )
    values.update(overrides)
    return ConsentRecord(**values)


class TestActivityIdFormat:
    """Tests for the canonical activity id check."""

    def test_accepts_uuid_any_case(self):
        """Canonical UUIDs are accepted regardless of case."""
        assert is_valid_activity_id(ANALYTICS)
        assert is_valid_activity_id(ANALYTICS.upper())

    @pytest.mark.parametrize("value", ["", "not-a-uuid", "3f1c2a4e8b6d4c1a9e2f1a2b3c4d5e6f", 42, None])
    def test_rejects_non_uuid(self, value):
        """Anything but a hyphenated UUID string is rejected."""
        assert not is_valid_activity_id(value)


class TestInvariantViolations:
    """Tests for ConsentRecord.invariant_violations."""

    def test_valid_record_has_no_violations(self):
        assert make_record().invariant_violations() == []

    def test_overlap_is_reported(self):
        """An activity may not be both accepted and rejected."""
        record = make_record(
            status=ConsentStatus.PARTIAL,
            consented_activities=[ANALYTICS, MARKETING],
            rejected_activities=[MARKETING],
        )

        violations = record.invariant_violations()

        assert any("both accepted and rejected" in v for v in violations)

    def test_case_variant_overlap_is_reported(self):
        record = make_record(
            status=ConsentStatus.PARTIAL,
            consented_activities=[ANALYTICS.upper(), SUPPORT],
            rejected_activities=[ANALYTICS],
        )

        assert any("both accepted and rejected" in v for v in record.invariant_violations())

    def test_malformed_id_is_reported(self):
        record = make_record(consented_activities=[ANALYTICS, "bogus"])

        assert any("malformed" in v for v in record.invariant_violations())

    @pytest.mark.parametrize("status,accepted,rejected", [
        (ConsentStatus.ACCEPTED, [], [MARKETING]),
        (ConsentStatus.REJECTED, [ANALYTICS], []),
        (ConsentStatus.PARTIAL, [ANALYTICS], []),
        (ConsentStatus.PARTIAL, [], [MARKETING]),
    ])
    def test_status_requires_matching_activities(self, status, accepted, rejected):
        """Each non-revoked status needs its side of the selection."""
        record = make_record(
            status=status,
            consented_activities=accepted,
            rejected_activities=rejected,
        )

        assert record.invariant_violations()

    def test_revoked_has_no_activity_requirement(self):
        record = make_record(
            status=ConsentStatus.REVOKED,
            consented_activities=[],
            revoked_at=NOW,
        )

        assert record.invariant_violations() == []

    def test_revoked_requires_revoked_at(self):
        record = make_record(status=ConsentStatus.REVOKED, consented_activities=[])

        assert "revoked status requires revoked_at" in record.invariant_violations()

    def test_revoked_at_forbidden_when_not_revoked(self):
        record = make_record(revoked_at=NOW)

        assert "revoked_at set on a non-revoked record" in record.invariant_violations()

    def test_expiry_must_follow_update(self):
        record = make_record(expires_at=NOW)

        assert "expiry must be after the last update" in record.invariant_violations()


class TestSelectionMatches:
    """Tests for set-semantics selection comparison."""

    def test_order_and_duplicates_ignored(self):
        """Same sets in another order, with duplicates, still match."""
        record = make_record(
            status=ConsentStatus.PARTIAL,
            consented_activities=[ANALYTICS, SUPPORT],
            rejected_activities=[MARKETING],
        )

        assert record.selection_matches(
            ConsentStatus.PARTIAL,
            [SUPPORT, ANALYTICS, SUPPORT],
            [MARKETING],
        )

    def test_id_case_ignored(self):
        record = make_record(consented_activities=[ANALYTICS.upper()])

        assert record.selection_matches(ConsentStatus.ACCEPTED, [ANALYTICS], [])

    def test_different_status_does_not_match(self):
        record = make_record()

        assert not record.selection_matches(ConsentStatus.PARTIAL, [ANALYTICS], [])

    def test_different_activities_do_not_match(self):
        record = make_record()

        assert not record.selection_matches(ConsentStatus.ACCEPTED, [ANALYTICS, SUPPORT], [])


class TestPageUrl:
    """Tests for the record's captured page URL."""

    def test_details_page_url_preferred(self):
        record = make_record(consent_details=ConsentDetails(
            page_url="https://a.example/x",
            metadata=ConsentMetadata(current_url="https://a.example/y"),
        ))

        assert record.page_url == "https://a.example/x"

    def test_falls_back_to_metadata_current_url(self):
        record = make_record(consent_details=ConsentDetails(
            metadata=ConsentMetadata(current_url="https://a.example/y"),
        ))

        assert record.page_url == "https://a.example/y"

    def test_missing_everywhere(self):
        assert make_record().page_url is None


class TestConsentDetailsSerialization:
    """Tests for the nested detail document."""

    def test_snapshot_keys_only_when_attached(self):
        """Without a snapshot the legacy snapshot keys are absent."""
        details = ConsentDetails()

        data = details.to_dict()

        assert "privacy_notice_snapshot" not in data
        assert "noticeSnapshot" not in data
        assert "activityPurposeConsents" not in data

    def test_attached_snapshot_is_serialized(self):
        details = ConsentDetails()
        details.attach_snapshot(NoticeSnapshot(
            html="<p>notice</p>",
            captured_at=NOW,
            notice_version="3.0",
            domain="shop.example.com",
        ))

        data = details.to_dict()

        assert data["privacy_notice_snapshot"] == "<p>notice</p>"
        assert data["noticeSnapshot"] == {
            "capturedAt": NOW.isoformat(),
            "noticeVersion": "3.0",
            "domain": "shop.example.com",
        }

    def test_from_dict_restores_fields(self):
        """A stored document reads back into equivalent details."""
        details = ConsentDetails(
            activity_consents={ANALYTICS: {"status": "accepted", "timestamp": NOW.isoformat()}},
            accepted_purpose_consents={ANALYTICS: [MARKETING]},
            rule_context=RuleContext("r1", "Checkout", "/checkout*", "https://a.example/checkout"),
            page_url="https://a.example/checkout",
            metadata=ConsentMetadata(browser="Chrome", country="IN"),
        )

        restored = ConsentDetails.from_dict(details.to_dict())

        assert restored == details

    def test_metadata_drops_empty_values(self):
        metadata = ConsentMetadata(browser="Firefox", os="", country=None)

        assert metadata.to_dict() == {"browser": "Firefox"}

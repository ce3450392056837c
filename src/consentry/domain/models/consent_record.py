"""
Consent Record Domain Model

The system of record for a visitor's consent on a widget. Regulator-facing:
every record carries the selection, the derived status, the device context
and a frozen snapshot of the notice the visitor saw.

Records are created on the first unmatched submission, mutated in place
when a later submission continues them, and never physically deleted here.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from consentry.domain.enums import ConsentStatus
from consentry.domain.models.submission import ConsentMetadata, RuleContext


ACTIVITY_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

MIN_CONSENT_DURATION_DAYS = 1
MAX_CONSENT_DURATION_DAYS = 3650


def is_valid_activity_id(value: object) -> bool:
    """Check an activity or purpose id against the canonical UUID format."""
    return isinstance(value, str) and ACTIVITY_ID_PATTERN.match(value) is not None


@dataclass(frozen=True)
class NoticeSnapshot:
    """Sanitized privacy notice HTML frozen at consent time."""

    html: str
    captured_at: datetime
    notice_version: str
    domain: str = ""

    def meta_dict(self) -> dict:
        return {
            "capturedAt": self.captured_at.isoformat(),
            "noticeVersion": self.notice_version,
            "domain": self.domain,
        }


@dataclass
class ConsentDetails:
    """
    Nested consent detail document.

    Serialized with the key names existing dashboards read
    (camelCase, plus the legacy `privacy_notice_snapshot` key).
    """

    activity_consents: dict[str, dict] = field(default_factory=dict)
    accepted_purpose_consents: dict[str, list[str]] = field(default_factory=dict)
    rejected_purpose_consents: dict[str, list[str]] = field(default_factory=dict)
    activity_purpose_consents: dict[str, list[str]] = field(default_factory=dict)
    rule_context: Optional[RuleContext] = None
    page_url: Optional[str] = None
    notice_snapshot_html: Optional[str] = None
    notice_snapshot_meta: Optional[dict] = None
    metadata: ConsentMetadata = field(default_factory=ConsentMetadata)

    def to_dict(self) -> dict:
        data = {
            "activityConsents": self.activity_consents,
            "acceptedPurposeConsents": self.accepted_purpose_consents,
            "rejectedPurposeConsents": self.rejected_purpose_consents,
            "ruleContext": self.rule_context.to_dict() if self.rule_context else None,
            "pageUrl": self.page_url,
            "metadata": self.metadata.to_dict(),
        }
        if self.activity_purpose_consents:
            data["activityPurposeConsents"] = self.activity_purpose_consents
        if self.notice_snapshot_html is not None:
            data["privacy_notice_snapshot"] = self.notice_snapshot_html
            data["noticeSnapshot"] = self.notice_snapshot_meta
        return data

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "ConsentDetails":
        data = data or {}
        return cls(
            activity_consents=data.get("activityConsents") or {},
            accepted_purpose_consents=data.get("acceptedPurposeConsents") or {},
            rejected_purpose_consents=data.get("rejectedPurposeConsents") or {},
            activity_purpose_consents=data.get("activityPurposeConsents") or {},
            rule_context=RuleContext.from_dict(data.get("ruleContext")),
            page_url=data.get("pageUrl"),
            notice_snapshot_html=data.get("privacy_notice_snapshot"),
            notice_snapshot_meta=data.get("noticeSnapshot"),
            metadata=ConsentMetadata.from_dict(data.get("metadata")),
        )

    def attach_snapshot(self, snapshot: Optional[NoticeSnapshot]) -> None:
        if snapshot is None:
            self.notice_snapshot_html = None
            self.notice_snapshot_meta = None
            return
        self.notice_snapshot_html = snapshot.html
        self.notice_snapshot_meta = snapshot.meta_dict()


@dataclass
class ConsentRecord:
    """
    Persisted consent record.

    Attributes:
        id: Primary key, returned to the widget as the record reference
        consent_id: Human-traceable identifier (see identifiers.consent_id)
        widget_id: Collecting widget
        visitor_id: Anonymous visitor token (shown to visitors as consent code)
        visitor_email: Plaintext e-mail, visible to the tenant only
        visitor_email_hash: SHA-256 of the normalized e-mail, used for matching
        status: Authoritative status after reconciliation
        consented_activities: Accepted activity ids
        rejected_activities: Rejected activity ids
        consent_details: Nested detail document
        given_at: First time this record was written
        updated_at: Last mutation
        expires_at: When the consent lapses
        revoked_at: Set while status is revoked
        revocation_reason: Set while status is revoked
        notice_version: Notice version tag at creation
    """

    widget_id: str
    visitor_id: str
    status: ConsentStatus
    expires_at: datetime
    id: UUID = field(default_factory=uuid4)
    consent_id: str = ""
    visitor_email: Optional[str] = None
    visitor_email_hash: Optional[str] = None
    consented_activities: list[str] = field(default_factory=list)
    rejected_activities: list[str] = field(default_factory=list)
    consent_details: ConsentDetails = field(default_factory=ConsentDetails)
    given_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    revoked_at: Optional[datetime] = None
    revocation_reason: Optional[str] = None
    notice_version: str = ""

    @property
    def is_revoked(self) -> bool:
        return self.status == ConsentStatus.REVOKED

    @property
    def page_url(self) -> Optional[str]:
        """Page URL this record was captured on, if known."""
        if self.consent_details.page_url:
            return self.consent_details.page_url
        return self.consent_details.metadata.current_url

    def selection_matches(
        self,
        status: ConsentStatus,
        accepted: list[str],
        rejected: list[str],
    ) -> bool:
        """
        Compare status and activity selections using set semantics.

        Order, duplicate entries and id letter case are ignored on both sides.
        """
        def ids(values: list[str]) -> set[str]:
            return {value.lower() for value in values}

        return (
            self.status == status
            and ids(self.consented_activities) == ids(accepted)
            and ids(self.rejected_activities) == ids(rejected)
        )

    def invariant_violations(self) -> list[str]:
        """
        List every integrity rule this record currently breaks.

        Empty list means the record may be persisted.
        """
        violations: list[str] = []
        accepted = {activity_id.lower() for activity_id in self.consented_activities}
        rejected = {activity_id.lower() for activity_id in self.rejected_activities}

        overlap = accepted & rejected
        if overlap:
            violations.append(
                f"activities both accepted and rejected: {sorted(overlap)}"
            )

        malformed = [
            activity_id
            for activity_id in self.consented_activities + self.rejected_activities
            if not is_valid_activity_id(activity_id)
        ]
        if malformed:
            violations.append(f"malformed activity ids: {malformed}")

        if self.status == ConsentStatus.ACCEPTED and not accepted:
            violations.append("accepted status requires consented activities")
        elif self.status == ConsentStatus.REJECTED and not rejected:
            violations.append("rejected status requires rejected activities")
        elif self.status == ConsentStatus.PARTIAL and not (accepted and rejected):
            violations.append("partial status requires consented and rejected activities")

        if self.expires_at <= self.updated_at:
            violations.append("expiry must be after the last update")

        if self.status == ConsentStatus.REVOKED and self.revoked_at is None:
            violations.append("revoked status requires revoked_at")
        if self.status != ConsentStatus.REVOKED and self.revoked_at is not None:
            violations.append("revoked_at set on a non-revoked record")

        return violations

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "id": str(self.id),
            "consent_id": self.consent_id,
            "widget_id": self.widget_id,
            "visitor_id": self.visitor_id,
            "status": self.status.value,
            "consented_activities": list(self.consented_activities),
            "rejected_activities": list(self.rejected_activities),
            "consent_details": self.consent_details.to_dict(),
            "given_at": self.given_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "revoked_at": self.revoked_at.isoformat() if self.revoked_at else None,
            "revocation_reason": self.revocation_reason,
            "notice_version": self.notice_version,
        }

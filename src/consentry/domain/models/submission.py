"""
Consent Submission Domain Model

The validated, sanitized form of a visitor's consent decision as sent
by the public widget. Produced by the input validator; consumed by the
rest of the pipeline. Ephemeral - never persisted as-is.
"""

from dataclasses import dataclass, field
from typing import Optional

from consentry.domain.enums import ConsentStatus


@dataclass(frozen=True)
class RuleContext:
    """
    On-page display rule that triggered the banner.

    Only kept when every identifying field is populated.
    """

    rule_id: str
    rule_name: str
    url_pattern: str
    page_url: str
    matched_at: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "ruleId": self.rule_id,
            "ruleName": self.rule_name,
            "urlPattern": self.url_pattern,
            "pageUrl": self.page_url,
        }
        if self.matched_at:
            data["matchedAt"] = self.matched_at
        return data

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["RuleContext"]:
        if not data:
            return None
        return cls(
            rule_id=data["ruleId"],
            rule_name=data["ruleName"],
            url_pattern=data["urlPattern"],
            page_url=data["pageUrl"],
            matched_at=data.get("matchedAt"),
        )


@dataclass
class ConsentMetadata:
    """
    Request and device metadata captured with the consent.

    Every field is optional; absent values are omitted on serialization.
    """

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    device_type: Optional[str] = None
    browser: Optional[str] = None
    os: Optional[str] = None
    country: Optional[str] = None
    language: Optional[str] = None
    referrer: Optional[str] = None
    current_url: Optional[str] = None
    page_title: Optional[str] = None

    WIRE_NAMES = {
        "ip_address": "ipAddress",
        "user_agent": "userAgent",
        "device_type": "deviceType",
        "browser": "browser",
        "os": "os",
        "country": "country",
        "language": "language",
        "referrer": "referrer",
        "current_url": "currentUrl",
        "page_title": "pageTitle",
    }

    def to_dict(self) -> dict:
        """Serialize using wire (camelCase) names, dropping empty values."""
        return {
            wire: getattr(self, attr)
            for attr, wire in self.WIRE_NAMES.items()
            if getattr(self, attr)
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "ConsentMetadata":
        data = data or {}
        return cls(**{
            attr: data.get(wire)
            for attr, wire in cls.WIRE_NAMES.items()
        })


@dataclass
class ConsentSubmission:
    """
    Validated consent submission.

    Attributes:
        widget_id: Widget the consent was collected by
        visitor_id: Anonymous client-generated visitor token
        claimed_status: Status computed by the widget (advisory)
        accepted_activities: Accepted activity ids (valid, de-duplicated)
        rejected_activities: Rejected activity ids (valid, de-duplicated)
        accepted_purpose_consents: activity id -> accepted purpose ids
        rejected_purpose_consents: activity id -> rejected purpose ids
        activity_purpose_consents: deprecated accepted-purpose map, kept
            for older widget builds
        rule_context: Display rule that triggered the banner
        metadata: Sanitized page/device metadata from the client
        visitor_email: Verified e-mail (normalized) if supplied
        consent_duration: Duration override in days (already clamped)
        revocation_reason: Free-text reason for revocation
    """

    widget_id: str
    visitor_id: str
    claimed_status: ConsentStatus
    accepted_activities: list[str] = field(default_factory=list)
    rejected_activities: list[str] = field(default_factory=list)
    accepted_purpose_consents: dict[str, list[str]] = field(default_factory=dict)
    rejected_purpose_consents: dict[str, list[str]] = field(default_factory=dict)
    activity_purpose_consents: dict[str, list[str]] = field(default_factory=dict)
    rule_context: Optional[RuleContext] = None
    metadata: ConsentMetadata = field(default_factory=ConsentMetadata)
    visitor_email: Optional[str] = None
    consent_duration: Optional[int] = None
    revocation_reason: Optional[str] = None

    @property
    def page_url(self) -> Optional[str]:
        """Page the consent was given on (metadata first, then rule context)."""
        if self.metadata.current_url:
            return self.metadata.current_url
        if self.rule_context:
            return self.rule_context.page_url
        return None

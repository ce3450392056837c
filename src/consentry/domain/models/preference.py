"""
Preference Projection Domain Models

Derived per-activity view of a visitor's latest choices, read by the
self-service preference centre. Rebuilt from consent records; never the
system of record.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from consentry.domain.enums import PreferenceStatus


@dataclass
class PreferenceProjection:
    """One row per (visitor, widget, activity)."""

    visitor_id: str
    widget_id: str
    activity_id: str
    status: PreferenceStatus
    updated_at: datetime
    expires_at: Optional[datetime] = None
    visitor_email_hash: Optional[str] = None

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.visitor_id, self.widget_id, self.activity_id)


@dataclass(frozen=True)
class BestEffortOutcome:
    """
    Result of a side step that must not fail the request.

    Attributes:
        step: Name of the side step (e.g. "notice_snapshot")
        succeeded: Whether the step completed
        reason: Failure reason when it did not
    """

    step: str
    succeeded: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls, step: str) -> "BestEffortOutcome":
        return cls(step=step, succeeded=True)

    @classmethod
    def failed(cls, step: str, reason: str) -> "BestEffortOutcome":
        return cls(step=step, succeeded=False, reason=reason)

    def to_dict(self) -> dict:
        return {"step": self.step, "succeeded": self.succeeded, "reason": self.reason}

"""
Subscription & Entitlement Domain Models

Tenant plan data used by the quota gate. The quota is charged to the
tenant that owns the widget, never to the visitor.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


# Monthly consent-record allowance per plan; None means unlimited
PLAN_CONSENT_LIMITS: dict[str, Optional[int]] = {
    "free": 5_000,
    "small": 50_000,
    "medium": 100_000,
    "enterprise": None,
}

DEFAULT_PLAN = "free"


@dataclass(frozen=True)
class Subscription:
    """Tenant subscription as stored by billing."""

    user_id: str
    plan: str
    status: str = "active"
    trial_ends_at: Optional[datetime] = None

    def is_trial_active(self, now: datetime) -> bool:
        return (
            self.status == "trialing"
            and self.trial_ends_at is not None
            and self.trial_ends_at > now
        )


@dataclass(frozen=True)
class Entitlements:
    """
    What a tenant is allowed to record.

    Attributes:
        plan: Plan tier (free, small, medium, enterprise)
        is_trial: Whether an active trial is in effect
        consent_limit: Monthly record allowance, None for unlimited
    """

    plan: str
    is_trial: bool = False
    consent_limit: Optional[int] = PLAN_CONSENT_LIMITS[DEFAULT_PLAN]

    @property
    def is_unlimited(self) -> bool:
        return self.consent_limit is None


@dataclass(frozen=True)
class QuotaUsage:
    """Consent usage for the current calendar month."""

    used: int
    limit: Optional[int]
    remaining: Optional[int]
    allowed: bool

    def to_dict(self) -> dict:
        return {
            "used": self.used,
            "limit": self.limit,
            "remaining": self.remaining,
            "allowed": self.allowed,
        }

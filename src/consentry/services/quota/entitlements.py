"""
Entitlement Provider

Resolves a tenant's plan and current-month consent usage.

The provider interface is what the quota gate consumes; the
store-backed implementation reads the subscription directory and counts
records created this calendar month (UTC) across the tenant's widgets.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Optional

from consentry.domain.models import (
    DEFAULT_PLAN,
    PLAN_CONSENT_LIMITS,
    Entitlements,
    QuotaUsage,
)
from consentry.infrastructure.database.repositories.interfaces import (
    ConsentRecordStore,
    SubscriptionDirectory,
)
from consentry.config.logging_config import get_logger

logger = get_logger(__name__)


def start_of_month(now: datetime) -> datetime:
    """Midnight UTC on the first day of `now`'s month."""
    now = now.astimezone(timezone.utc)
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class EntitlementProvider(ABC):
    """
    Entitlement and usage lookups for a tenant.

    Implementations may raise any exception on lookup failure; the quota
    controller decides whether that admits or denies.
    """

    @abstractmethod
    async def get_entitlements(self, user_id: str) -> Entitlements:
        """Get the tenant's plan entitlements."""
        pass

    @abstractmethod
    async def check_consent_quota(
        self,
        user_id: str,
        entitlements: Entitlements,
    ) -> QuotaUsage:
        """Compute current-month usage against the entitlement limit."""
        pass


class StoreEntitlementProvider(EntitlementProvider):
    """
    Entitlements backed by the subscription directory and record store.

    Tenants without a subscription get the free plan. An active trial
    lifts the limit entirely.
    """

    def __init__(
        self,
        subscriptions: SubscriptionDirectory,
        records: ConsentRecordStore,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._subscriptions = subscriptions
        self._records = records
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def get_entitlements(self, user_id: str) -> Entitlements:
        subscription = await self._subscriptions.get_subscription(user_id)
        if subscription is None:
            return Entitlements(plan=DEFAULT_PLAN)

        plan = subscription.plan if subscription.plan in PLAN_CONSENT_LIMITS else DEFAULT_PLAN
        if subscription.is_trial_active(self._clock()):
            return Entitlements(plan=plan, is_trial=True, consent_limit=None)
        return Entitlements(plan=plan, consent_limit=PLAN_CONSENT_LIMITS[plan])

    async def check_consent_quota(
        self,
        user_id: str,
        entitlements: Entitlements,
    ) -> QuotaUsage:
        used = await self._records.count_created_since(
            user_id, start_of_month(self._clock())
        )
        limit = entitlements.consent_limit
        if limit is None:
            return QuotaUsage(used=used, limit=None, remaining=None, allowed=True)
        return QuotaUsage(
            used=used,
            limit=limit,
            remaining=max(limit - used, 0),
            allowed=used < limit,
        )

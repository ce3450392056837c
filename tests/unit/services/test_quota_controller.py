"""
Unit Tests for Quota Admission

Tests plan limits, trials, fail-open behaviour and denial details.
"""

import pytest
from datetime import datetime, timedelta, timezone

from consentry.domain.enums import ConsentStatus
from consentry.domain.exceptions import ConsentLimitExceededError
from consentry.domain.models import ConsentRecord, Entitlements, Subscription
from consentry.services.quota import QuotaController, StoreEntitlementProvider, start_of_month

from fakes import ANALYTICS, InMemoryConsentRecordStore, InMemorySubscriptionDirectory

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def add_records(store, count, given_at):
    for index in range(count):
        record = ConsentRecord(
            widget_id="w1",
            visitor_id=f"v{index}",
            status=ConsentStatus.ACCEPTED,
            consented_activities=[ANALYTICS],
            given_at=given_at,
            updated_at=given_at,
            expires_at=given_at + timedelta(days=365),
        )
        store.records[record.id] = record


@pytest.fixture
def records():
    return InMemoryConsentRecordStore(owners={"w1": "tenant-1"})


@pytest.fixture
def subscriptions():
    return InMemorySubscriptionDirectory()


@pytest.fixture
def provider(subscriptions, records):
    return StoreEntitlementProvider(subscriptions, records, clock=lambda: NOW)


class TestStartOfMonth:
    """Tests for the usage window."""

    def test_start_of_month_utc(self):
        assert start_of_month(NOW) == datetime(2026, 3, 1, tzinfo=timezone.utc)

    def test_converts_other_offsets(self):
        """Local midnight on the 1st still belongs to the previous UTC month."""
        ist = timezone(timedelta(hours=5, minutes=30))
        local = datetime(2026, 4, 1, 2, 0, tzinfo=ist)

        assert start_of_month(local) == datetime(2026, 3, 1, tzinfo=timezone.utc)


class TestEntitlements:
    """Tests for plan resolution."""

    async def test_no_subscription_is_free(self, provider):
        entitlements = await provider.get_entitlements("tenant-1")

        assert entitlements.plan == "free"
        assert entitlements.consent_limit == 5000

    @pytest.mark.parametrize("plan,limit", [
        ("small", 50000),
        ("medium", 100000),
        ("enterprise", None),
    ])
    async def test_plan_limits(self, subscriptions, provider, plan, limit):
        subscriptions.subscriptions["tenant-1"] = Subscription(user_id="tenant-1", plan=plan)

        entitlements = await provider.get_entitlements("tenant-1")

        assert entitlements.consent_limit == limit

    async def test_unknown_plan_is_free(self, subscriptions, provider):
        subscriptions.subscriptions["tenant-1"] = Subscription(user_id="tenant-1", plan="platinum")

        entitlements = await provider.get_entitlements("tenant-1")

        assert entitlements.plan == "free"

    async def test_active_trial_is_unlimited(self, subscriptions, provider):
        subscriptions.subscriptions["tenant-1"] = Subscription(
            user_id="tenant-1",
            plan="free",
            status="trialing",
            trial_ends_at=NOW + timedelta(days=3),
        )

        entitlements = await provider.get_entitlements("tenant-1")

        assert entitlements.is_trial
        assert entitlements.is_unlimited

    async def test_expired_trial_uses_plan_limit(self, subscriptions, provider):
        subscriptions.subscriptions["tenant-1"] = Subscription(
            user_id="tenant-1",
            plan="small",
            status="trialing",
            trial_ends_at=NOW - timedelta(days=1),
        )

        entitlements = await provider.get_entitlements("tenant-1")

        assert not entitlements.is_trial
        assert entitlements.consent_limit == 50000

    async def test_usage_counts_current_month_only(self, records, provider):
        add_records(records, 3, NOW - timedelta(days=2))
        add_records(records, 4, datetime(2026, 2, 27, tzinfo=timezone.utc))

        usage = await provider.check_consent_quota("tenant-1", Entitlements(plan="free", consent_limit=5))

        assert usage.to_dict() == {"used": 3, "limit": 5, "remaining": 2, "allowed": True}


class TestQuotaController:
    """Tests for the admission gate."""

    async def test_admits_under_limit(self, records, provider):
        add_records(records, 2, NOW)
        controller = QuotaController(provider)

        decision = await controller.admit("tenant-1")

        assert decision.checked
        assert decision.usage.used == 2

    async def test_denies_at_limit(self, records):
        """Reaching the limit exactly is a denial."""
        add_records(records, 3, NOW)

        class TinyPlan(StoreEntitlementProvider):
            async def get_entitlements(self, user_id):
                return Entitlements(plan="free", consent_limit=3)

        controller = QuotaController(TinyPlan(InMemorySubscriptionDirectory(), records, clock=lambda: NOW))

        with pytest.raises(ConsentLimitExceededError) as exc_info:
            await controller.admit("tenant-1")

        assert exc_info.value.status_code == 403
        assert exc_info.value.code == "CONSENT_LIMIT_EXCEEDED"
        assert exc_info.value.details == {"used": 3, "limit": 3, "plan": "free"}

    async def test_lookup_error_fails_open(self, subscriptions, provider):
        subscriptions.fail_with = RuntimeError("billing down")
        controller = QuotaController(provider)

        decision = await controller.admit("tenant-1")

        assert not decision.checked

    async def test_lookup_error_propagates_when_fail_closed(self, subscriptions, provider):
        subscriptions.fail_with = RuntimeError("billing down")
        controller = QuotaController(provider, fail_open=False)

        with pytest.raises(RuntimeError):
            await controller.admit("tenant-1")

    async def test_disabled_gate_admits_unchecked(self, subscriptions, provider):
        subscriptions.fail_with = RuntimeError("never consulted")
        controller = QuotaController(provider, enabled=False)

        decision = await controller.admit("tenant-1")

        assert not decision.checked

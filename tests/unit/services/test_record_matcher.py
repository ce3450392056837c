"""
Unit Tests for Existing-Record Matcher

Tests URL normalization, each strategy and the chain fallback.
"""

import pytest
from datetime import datetime, timedelta, timezone

from consentry.domain.enums import ConsentStatus, MatchAction
from consentry.domain.models import ConsentDetails, ConsentRecord
from consentry.infrastructure.database.repositories.interfaces import StoreError
from consentry.services.identity import hash_email
from consentry.services.matching import (
    EmailHashMatchStrategy,
    MatchQuery,
    PageUrlMatchStrategy,
    RecordMatcher,
    normalize_url,
    same_page,
)

from fakes import ANALYTICS, MARKETING, InMemoryConsentRecordStore

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
ALICE = hash_email("alice@example.com")
BOB = hash_email("bob@example.com")


def seed(store, *, minutes_ago=0, page_url=None, email_hash=None, visitor_id="v1", **overrides):
    at = NOW - timedelta(minutes=minutes_ago)
    record = ConsentRecord(
        widget_id="w1",
        visitor_id=visitor_id,
        status=overrides.pop("status", ConsentStatus.ACCEPTED),
        consented_activities=overrides.pop("accepted", [ANALYTICS]),
        rejected_activities=overrides.pop("rejected", []),
        visitor_email_hash=email_hash,
        consent_details=ConsentDetails(page_url=page_url),
        given_at=at,
        updated_at=at,
        expires_at=at + timedelta(days=365),
        consent_id=f"w1_{visitor_id}_{minutes_ago}",
    )
    store.records[record.id] = record
    return record


def query(**overrides) -> MatchQuery:
    values = dict(
        widget_id="w1",
        visitor_id="v1",
        status=ConsentStatus.ACCEPTED,
        accepted=(ANALYTICS,),
        rejected=(),
        email_hash=None,
        page_url="https://shop.example.com/checkout",
    )
    values.update(overrides)
    return MatchQuery(**values)


@pytest.fixture
def store():
    return InMemoryConsentRecordStore()


class TestUrlNormalization:
    """Tests for page URL canonicalization."""

    @pytest.mark.parametrize("raw,expected", [
        ("HTTPS://Shop.Example.com/Checkout/?utm=1#pay", "https://shop.example.com/Checkout"),
        ("https://shop.example.com", "https://shop.example.com/"),
        ("https://shop.example.com/", "https://shop.example.com/"),
        ("https://shop.example.com/a//", "https://shop.example.com/a"),
        ("not a url", "not a url"),
        (None, None),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_url(raw) == expected

    def test_same_page_ignores_query(self):
        assert same_page("https://a.example/x?a=1", "https://A.example/x/")

    def test_missing_urls_equal_only_to_missing(self):
        assert same_page(None, None)
        assert same_page(None, "")
        assert not same_page(None, "https://a.example/")


class TestEmailHashStrategy:
    """Tests for verified e-mail matching."""

    async def test_abstains_without_hash(self, store):
        strategy = EmailHashMatchStrategy(store)

        assert await strategy.match(query()) is None

    async def test_abstains_without_history(self, store):
        strategy = EmailHashMatchStrategy(store)

        assert await strategy.match(query(email_hash=ALICE)) is None

    async def test_identical_selection_updates_latest(self, store):
        """Same status and sets update the most recent record."""
        seed(store, minutes_ago=10, email_hash=ALICE)
        latest = seed(store, minutes_ago=1, email_hash=ALICE)

        result = await EmailHashMatchStrategy(store).match(query(email_hash=ALICE))

        assert result.action == MatchAction.UPDATE
        assert result.record.id == latest.id

    async def test_changed_selection_creates(self, store):
        """A changed choice preserves history with a new record."""
        seed(store, email_hash=ALICE)

        result = await EmailHashMatchStrategy(store).match(query(
            email_hash=ALICE,
            status=ConsentStatus.PARTIAL,
            accepted=(ANALYTICS,),
            rejected=(MARKETING,),
        ))

        assert result.action == MatchAction.CREATE
        assert result.record is None


class TestPageUrlStrategy:
    """Tests for per-page matching."""

    async def test_same_normalized_page_updates(self, store):
        record = seed(store, page_url="https://shop.example.com/checkout/?step=2")

        result = await PageUrlMatchStrategy(store).match(query())

        assert result.action == MatchAction.UPDATE
        assert result.record.id == record.id

    async def test_different_page_abstains(self, store):
        seed(store, page_url="https://shop.example.com/cart")

        assert await PageUrlMatchStrategy(store).match(query()) is None

    async def test_most_recent_matching_record_wins(self, store):
        seed(store, minutes_ago=30, page_url="https://shop.example.com/checkout")
        recent = seed(store, minutes_ago=5, page_url="https://shop.example.com/checkout")

        result = await PageUrlMatchStrategy(store).match(query())

        assert result.record.id == recent.id

    async def test_other_verified_owner_skipped(self, store):
        """A record bound to another e-mail is never taken over."""
        seed(store, page_url="https://shop.example.com/checkout", email_hash=BOB)

        assert await PageUrlMatchStrategy(store).match(query(email_hash=ALICE)) is None
        assert await PageUrlMatchStrategy(store).match(query()) is None

    async def test_missing_url_matches_missing_url(self, store):
        record = seed(store, page_url=None)

        result = await PageUrlMatchStrategy(store).match(query(page_url=None))

        assert result.record.id == record.id

    async def test_scan_limit_bounds_history(self, store):
        seed(store, minutes_ago=60, page_url="https://shop.example.com/checkout")
        seed(store, minutes_ago=1, page_url="https://shop.example.com/cart")

        result = await PageUrlMatchStrategy(store, scan_limit=1).match(query())

        assert result is None


class TestRecordMatcher:
    """Tests for the strategy chain."""

    async def test_falls_back_to_create(self, store):
        result = await RecordMatcher.default(store).decide(query())

        assert result.action == MatchAction.CREATE
        assert result.strategy == "fallback"

    async def test_email_decision_short_circuits_page_match(self, store):
        """A changed verified selection creates even when the page matches."""
        seed(store, page_url="https://shop.example.com/checkout", email_hash=ALICE)

        result = await RecordMatcher.default(store).decide(query(
            email_hash=ALICE,
            status=ConsentStatus.REJECTED,
            accepted=(),
            rejected=(ANALYTICS,),
        ))

        assert result.action == MatchAction.CREATE
        assert result.strategy == "email_hash"

    async def test_lookup_errors_abstain(self, store):
        """Store errors degrade to CREATE instead of failing."""
        seed(store, page_url="https://shop.example.com/checkout")
        store.fail_lookups_with = StoreError("timeout", operation="list_for_visitor")

        result = await RecordMatcher.default(store).decide(query(email_hash=ALICE))

        assert result.action == MatchAction.CREATE
        assert result.strategy == "fallback"

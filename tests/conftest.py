"""Tests configuration and fixtures."""

import pytest
from tenacity import wait_none

from consentry.config import Settings
from consentry.domain.models import (
    ActivityPurpose,
    DataCategory,
    ProcessingActivity,
    WidgetConfig,
)
from consentry.services.identifiers import ConsentIdGenerator
from consentry.services.recording import build_consent_engine

from fakes import (
    ANALYTICS,
    MARKETING,
    SUPPORT,
    TENANT_ID,
    WIDGET_ID,
    InMemoryConsentRecordStore,
    InMemoryPreferenceStore,
    InMemorySubscriptionDirectory,
    InMemoryWidgetDirectory,
    TickingClock,
)


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with deterministic values."""
    return Settings(
        env="development",
        debug=True,
    )


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def widget() -> WidgetConfig:
    return WidgetConfig(
        widget_id=WIDGET_ID,
        user_id=TENANT_ID,
        consent_duration_default=180,
        domain="shop.example.com",
        selected_activities=(ANALYTICS, MARKETING, SUPPORT),
    )


@pytest.fixture
def activities() -> list[ProcessingActivity]:
    return [
        ProcessingActivity(
            id=ANALYTICS,
            name="Website Analytics",
            purposes=(
                ActivityPurpose(
                    name="Usage measurement",
                    legal_basis="consent",
                    data_categories=(DataCategory("Device data", "13 months"),),
                ),
            ),
        ),
        ProcessingActivity(id=MARKETING, name="Email Marketing"),
        ProcessingActivity(id=SUPPORT, name="Customer Support"),
    ]


@pytest.fixture
def record_store(widget) -> InMemoryConsentRecordStore:
    return InMemoryConsentRecordStore(owners={widget.widget_id: widget.user_id})


@pytest.fixture
def preference_store() -> InMemoryPreferenceStore:
    return InMemoryPreferenceStore()


@pytest.fixture
def widget_directory(widget, activities) -> InMemoryWidgetDirectory:
    return InMemoryWidgetDirectory([widget], activities)


@pytest.fixture
def subscription_directory() -> InMemorySubscriptionDirectory:
    return InMemorySubscriptionDirectory()


@pytest.fixture
def engine(
    test_settings,
    record_store,
    preference_store,
    widget_directory,
    subscription_directory,
    clock,
):
    """Consent engine over in-memory stores with a shared ticking clock."""
    return build_consent_engine(
        test_settings,
        record_store,
        preference_store,
        widget_directory,
        subscription_directory,
        id_generator=ConsentIdGenerator(
            clock_ms=lambda: int(clock.current.timestamp() * 1000),
        ),
        clock=clock,
        projection_wait=wait_none(),
    )


@pytest.fixture
def make_payload():
    """Factory for widget payloads with sensible defaults."""
    def _make(**overrides) -> dict:
        payload = {
            "widgetId": WIDGET_ID,
            "visitorId": "visitor-abc",
            "consentStatus": "accepted",
            "acceptedActivities": [ANALYTICS],
            "rejectedActivities": [],
            "metadata": {"currentUrl": "https://shop.example.com/checkout"},
        }
        payload.update(overrides)
        return payload
    return _make

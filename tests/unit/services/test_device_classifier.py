"""
Unit Tests for Device Classifier and Visitor Identity

Tests user-agent classification, header extraction and e-mail hashing.
"""

import hashlib

import pytest

from consentry.domain.enums import ConsentStatus, DeviceType
from consentry.domain.models import ConsentMetadata, ConsentSubmission
from consentry.services.identity import (
    DeviceClassifier,
    RequestSignals,
    VisitorIdentity,
    detect_browser,
    detect_device_type,
    detect_os,
    hash_email,
)

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
EDGE_WINDOWS = CHROME_WINDOWS + " Edg/120.0.2210.91"
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
CHROME_ANDROID_PHONE = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
)
CHROME_ANDROID_TABLET = (
    "Mozilla/5.0 (Linux; Android 13; SM-X700) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
FIREFOX_LINUX = "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"
SAFARI_MAC = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_2) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.2 Safari/605.1.15"
)


class TestUserAgentClassification:
    """Tests for device, browser and OS detection."""

    @pytest.mark.parametrize("user_agent,device,browser,os_name", [
        (CHROME_WINDOWS, DeviceType.DESKTOP, "Chrome", "Windows"),
        (EDGE_WINDOWS, DeviceType.DESKTOP, "Edge", "Windows"),
        (SAFARI_IPHONE, DeviceType.MOBILE, "Safari", "iOS"),
        (CHROME_ANDROID_PHONE, DeviceType.MOBILE, "Chrome", "Android"),
        (CHROME_ANDROID_TABLET, DeviceType.TABLET, "Chrome", "Android"),
        (FIREFOX_LINUX, DeviceType.DESKTOP, "Firefox", "Linux"),
        (SAFARI_MAC, DeviceType.DESKTOP, "Safari", "macOS"),
    ])
    def test_known_agents(self, user_agent, device, browser, os_name):
        assert detect_device_type(user_agent) == device
        assert detect_browser(user_agent) == browser
        assert detect_os(user_agent) == os_name

    @pytest.mark.parametrize("user_agent", [None, "", "curl/8.4.0"])
    def test_garbage_degrades_to_unknown(self, user_agent):
        """Unrecognized agents never raise."""
        assert detect_device_type(user_agent) == DeviceType.UNKNOWN
        assert detect_browser(user_agent) == "Unknown"
        assert detect_os(user_agent) == "Unknown"


class TestRequestSignals:
    """Tests for header extraction."""

    def test_header_names_case_insensitive(self):
        signals = RequestSignals.from_headers({
            "USER-AGENT": CHROME_WINDOWS,
            "x-forwarded-for": "203.0.113.7, 10.0.0.1",
            "Accept-Language": "hi-IN,hi;q=0.9,en;q=0.8",
            "CF-IPCountry": "IN",
        })

        assert signals.user_agent == CHROME_WINDOWS
        assert signals.client_ip == "203.0.113.7"
        assert signals.primary_language == "hi-IN"
        assert signals.country == "IN"

    def test_real_ip_fallback(self):
        signals = RequestSignals.from_headers({"X-Real-IP": "198.51.100.4"})

        assert signals.client_ip == "198.51.100.4"

    def test_vercel_country_header(self):
        signals = RequestSignals.from_headers({"x-vercel-ip-country": "DE"})

        assert signals.country == "DE"


class TestDeviceClassifier:
    """Tests for metadata merging."""

    @pytest.fixture
    def classifier(self):
        return DeviceClassifier()

    def test_derives_everything_from_headers(self, classifier):
        signals = RequestSignals.from_headers({
            "User-Agent": SAFARI_IPHONE,
            "X-Forwarded-For": "203.0.113.7",
            "Referer": "https://search.example/",
        })

        metadata = classifier.classify(signals)

        assert metadata.device_type == "Mobile"
        assert metadata.browser == "Safari"
        assert metadata.os == "iOS"
        assert metadata.ip_address == "203.0.113.7"
        assert metadata.referrer == "https://search.example/"

    def test_client_values_win(self, classifier):
        """Values sent by the widget override derived ones."""
        signals = RequestSignals.from_headers({"User-Agent": CHROME_WINDOWS, "CF-IPCountry": "IN"})
        client = ConsentMetadata(
            browser="Brave",
            country="FR",
            language="fr",
            current_url="https://shop.example.com/",
        )

        metadata = classifier.classify(signals, client)

        assert metadata.browser == "Brave"
        assert metadata.country == "FR"
        assert metadata.language == "fr"
        assert metadata.os == "Windows"
        assert metadata.current_url == "https://shop.example.com/"

    @pytest.mark.parametrize("referer", ["not a url <x>", "/relative/path", "   "])
    def test_unusable_referer_header_dropped(self, classifier, referer):
        metadata = classifier.classify(RequestSignals.from_headers({"Referer": referer}))

        assert metadata.referrer is None

    def test_long_referer_header_capped(self, classifier):
        signals = RequestSignals.from_headers({"Referer": "https://search.example/?q=" + "a" * 3000})

        assert len(classifier.classify(signals).referrer) == 2048

    def test_client_referrer_wins_over_header(self, classifier):
        signals = RequestSignals.from_headers({"Referer": "https://search.example/"})
        client = ConsentMetadata(referrer="https://news.example/story")

        assert classifier.classify(signals, client).referrer == "https://news.example/story"

    def test_defaults_without_any_signal(self, classifier):
        metadata = classifier.classify(RequestSignals())

        assert metadata.ip_address == "unknown"
        assert metadata.country == "Unknown"
        assert metadata.language == "en"
        assert metadata.device_type == "Unknown"


class TestVisitorIdentity:
    """Tests for e-mail normalization and hashing."""

    def test_hash_is_sha256_of_normalized_email(self):
        expected = hashlib.sha256(b"alice@example.com").hexdigest()

        assert hash_email("  Alice@Example.com ") == expected

    def test_identity_without_email_is_unverified(self):
        submission = ConsentSubmission(widget_id="w1", visitor_id="v1", claimed_status=ConsentStatus.ACCEPTED)

        identity = VisitorIdentity.from_submission(submission)

        assert not identity.is_verified
        assert identity.email_hash is None

    def test_identity_with_email_is_verified(self):
        submission = ConsentSubmission(
            widget_id="w1",
            visitor_id="v1",
            claimed_status=ConsentStatus.ACCEPTED,
            visitor_email="alice@example.com",
        )

        identity = VisitorIdentity.from_submission(submission)

        assert identity.is_verified
        assert identity.email == "alice@example.com"
        assert identity.email_hash == hash_email("alice@example.com")

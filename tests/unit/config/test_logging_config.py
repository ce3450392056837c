"""
Unit Tests for Log Masking

Personal data in log fields is masked before rendering; hashes pass through.
"""

from consentry.config.logging_config import (
    mask_email,
    mask_ip,
    mask_personal_data,
)


class TestMaskHelpers:
    """Tests for the individual maskers."""

    def test_email_keeps_first_char_and_domain(self):
        assert mask_email("alice@example.com") == "a***@example.com"

    def test_email_inside_text(self):
        assert mask_email("sent to bob@example.org today") == "sent to b***@example.org today"

    def test_ipv4_last_octet_zeroed(self):
        assert mask_ip("203.0.113.7") == "203.0.113.0"

    def test_ipv6_truncated(self):
        assert mask_ip("2001:db8:85a3:0:0:8a2e:370:7334") == "2001:db8:85a3::"

    def test_unparseable_ip_redacted(self):
        assert mask_ip("unknown") == "[REDACTED]"


class TestMaskPersonalData:
    """Tests for the structlog processor."""

    def test_personal_fields_masked(self):
        event = mask_personal_data(None, "info", {
            "event": "Consent record created",
            "visitor_email": "alice@example.com",
            "client_ip": "198.51.100.23",
            "widget_id": "w1",
        })

        assert event["visitor_email"] == "a***@example.com"
        assert event["client_ip"] == "198.51.100.0"
        assert event["widget_id"] == "w1"
        assert event["event"] == "Consent record created"

    def test_hash_passes_through(self):
        digest = "a" * 64
        event = mask_personal_data(None, "info", {"email_hash": digest})

        assert event["email_hash"] == digest

    def test_secrets_dropped(self):
        event = mask_personal_data(None, "info", {"api_key": "sk-live-123", "db_password": "hunter2"})

        assert event["api_key"] == "[REDACTED]"
        assert event["db_password"] == "[REDACTED]"

    def test_nested_metadata_masked(self):
        event = mask_personal_data(None, "info", {
            "metadata": {"ipAddress": "203.0.113.7", "language": "en"},
        })

        assert event["metadata"] == {"ipAddress": "203.0.113.0", "language": "en"}

    def test_email_key_without_address_redacted(self):
        event = mask_personal_data(None, "info", {"email": "not-an-address"})

        assert event["email"] == "[REDACTED]"

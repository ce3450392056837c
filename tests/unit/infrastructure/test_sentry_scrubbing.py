"""
Unit Tests for Sentry Scrubbing

Visitor e-mails and IPs must never leave the process.
"""

from consentry.infrastructure.monitoring.sentry_integration import (
    before_breadcrumb,
    before_send,
    init_sentry,
)


class TestBeforeSend:
    """Tests for event scrubbing."""

    def test_request_body_and_headers_scrubbed(self):
        event = {
            "request": {
                "data": {
                    "widgetId": "w1",
                    "visitorEmail": "alice@example.com",
                    "metadata": {"ipAddress": "203.0.113.7", "currentUrl": "https://shop.example.com/"},
                },
                "headers": {"X-Forwarded-For": "203.0.113.7", "Cookie": "session=abc", "Content-Type": "application/json"},
            },
        }

        scrubbed = before_send(event, {})

        data = scrubbed["request"]["data"]
        assert data["widgetId"] == "w1"
        assert data["visitorEmail"] == "a***@example.com"
        assert data["metadata"]["ipAddress"] == "203.0.113.0"
        assert data["metadata"]["currentUrl"] == "https://shop.example.com/"
        assert scrubbed["request"]["headers"]["X-Forwarded-For"] == "203.0.113.0"
        assert scrubbed["request"]["headers"]["Cookie"] == "[REDACTED]"
        assert scrubbed["request"]["headers"]["Content-Type"] == "application/json"

    def test_emails_in_free_text_scrubbed(self):
        event = {"extra": {"note": "lookup for bob@example.org failed"}}

        scrubbed = before_send(event, {})

        assert "bob@example.org" not in scrubbed["extra"]["note"]


class TestBeforeBreadcrumb:
    """Tests for SQL breadcrumb scrubbing."""

    def test_sql_message_scrubbed(self):
        crumb = {"category": "sql", "message": "SELECT ... WHERE visitor_email = 'carol@example.com'"}

        assert "carol@example.com" not in before_breadcrumb(crumb, {})["message"]


def test_init_without_dsn_is_disabled():
    assert init_sentry("") is False

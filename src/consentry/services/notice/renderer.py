"""
Privacy Notice Renderer

Renders the privacy notice a widget displays from its processing
activities and the tenant domain.

The engine treats rendering as a black box behind NoticeRenderer.
DefaultNoticeRenderer produces a class-styled HTML fragment so the
service runs stand-alone.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from html import escape
from typing import Callable, Optional, Sequence

from consentry.domain.models import ProcessingActivity

PLACEHOLDER_COMPANY = "[Your Company Name]"

RIGHTS: tuple[tuple[str, str], ...] = (
    ("Right to Access", "You can request information about what personal data we hold about you."),
    ("Right to Correction", "You can request correction of inaccurate or incomplete data."),
    ("Right to Erasure", "You can request deletion of your personal data in certain circumstances."),
    ("Right to Withdraw Consent", "You can withdraw your consent at any time."),
    ("Right to Grievance Redressal", "You can raise concerns or complaints about data processing."),
)


class NoticeRenderer(ABC):
    """Activities + domain -> notice HTML."""

    @abstractmethod
    def render(self, activities: Sequence[ProcessingActivity], domain: str) -> str:
        """
        Render notice HTML.

        Args:
            activities: Activities the widget displays, in display order
            domain: Tenant domain named in the notice

        Returns:
            Unsanitized HTML string
        """
        pass


class DefaultNoticeRenderer(NoticeRenderer):
    """
    Built-in notice layout.

    Every interpolated value is HTML-escaped; layout uses class
    attributes only so the sanitizer can drop inline styles.
    """

    def __init__(self, today: Optional[Callable[[], date]] = None) -> None:
        self._today = today or (lambda: datetime.now(timezone.utc).date())

    def render(self, activities: Sequence[ProcessingActivity], domain: str) -> str:
        company = escape(domain or PLACEHOLDER_COMPANY)
        safe_domain = escape(domain or "")
        sections = "\n".join(
            self._render_activity(index, activity)
            for index, activity in enumerate(activities, start=1)
        )
        rights = "\n".join(
            f"<li><strong>{escape(title)}:</strong> {escape(text)}</li>"
            for title, text in RIGHTS
        )

        return (
            '<div class="privacy-notice">\n'
            '<h1 class="notice-title">Privacy Notice</h1>\n'
            f'<p class="notice-intro">This notice explains how {company} processes your '
            "personal data in compliance with the Digital Personal Data Protection Act, "
            "2023 (DPDPA).</p>\n"
            '<h2 class="notice-heading">Data Processing Activities</h2>\n'
            '<p class="notice-text">We process your personal data for the following '
            "purposes. You have the right to provide or withdraw consent for each "
            "activity.</p>\n"
            f"{sections}\n"
            '<section class="notice-rights">\n'
            '<h2 class="notice-heading">Your Rights Under DPDPA 2023</h2>\n'
            f"<ul>\n{rights}\n</ul>\n"
            f'<p class="notice-text"><strong>How to Exercise Your Rights:</strong><br>'
            f"You can manage your consent preferences or raise a grievance through our "
            f"consent widget on {safe_domain}.</p>\n"
            "</section>\n"
            f'<p class="notice-footer"><strong>Last Updated:</strong> '
            f"{self._today().isoformat()}</p>\n"
            "</div>"
        )

    @staticmethod
    def _render_activity(index: int, activity: ProcessingActivity) -> str:
        if activity.purposes:
            purposes = "".join(
                f"<li>{escape(purpose.name)} ({escape(purpose.legal_basis.replace('-', ' '))})</li>"
                for purpose in activity.purposes
            )
        else:
            purposes = "<li>No purposes defined</li>"

        categories = [
            category
            for purpose in activity.purposes
            for category in purpose.data_categories
        ]
        category_text = ", ".join(escape(c.name) for c in categories) or "N/A"
        retention_text = ", ".join(
            f"{escape(c.name)}: {escape(c.retention_period)}"
            for c in categories
            if c.retention_period
        ) or "N/A"

        return (
            '<section class="notice-activity">\n'
            f'<h3 class="activity-name">{index}. {escape(activity.name)}</h3>\n'
            f"<p><strong>Purposes:</strong></p>\n<ul>{purposes}</ul>\n"
            f"<p><strong>Data Categories:</strong> {category_text}</p>\n"
            f"<p><strong>Retention Period:</strong> {retention_text}</p>\n"
            "</section>"
        )

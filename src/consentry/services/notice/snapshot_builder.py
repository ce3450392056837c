"""
Notice Snapshot Builder

Freezes the privacy notice a visitor saw at consent time.

Best-effort: any failure yields no snapshot and a failed outcome; the
consent record is still written. A snapshot is taken only when a record
is created or updated and is never regenerated afterwards.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

import bleach

from consentry.domain.models import BestEffortOutcome, NoticeSnapshot, WidgetConfig
from consentry.infrastructure.database.repositories.interfaces import WidgetDirectory
from consentry.infrastructure.metrics import track_best_effort_failure
from consentry.services.notice.renderer import NoticeRenderer
from consentry.config.logging_config import get_logger

logger = get_logger(__name__)

SNAPSHOT_STEP = "notice_snapshot"

# Allowed tags for stored notice snapshots
NOTICE_TAGS = ["div", "section", "h1", "h2", "h3", "p", "ul", "li", "strong", "br"]

# Layout is class-based; inline styles and handlers are dropped
NOTICE_ATTRS = {"*": ["class"]}


def sanitize_notice_html(html: str) -> str:
    """Clean notice HTML against the snapshot allow-list."""
    return bleach.clean(
        html,
        tags=NOTICE_TAGS,
        attributes=NOTICE_ATTRS,
        strip=True,
    ).strip()


@dataclass(frozen=True)
class SnapshotResult:
    """Snapshot (if any) plus the outcome of the step."""

    snapshot: Optional[NoticeSnapshot]
    outcome: BestEffortOutcome


class NoticeSnapshotBuilder:
    """
    Renders, sanitizes and timestamps a widget's notice.

    Usage:
        builder = NoticeSnapshotBuilder(widget_directory, DefaultNoticeRenderer(), "3.0")
        result = await builder.build(widget)
    """

    def __init__(
        self,
        widgets: WidgetDirectory,
        renderer: NoticeRenderer,
        notice_version: str,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._widgets = widgets
        self._renderer = renderer
        self._notice_version = notice_version
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def build(self, widget: WidgetConfig) -> SnapshotResult:
        """
        Build a snapshot for `widget`. Never raises.

        Args:
            widget: Widget whose selected activities are rendered

        Returns:
            SnapshotResult with a failed outcome on any error
        """
        try:
            activities = await self._widgets.list_activities(widget.selected_activities)
            html = self._renderer.render(activities, widget.domain)
            sanitized = sanitize_notice_html(html)
            if not sanitized:
                raise ValueError("rendered notice is empty after sanitization")
        except Exception as e:
            track_best_effort_failure(SNAPSHOT_STEP)
            logger.warning(
                "Notice snapshot failed; recording consent without snapshot",
                widget_id=widget.widget_id,
                error=str(e),
            )
            return SnapshotResult(
                snapshot=None,
                outcome=BestEffortOutcome.failed(SNAPSHOT_STEP, str(e)),
            )

        snapshot = NoticeSnapshot(
            html=sanitized,
            captured_at=self._clock(),
            notice_version=self._notice_version,
            domain=widget.domain,
        )
        return SnapshotResult(snapshot=snapshot, outcome=BestEffortOutcome.ok(SNAPSHOT_STEP))

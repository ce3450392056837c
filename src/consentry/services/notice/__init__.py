"""Privacy notice services package."""

from consentry.services.notice.renderer import DefaultNoticeRenderer, NoticeRenderer
from consentry.services.notice.snapshot_builder import (
    NoticeSnapshotBuilder,
    SnapshotResult,
    sanitize_notice_html,
)

__all__ = [
    "DefaultNoticeRenderer",
    "NoticeRenderer",
    "NoticeSnapshotBuilder",
    "SnapshotResult",
    "sanitize_notice_html",
]

"""
Widget Repository

SQLAlchemy implementation of WidgetDirectory.
"""

from typing import Optional, Sequence

from sqlalchemy import select

from consentry.domain.models import (
    ActivityPurpose,
    DataCategory,
    ProcessingActivity,
    WidgetConfig,
)
from consentry.infrastructure.database.connection import DatabaseManager
from consentry.infrastructure.database.models import (
    ProcessingActivityModel,
    WidgetConfigModel,
)
from consentry.infrastructure.database.repositories.base import BaseRepository
from consentry.infrastructure.database.repositories.interfaces import WidgetDirectory


def _activity_to_domain(row: ProcessingActivityModel) -> ProcessingActivity:
    purposes = tuple(
        ActivityPurpose(
            name=purpose.get("purposeName", ""),
            legal_basis=purpose.get("legalBasis", ""),
            data_categories=tuple(
                DataCategory(
                    name=category.get("categoryName", ""),
                    retention_period=category.get("retentionPeriod", ""),
                )
                for category in purpose.get("dataCategories") or []
            ),
        )
        for purpose in row.purposes or []
    )
    return ProcessingActivity(id=str(row.id), name=row.activity_name, purposes=purposes)


class WidgetRepository(BaseRepository[WidgetConfigModel], WidgetDirectory):
    """Repository for widget configuration and its activities."""

    def __init__(self, db: DatabaseManager) -> None:
        """Initialize with widget model."""
        super().__init__(WidgetConfigModel, db)

    async def get_active_widget(self, widget_id: str) -> Optional[WidgetConfig]:
        async with self._session("get_active_widget") as session:
            result = await session.execute(
                select(WidgetConfigModel).where(
                    WidgetConfigModel.widget_id == widget_id,
                    WidgetConfigModel.is_active.is_(True),
                )
            )
            row = result.scalar_one_or_none()
            if row is None:
                return None
            return WidgetConfig(
                widget_id=row.widget_id,
                user_id=row.user_id,
                is_active=row.is_active,
                consent_duration_default=row.consent_duration,
                domain=row.domain,
                selected_activities=tuple(row.selected_activities or ()),
            )

    async def list_activities(
        self,
        activity_ids: Sequence[str],
    ) -> Sequence[ProcessingActivity]:
        """Active activities among `activity_ids`, in the order given."""
        if not activity_ids:
            return []

        async with self._session("list_activities") as session:
            result = await session.execute(
                select(ProcessingActivityModel).where(
                    ProcessingActivityModel.id.in_(list(activity_ids)),
                    ProcessingActivityModel.is_active.is_(True),
                )
            )
            by_id = {str(row.id): row for row in result.scalars().all()}

        return [
            _activity_to_domain(by_id[activity_id])
            for activity_id in activity_ids
            if activity_id in by_id
        ]

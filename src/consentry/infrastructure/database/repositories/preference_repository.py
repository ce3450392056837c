"""
Preference Repository

SQLAlchemy implementation of PreferenceStore using PostgreSQL
INSERT ... ON CONFLICT for per-activity upserts.
"""

from datetime import datetime
from typing import Sequence

from sqlalchemy import update
from sqlalchemy.dialects.postgresql import insert

from consentry.domain.enums import PreferenceStatus
from consentry.domain.models import PreferenceProjection
from consentry.infrastructure.database.connection import DatabaseManager
from consentry.infrastructure.database.models import VisitorPreferenceModel
from consentry.infrastructure.database.repositories.base import BaseRepository
from consentry.infrastructure.database.repositories.interfaces import PreferenceStore


class PreferenceRepository(BaseRepository[VisitorPreferenceModel], PreferenceStore):
    """Repository for the preference projection."""

    def __init__(self, db: DatabaseManager) -> None:
        """Initialize with preference model."""
        super().__init__(VisitorPreferenceModel, db)

    async def upsert_many(self, rows: Sequence[PreferenceProjection]) -> int:
        if not rows:
            return 0

        statement = insert(VisitorPreferenceModel).values([
            {
                "visitor_id": row.visitor_id,
                "widget_id": row.widget_id,
                "activity_id": row.activity_id,
                "status": row.status.value,
                "visitor_email_hash": row.visitor_email_hash,
                "updated_at": row.updated_at,
                "expires_at": row.expires_at,
            }
            for row in rows
        ])
        statement = statement.on_conflict_do_update(
            constraint="uq_visitor_consent_preferences_key",
            set_={
                "status": statement.excluded.status,
                "visitor_email_hash": statement.excluded.visitor_email_hash,
                "updated_at": statement.excluded.updated_at,
                "expires_at": statement.excluded.expires_at,
            },
        )

        async with self._session("upsert_many") as session:
            await session.execute(statement)
        return len(rows)

    async def withdraw_all(
        self,
        visitor_id: str,
        widget_id: str,
        *,
        withdrawn_at: datetime,
    ) -> int:
        async with self._session("withdraw_all") as session:
            result = await session.execute(
                update(VisitorPreferenceModel)
                .where(
                    VisitorPreferenceModel.visitor_id == visitor_id,
                    VisitorPreferenceModel.widget_id == widget_id,
                )
                .values(
                    status=PreferenceStatus.WITHDRAWN.value,
                    updated_at=withdrawn_at,
                )
            )
            return result.rowcount

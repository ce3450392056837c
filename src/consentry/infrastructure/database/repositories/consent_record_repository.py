"""
Consent Record Repository

SQLAlchemy implementation of ConsentRecordStore.
"""

from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import func, select

from consentry.domain.enums import ConsentStatus
from consentry.domain.models import ConsentDetails, ConsentRecord
from consentry.infrastructure.database.connection import DatabaseManager
from consentry.infrastructure.database.models import ConsentRecordModel, WidgetConfigModel
from consentry.infrastructure.database.repositories.base import BaseRepository
from consentry.infrastructure.database.repositories.interfaces import (
    ConsentRecordStore,
    StoreError,
)


def to_domain(row: ConsentRecordModel) -> ConsentRecord:
    return ConsentRecord(
        id=row.id,
        consent_id=row.consent_id,
        widget_id=row.widget_id,
        visitor_id=row.visitor_id,
        visitor_email=row.visitor_email,
        visitor_email_hash=row.visitor_email_hash,
        status=ConsentStatus(row.status),
        consented_activities=list(row.consented_activities or []),
        rejected_activities=list(row.rejected_activities or []),
        consent_details=ConsentDetails.from_dict(row.consent_details),
        given_at=row.given_at,
        updated_at=row.updated_at,
        expires_at=row.expires_at,
        revoked_at=row.revoked_at,
        revocation_reason=row.revocation_reason,
        notice_version=row.notice_version,
    )


def _copy_onto(row: ConsentRecordModel, record: ConsentRecord) -> ConsentRecordModel:
    row.consent_id = record.consent_id
    row.widget_id = record.widget_id
    row.visitor_id = record.visitor_id
    row.visitor_email = record.visitor_email
    row.visitor_email_hash = record.visitor_email_hash
    row.status = record.status.value
    row.consented_activities = list(record.consented_activities)
    row.rejected_activities = list(record.rejected_activities)
    row.consent_details = record.consent_details.to_dict()
    row.given_at = record.given_at
    row.updated_at = record.updated_at
    row.expires_at = record.expires_at
    row.revoked_at = record.revoked_at
    row.revocation_reason = record.revocation_reason
    row.notice_version = record.notice_version
    return row


class ConsentRecordRepository(BaseRepository[ConsentRecordModel], ConsentRecordStore):
    """
    Repository for consent records.

    Provides the matcher lookups and quota counting beyond basic CRUD.
    """

    def __init__(self, db: DatabaseManager) -> None:
        """Initialize with consent record model."""
        super().__init__(ConsentRecordModel, db)

    async def find_latest_by_email_hash(
        self,
        widget_id: str,
        email_hash: str,
    ) -> Optional[ConsentRecord]:
        async with self._session("find_latest_by_email_hash") as session:
            result = await session.execute(
                select(ConsentRecordModel)
                .where(
                    ConsentRecordModel.widget_id == widget_id,
                    ConsentRecordModel.visitor_email_hash == email_hash,
                )
                .order_by(ConsentRecordModel.updated_at.desc())
                .limit(1)
            )
            row = result.scalar_one_or_none()
            return to_domain(row) if row else None

    async def list_for_visitor(
        self,
        widget_id: str,
        visitor_id: str,
        *,
        limit: int,
    ) -> Sequence[ConsentRecord]:
        async with self._session("list_for_visitor") as session:
            result = await session.execute(
                select(ConsentRecordModel)
                .where(
                    ConsentRecordModel.widget_id == widget_id,
                    ConsentRecordModel.visitor_id == visitor_id,
                )
                .order_by(ConsentRecordModel.updated_at.desc())
                .limit(limit)
            )
            return [to_domain(row) for row in result.scalars().all()]

    async def insert(self, record: ConsentRecord) -> ConsentRecord:
        async with self._session("insert") as session:
            row = _copy_onto(ConsentRecordModel(id=record.id), record)
            session.add(row)
            await session.flush()
            return to_domain(row)

    async def update(self, record: ConsentRecord) -> ConsentRecord:
        async with self._session("update") as session:
            row = await session.get(ConsentRecordModel, record.id)
            if row is None:
                raise StoreError(
                    f"consent record {record.id} no longer exists",
                    operation="update",
                )
            _copy_onto(row, record)
            await session.flush()
            return to_domain(row)

    async def count_created_since(self, owner_user_id: str, since: datetime) -> int:
        async with self._session("count_created_since") as session:
            result = await session.execute(
                select(func.count(ConsentRecordModel.id))
                .join(
                    WidgetConfigModel,
                    WidgetConfigModel.widget_id == ConsentRecordModel.widget_id,
                )
                .where(
                    WidgetConfigModel.user_id == owner_user_id,
                    ConsentRecordModel.given_at >= since,
                )
            )
            return result.scalar_one()

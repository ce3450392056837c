"""
Subscription Repository

SQLAlchemy implementation of SubscriptionDirectory.
"""

from typing import Optional

from sqlalchemy import select

from consentry.domain.models import Subscription
from consentry.infrastructure.database.connection import DatabaseManager
from consentry.infrastructure.database.models import SubscriptionModel
from consentry.infrastructure.database.repositories.base import BaseRepository
from consentry.infrastructure.database.repositories.interfaces import SubscriptionDirectory


class SubscriptionRepository(BaseRepository[SubscriptionModel], SubscriptionDirectory):
    """Repository for tenant subscriptions."""

    def __init__(self, db: DatabaseManager) -> None:
        """Initialize with subscription model."""
        super().__init__(SubscriptionModel, db)

    async def get_subscription(self, user_id: str) -> Optional[Subscription]:
        async with self._session("get_subscription") as session:
            result = await session.execute(
                select(SubscriptionModel).where(SubscriptionModel.user_id == user_id)
            )
            row = result.scalar_one_or_none()
            if row is None:
                return None
            return Subscription(
                user_id=row.user_id,
                plan=row.plan,
                status=row.status,
                trial_ends_at=row.trial_ends_at,
            )

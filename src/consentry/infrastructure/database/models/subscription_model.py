"""
Subscription Database Model

Tenant plan and trial state, maintained by billing.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from consentry.infrastructure.database.connection import Base


class SubscriptionModel(Base):
    """
    Subscription table ORM model.

    Table: subscriptions
    """

    __tablename__ = "subscriptions"

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        doc="Tenant"
    )
    plan: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="free",
        doc="free, small, medium or enterprise"
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="active",
        doc="active, trialing, past_due or cancelled"
    )
    trial_ends_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<SubscriptionModel(user_id='{self.user_id}', plan='{self.plan}')>"

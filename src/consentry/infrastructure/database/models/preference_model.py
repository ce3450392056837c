"""
Visitor Preference Database Model

Per-activity projection of a visitor's latest consent choices, read by
the preference centre. Derived from consent records; never authoritative.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, DateTime, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from consentry.infrastructure.database.connection import Base


class VisitorPreferenceModel(Base):
    """
    Preference projection table ORM model.

    Table: visitor_consent_preferences
    """

    __tablename__ = "visitor_consent_preferences"

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    visitor_id: Mapped[str] = mapped_column(String(200), nullable=False)
    widget_id: Mapped[str] = mapped_column(String(100), nullable=False)
    activity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        doc="accepted, rejected or withdrawn"
    )
    visitor_email_hash: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        nullable=False,
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        UniqueConstraint(
            "visitor_id", "widget_id", "activity_id",
            name="uq_visitor_consent_preferences_key",
        ),
        CheckConstraint(
            "status IN ('accepted', 'rejected', 'withdrawn')",
            name="ck_visitor_consent_preferences_status",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<VisitorPreferenceModel(widget='{self.widget_id}', "
            f"activity='{self.activity_id}', status='{self.status}')>"
        )

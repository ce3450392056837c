"""
Widget Database Models

Tenant-managed widget configuration and processing activities.
Read-only from the consent engine's point of view.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, func
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from consentry.infrastructure.database.connection import Base


class WidgetConfigModel(Base):
    """
    Widget configuration table ORM model.

    Table: widget_configs
    """

    __tablename__ = "widget_configs"

    widget_id: Mapped[str] = mapped_column(
        String(100),
        primary_key=True,
        doc="Public widget identifier"
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
        doc="Owning tenant"
    )
    domain: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
        doc="Tenant domain shown in the notice"
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        doc="Inactive widgets reject submissions"
    )
    consent_duration: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        doc="Default consent lifetime in days"
    )
    selected_activities: Mapped[list[str]] = mapped_column(
        ARRAY(String(36)),
        nullable=False,
        default=list,
        doc="Activity ids displayed by the widget, in display order"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<WidgetConfigModel(widget_id='{self.widget_id}', active={self.is_active})>"


class ProcessingActivityModel(Base):
    """
    Processing activity table ORM model.

    `purposes` holds [{purposeName, legalBasis, dataCategories: [{categoryName, retentionPeriod}]}].

    Table: processing_activities
    """

    __tablename__ = "processing_activities"

    id: Mapped[str] = mapped_column(
        PGUUID(as_uuid=False),
        primary_key=True,
        doc="Activity identifier"
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
        doc="Owning tenant"
    )
    activity_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )
    purposes: Mapped[list] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
    )

    def __repr__(self) -> str:
        return f"<ProcessingActivityModel(id={self.id}, name='{self.activity_name}')>"

"""
Consent Record Database Model

SQLAlchemy ORM model for the consent system of record.

CHECK constraints repeat the record integrity rules so a write that
slips past the application checks is still refused by the database.

LEGAL_REVIEW_REQUIRED: Records are never physically deleted by the
service; retention and erasure are handled by a separate workflow.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from consentry.infrastructure.database.connection import Base

_UUID_RE = "[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"


def _uuid_array_check(column: str) -> str:
    return (
        f"cardinality({column}) = 0 OR "
        f"array_to_string({column}, ',') ~ '^{_UUID_RE}(,{_UUID_RE})*$'"
    )


class ConsentRecordModel(Base):
    """
    Consent record table ORM model.

    Table: consent_records
    """

    __tablename__ = "consent_records"

    # Primary key
    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
        doc="Record identifier returned to the widget"
    )
    consent_id: Mapped[str] = mapped_column(
        String(512),
        unique=True,
        nullable=False,
        doc="Human-traceable consent identifier"
    )

    # Identity
    widget_id: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("widget_configs.widget_id", ondelete="RESTRICT"),
        nullable=False,
        doc="Collecting widget"
    )
    visitor_id: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        doc="Anonymous visitor token"
    )
    visitor_email: Mapped[Optional[str]] = mapped_column(
        String(320),
        nullable=True,
        doc="Plaintext e-mail, visible to the tenant only"
    )
    visitor_email_hash: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        doc="SHA-256 of the normalized e-mail"
    )

    # Decision
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        doc="accepted, rejected, partial or revoked"
    )
    consented_activities: Mapped[list[str]] = mapped_column(
        ARRAY(String(36)),
        nullable=False,
        default=list,
        doc="Accepted activity ids"
    )
    rejected_activities: Mapped[list[str]] = mapped_column(
        ARRAY(String(36)),
        nullable=False,
        default=list,
        doc="Rejected activity ids"
    )
    consent_details: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        doc="Purpose maps, rule context, notice snapshot, device metadata"
    )
    notice_version: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        doc="Notice version at creation"
    )

    # Timestamps
    given_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        nullable=False,
        doc="When the record was created"
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        nullable=False,
        doc="Last mutation"
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        doc="When the consent lapses"
    )
    revoked_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="When consent was revoked"
    )
    revocation_reason: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Reason given with the revocation"
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('accepted', 'rejected', 'partial', 'revoked')",
            name="ck_consent_records_status",
        ),
        CheckConstraint(
            "NOT (consented_activities && rejected_activities)",
            name="ck_consent_records_disjoint_activities",
        ),
        CheckConstraint(
            _uuid_array_check("consented_activities"),
            name="ck_consent_records_consented_ids",
        ),
        CheckConstraint(
            _uuid_array_check("rejected_activities"),
            name="ck_consent_records_rejected_ids",
        ),
        CheckConstraint(
            "status <> 'accepted' OR cardinality(consented_activities) > 0",
            name="ck_consent_records_accepted_has_activities",
        ),
        CheckConstraint(
            "status <> 'rejected' OR cardinality(rejected_activities) > 0",
            name="ck_consent_records_rejected_has_activities",
        ),
        CheckConstraint(
            "status <> 'partial' OR "
            "(cardinality(consented_activities) > 0 AND cardinality(rejected_activities) > 0)",
            name="ck_consent_records_partial_has_both",
        ),
        CheckConstraint(
            "expires_at > updated_at",
            name="ck_consent_records_expiry_after_update",
        ),
        CheckConstraint(
            "(status = 'revoked') = (revoked_at IS NOT NULL)",
            name="ck_consent_records_revoked_at",
        ),
        # Email-hash matching: latest record per (widget, hash)
        Index("ix_consent_records_widget_email_hash", "widget_id", "visitor_email_hash", "updated_at"),
        # Page-URL matching: visitor history per widget
        Index("ix_consent_records_widget_visitor", "widget_id", "visitor_id", "updated_at"),
        # Monthly quota counting
        Index("ix_consent_records_widget_given_at", "widget_id", "given_at"),
    )

    def __repr__(self) -> str:
        return f"<ConsentRecordModel(id={self.id}, widget='{self.widget_id}', status='{self.status}')>"

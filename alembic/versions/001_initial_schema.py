"""Initial schema - widgets, activities, consent records, preferences, subscriptions

Revision ID: 001_initial_schema
Revises:
Create Date: 2024-01-01 00:00:00.000000

Creates the core Consentry database schema:
- widget_configs: Tenant widgets and their displayed activities
- processing_activities: Activities with purposes and data categories
- consent_records: Consent system of record with integrity CHECKs
- visitor_consent_preferences: Per-activity preference projection
- subscriptions: Tenant plans for quota enforcement
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UUID_RE = "[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"


def _uuid_array_check(column: str) -> str:
    return (
        f"cardinality({column}) = 0 OR "
        f"array_to_string({column}, ',') ~ '^{UUID_RE}(,{UUID_RE})*$'"
    )


def upgrade() -> None:
    # Create widget_configs table
    op.create_table(
        'widget_configs',
        sa.Column('widget_id', sa.String(100), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('domain', sa.String(255), nullable=False, server_default=''),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('consent_duration', sa.Integer(), nullable=True),
        sa.Column('selected_activities', postgresql.ARRAY(sa.String(36)), nullable=False, server_default='{}'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('widget_id'),
    )
    op.create_index('ix_widget_configs_user_id', 'widget_configs', ['user_id'])

    # Create processing_activities table
    op.create_table(
        'processing_activities',
        sa.Column('id', postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('activity_name', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('purposes', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_processing_activities_user_id', 'processing_activities', ['user_id'])

    # Create consent_records table
    op.create_table(
        'consent_records',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('consent_id', sa.String(512), nullable=False),
        sa.Column('widget_id', sa.String(100), nullable=False),
        sa.Column('visitor_id', sa.String(200), nullable=False),
        sa.Column('visitor_email', sa.String(320), nullable=True),
        sa.Column('visitor_email_hash', sa.String(64), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('consented_activities', postgresql.ARRAY(sa.String(36)), nullable=False, server_default='{}'),
        sa.Column('rejected_activities', postgresql.ARRAY(sa.String(36)), nullable=False, server_default='{}'),
        sa.Column('consent_details', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.Column('notice_version', sa.String(20), nullable=False),
        sa.Column('given_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revocation_reason', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('consent_id', name='uq_consent_records_consent_id'),
        sa.ForeignKeyConstraint(['widget_id'], ['widget_configs.widget_id'], ondelete='RESTRICT'),
        sa.CheckConstraint(
            "status IN ('accepted', 'rejected', 'partial', 'revoked')",
            name='ck_consent_records_status',
        ),
        sa.CheckConstraint(
            "NOT (consented_activities && rejected_activities)",
            name='ck_consent_records_disjoint_activities',
        ),
        sa.CheckConstraint(
            _uuid_array_check('consented_activities'),
            name='ck_consent_records_consented_ids',
        ),
        sa.CheckConstraint(
            _uuid_array_check('rejected_activities'),
            name='ck_consent_records_rejected_ids',
        ),
        sa.CheckConstraint(
            "status <> 'accepted' OR cardinality(consented_activities) > 0",
            name='ck_consent_records_accepted_has_activities',
        ),
        sa.CheckConstraint(
            "status <> 'rejected' OR cardinality(rejected_activities) > 0",
            name='ck_consent_records_rejected_has_activities',
        ),
        sa.CheckConstraint(
            "status <> 'partial' OR "
            "(cardinality(consented_activities) > 0 AND cardinality(rejected_activities) > 0)",
            name='ck_consent_records_partial_has_both',
        ),
        sa.CheckConstraint(
            "expires_at > updated_at",
            name='ck_consent_records_expiry_after_update',
        ),
        sa.CheckConstraint(
            "(status = 'revoked') = (revoked_at IS NOT NULL)",
            name='ck_consent_records_revoked_at',
        ),
    )
    op.create_index(
        'ix_consent_records_widget_email_hash',
        'consent_records',
        ['widget_id', 'visitor_email_hash', 'updated_at'],
    )
    op.create_index(
        'ix_consent_records_widget_visitor',
        'consent_records',
        ['widget_id', 'visitor_id', 'updated_at'],
    )
    op.create_index(
        'ix_consent_records_widget_given_at',
        'consent_records',
        ['widget_id', 'given_at'],
    )

    # Create visitor_consent_preferences table
    op.create_table(
        'visitor_consent_preferences',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('visitor_id', sa.String(200), nullable=False),
        sa.Column('widget_id', sa.String(100), nullable=False),
        sa.Column('activity_id', sa.String(36), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('visitor_email_hash', sa.String(64), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'visitor_id', 'widget_id', 'activity_id',
            name='uq_visitor_consent_preferences_key',
        ),
        sa.CheckConstraint(
            "status IN ('accepted', 'rejected', 'withdrawn')",
            name='ck_visitor_consent_preferences_status',
        ),
    )
    op.create_index(
        'ix_visitor_consent_preferences_visitor_email_hash',
        'visitor_consent_preferences',
        ['visitor_email_hash'],
    )

    # Create subscriptions table
    op.create_table(
        'subscriptions',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('plan', sa.String(20), nullable=False, server_default='free'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('trial_ends_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', name='uq_subscriptions_user_id'),
    )


def downgrade() -> None:
    op.drop_table('subscriptions')
    op.drop_table('visitor_consent_preferences')
    op.drop_table('consent_records')
    op.drop_table('processing_activities')
    op.drop_table('widget_configs')

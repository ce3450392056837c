"""Domain models package."""

from consentry.domain.models.submission import (
    ConsentMetadata,
    ConsentSubmission,
    RuleContext,
)
from consentry.domain.models.consent_record import (
    ACTIVITY_ID_PATTERN,
    MAX_CONSENT_DURATION_DAYS,
    MIN_CONSENT_DURATION_DAYS,
    ConsentDetails,
    ConsentRecord,
    NoticeSnapshot,
    is_valid_activity_id,
)
from consentry.domain.models.widget import (
    ActivityPurpose,
    DataCategory,
    ProcessingActivity,
    WidgetConfig,
)
from consentry.domain.models.preference import BestEffortOutcome, PreferenceProjection
from consentry.domain.models.subscription import (
    DEFAULT_PLAN,
    PLAN_CONSENT_LIMITS,
    Entitlements,
    QuotaUsage,
    Subscription,
)

__all__ = [
    # Submission
    "ConsentMetadata",
    "ConsentSubmission",
    "RuleContext",
    # Record
    "ACTIVITY_ID_PATTERN",
    "MAX_CONSENT_DURATION_DAYS",
    "MIN_CONSENT_DURATION_DAYS",
    "ConsentDetails",
    "ConsentRecord",
    "NoticeSnapshot",
    "is_valid_activity_id",
    # Widget
    "ActivityPurpose",
    "DataCategory",
    "ProcessingActivity",
    "WidgetConfig",
    # Projection
    "BestEffortOutcome",
    "PreferenceProjection",
    # Entitlements
    "DEFAULT_PLAN",
    "PLAN_CONSENT_LIMITS",
    "Entitlements",
    "QuotaUsage",
    "Subscription",
]

"""
Consentry Domain Layer

Core consent entities, enumerations and error types.
These models are independent of storage and transport.
"""

from consentry.domain.enums import ConsentStatus, DeviceType, MatchAction, PreferenceStatus
from consentry.domain.models import (
    BestEffortOutcome,
    ConsentDetails,
    ConsentMetadata,
    ConsentRecord,
    ConsentSubmission,
    NoticeSnapshot,
    PreferenceProjection,
    ProcessingActivity,
    RuleContext,
    WidgetConfig,
)

__all__ = [
    # Enums
    "ConsentStatus",
    "DeviceType",
    "MatchAction",
    "PreferenceStatus",
    # Models
    "BestEffortOutcome",
    "ConsentDetails",
    "ConsentMetadata",
    "ConsentRecord",
    "ConsentSubmission",
    "NoticeSnapshot",
    "PreferenceProjection",
    "ProcessingActivity",
    "RuleContext",
    "WidgetConfig",
]

"""
Database ORM models package.
"""

from consentry.infrastructure.database.models.widget_model import (
    ProcessingActivityModel,
    WidgetConfigModel,
)
from consentry.infrastructure.database.models.consent_record_model import ConsentRecordModel
from consentry.infrastructure.database.models.preference_model import VisitorPreferenceModel
from consentry.infrastructure.database.models.subscription_model import SubscriptionModel

__all__ = [
    "ProcessingActivityModel",
    "WidgetConfigModel",
    "ConsentRecordModel",
    "VisitorPreferenceModel",
    "SubscriptionModel",
]

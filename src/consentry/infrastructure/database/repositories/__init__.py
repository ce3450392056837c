"""
Repository package for data access layer.
"""

from consentry.infrastructure.database.repositories.interfaces import (
    ConsentRecordStore,
    PreferenceStore,
    StoreConstraintError,
    StoreError,
    SubscriptionDirectory,
    WidgetDirectory,
)
from consentry.infrastructure.database.repositories.base import BaseRepository
from consentry.infrastructure.database.repositories.consent_record_repository import (
    ConsentRecordRepository,
)
from consentry.infrastructure.database.repositories.preference_repository import (
    PreferenceRepository,
)
from consentry.infrastructure.database.repositories.widget_repository import WidgetRepository
from consentry.infrastructure.database.repositories.subscription_repository import (
    SubscriptionRepository,
)

__all__ = [
    # Interfaces
    "ConsentRecordStore",
    "PreferenceStore",
    "StoreConstraintError",
    "StoreError",
    "SubscriptionDirectory",
    "WidgetDirectory",
    # Implementations
    "BaseRepository",
    "ConsentRecordRepository",
    "PreferenceRepository",
    "WidgetRepository",
    "SubscriptionRepository",
]

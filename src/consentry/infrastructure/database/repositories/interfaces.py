"""
Store Interfaces

Abstract collaborators the consent engine depends on. The SQLAlchemy
repositories in this package implement them; tests substitute
in-memory fakes.

ARCHITECTURE: Services only ever see these interfaces, so the engine
can be constructed without a database.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Sequence

from consentry.domain.models import (
    ConsentRecord,
    PreferenceProjection,
    ProcessingActivity,
    Subscription,
    WidgetConfig,
)


class StoreError(Exception):
    """Base exception for record store failures."""

    def __init__(
        self,
        message: str,
        operation: str,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.original_error = original_error


class StoreConstraintError(StoreError):
    """The store rejected a write because an integrity constraint failed."""


class ConsentRecordStore(ABC):
    """System of record for consent records."""

    @abstractmethod
    async def find_latest_by_email_hash(
        self,
        widget_id: str,
        email_hash: str,
    ) -> Optional[ConsentRecord]:
        """
        Get the most recent record for a verified identity on a widget.

        Args:
            widget_id: Widget identifier
            email_hash: SHA-256 hex of the normalized e-mail

        Returns:
            Most recently updated record, or None
        """
        pass

    @abstractmethod
    async def list_for_visitor(
        self,
        widget_id: str,
        visitor_id: str,
        *,
        limit: int,
    ) -> Sequence[ConsentRecord]:
        """
        List a visitor's records on a widget, most recent first.

        Args:
            widget_id: Widget identifier
            visitor_id: Anonymous visitor token
            limit: Maximum records to return
        """
        pass

    @abstractmethod
    async def insert(self, record: ConsentRecord) -> ConsentRecord:
        """Persist a new record. Raises StoreError on failure."""
        pass

    @abstractmethod
    async def update(self, record: ConsentRecord) -> ConsentRecord:
        """Overwrite an existing record. Raises StoreError on failure."""
        pass

    @abstractmethod
    async def count_created_since(self, owner_user_id: str, since: datetime) -> int:
        """Count records created since `since` on all widgets a tenant owns."""
        pass


class PreferenceStore(ABC):
    """Per-activity preference projection."""

    @abstractmethod
    async def upsert_many(self, rows: Sequence[PreferenceProjection]) -> int:
        """
        Insert or overwrite rows keyed by (visitor, widget, activity).

        Returns:
            Number of rows written
        """
        pass

    @abstractmethod
    async def withdraw_all(
        self,
        visitor_id: str,
        widget_id: str,
        *,
        withdrawn_at: datetime,
    ) -> int:
        """
        Mark every row for (visitor, widget) as withdrawn.

        Returns:
            Number of rows changed
        """
        pass


class WidgetDirectory(ABC):
    """Read-only access to tenant widget configuration."""

    @abstractmethod
    async def get_active_widget(self, widget_id: str) -> Optional[WidgetConfig]:
        """Get a widget if it exists and is active."""
        pass

    @abstractmethod
    async def list_activities(
        self,
        activity_ids: Sequence[str],
    ) -> Sequence[ProcessingActivity]:
        """Get the active processing activities among `activity_ids`."""
        pass


class SubscriptionDirectory(ABC):
    """Read-only access to tenant subscriptions."""

    @abstractmethod
    async def get_subscription(self, user_id: str) -> Optional[Subscription]:
        """Get a tenant's current subscription, if any."""
        pass

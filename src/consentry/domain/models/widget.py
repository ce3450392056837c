"""
Widget Domain Models

Read-only views of tenant configuration the engine consumes:
the widget itself and the processing activities it displays.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class WidgetConfig:
    """
    Consent widget configuration.

    Attributes:
        widget_id: Public widget identifier embedded in the script tag
        user_id: Tenant that owns the widget (quota is charged here)
        is_active: Inactive widgets reject submissions
        consent_duration_default: Default consent lifetime in days
        domain: Tenant domain shown in the privacy notice
        selected_activities: Activity ids the widget displays
    """

    widget_id: str
    user_id: str
    is_active: bool = True
    consent_duration_default: Optional[int] = None
    domain: str = ""
    selected_activities: tuple[str, ...] = ()


@dataclass(frozen=True)
class DataCategory:
    name: str
    retention_period: str = ""


@dataclass(frozen=True)
class ActivityPurpose:
    name: str
    legal_basis: str = ""
    data_categories: tuple[DataCategory, ...] = ()


@dataclass(frozen=True)
class ProcessingActivity:
    """A declared data-processing activity with its purposes."""

    id: str
    name: str
    purposes: tuple[ActivityPurpose, ...] = field(default_factory=tuple)

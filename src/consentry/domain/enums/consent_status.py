"""
Consent Enumerations

Status vocabularies shared by the record, the preference projection
and the device classifier.
"""

from enum import StrEnum


class ConsentStatus(StrEnum):
    """
    Overall status of a consent record.

    Derived from the visitor's activity selection; the status
    claimed by the widget is advisory only.
    """

    ACCEPTED = "accepted"
    """Every activity shown was accepted (at least one accepted)."""

    REJECTED = "rejected"
    """Every activity shown was rejected (at least one rejected)."""

    PARTIAL = "partial"
    """Some activities accepted and some rejected."""

    REVOKED = "revoked"
    """
    Visitor withdrew consent.

    No activity selection is required for this status.
    """

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(member.value for member in cls)


class PreferenceStatus(StrEnum):
    """Per-activity status held in the preference projection."""

    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class DeviceType(StrEnum):
    """Device class derived from the user agent."""

    DESKTOP = "Desktop"
    MOBILE = "Mobile"
    TABLET = "Tablet"
    UNKNOWN = "Unknown"


class MatchAction(StrEnum):
    """What the record writer should do with a submission."""

    UPDATE = "update"
    CREATE = "create"

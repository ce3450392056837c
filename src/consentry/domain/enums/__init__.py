"""Domain enumerations package."""

from consentry.domain.enums.consent_status import (
    ConsentStatus,
    DeviceType,
    MatchAction,
    PreferenceStatus,
)

__all__ = ["ConsentStatus", "DeviceType", "MatchAction", "PreferenceStatus"]

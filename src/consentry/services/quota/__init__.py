"""Quota admission services package."""

from consentry.services.quota.entitlements import (
    EntitlementProvider,
    StoreEntitlementProvider,
    start_of_month,
)
from consentry.services.quota.quota_controller import AdmissionDecision, QuotaController

__all__ = [
    "EntitlementProvider",
    "StoreEntitlementProvider",
    "start_of_month",
    "AdmissionDecision",
    "QuotaController",
]

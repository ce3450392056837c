"""Identity services package."""

from consentry.services.identity.device_classifier import (
    DeviceClassifier,
    RequestSignals,
    detect_browser,
    detect_device_type,
    detect_os,
)
from consentry.services.identity.visitor_identity import (
    VisitorIdentity,
    hash_email,
    normalize_email,
)

__all__ = [
    # Device classification
    "DeviceClassifier",
    "RequestSignals",
    "detect_browser",
    "detect_device_type",
    "detect_os",
    # Visitor identity
    "VisitorIdentity",
    "hash_email",
    "normalize_email",
]

"""Identifier services package."""

from consentry.services.identifiers.consent_id import (
    ConsentIdGenerator,
    ParsedConsentId,
    is_valid_consent_id,
    is_verified_consent_id,
    parse_consent_id,
)

__all__ = [
    "ConsentIdGenerator",
    "ParsedConsentId",
    "is_valid_consent_id",
    "is_verified_consent_id",
    "parse_consent_id",
]

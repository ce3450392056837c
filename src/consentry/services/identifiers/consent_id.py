"""
Consent ID Generator

Human-traceable identifiers for new consent records.

Formats:
    Verified e-mail:  {widgetId}_{first16HexOfEmailHash}_{timestampMillis}
    Otherwise:        {widgetId}_{visitorId}_{timestampMillis}_{random6}

The verified prefix lets an operator correlate records of one verified
identity without seeing the e-mail. The random suffix separates two
anonymous submissions in the same millisecond.

Widget and visitor ids may themselves contain underscores; parsing
works from the right and accepts the widget id as a hint.
"""

import re
import secrets
import string
import time
from dataclasses import dataclass
from typing import Callable, Optional

BASE36_ALPHABET = string.digits + string.ascii_lowercase
RANDOM_SUFFIX_LENGTH = 6
EMAIL_HASH_PREFIX_LENGTH = 16

_HASH_PREFIX = re.compile(r"^[0-9a-f]{16}$")
_TIMESTAMP = re.compile(r"^\d{1,16}$")
_SUFFIX = re.compile(r"^[0-9a-z]+$", re.IGNORECASE)


def _random_base36(length: int = RANDOM_SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(BASE36_ALPHABET) for _ in range(length))


def _now_millis() -> int:
    return time.time_ns() // 1_000_000


@dataclass(frozen=True)
class ParsedConsentId:
    """Components of a consent id."""

    widget_id: str
    timestamp_ms: int
    is_verified: bool
    email_hash_prefix: Optional[str] = None
    visitor_id: Optional[str] = None
    random_suffix: Optional[str] = None


class ConsentIdGenerator:
    """
    Generates consent ids.

    Clock and random source are injectable for deterministic tests.

    Usage:
        generator = ConsentIdGenerator()
        consent_id = generator.generate("w1", "v1", email_hash=None)
    """

    def __init__(
        self,
        clock_ms: Optional[Callable[[], int]] = None,
        random_suffix: Optional[Callable[[], str]] = None,
    ) -> None:
        self._clock_ms = clock_ms or _now_millis
        self._random_suffix = random_suffix or _random_base36

    def generate(
        self,
        widget_id: str,
        visitor_id: str,
        email_hash: Optional[str] = None,
    ) -> str:
        timestamp = self._clock_ms()
        if email_hash:
            return f"{widget_id}_{email_hash[:EMAIL_HASH_PREFIX_LENGTH]}_{timestamp}"
        return f"{widget_id}_{visitor_id}_{timestamp}_{self._random_suffix()}"


def parse_consent_id(
    consent_id: str,
    widget_id: Optional[str] = None,
) -> Optional[ParsedConsentId]:
    """
    Split a consent id into its components.

    Args:
        consent_id: Id to parse
        widget_id: Known widget id; without it an unverified id's widget
            is taken to be its first underscore-separated segment

    Returns:
        ParsedConsentId, or None if the id matches neither format
    """
    if not consent_id or not isinstance(consent_id, str):
        return None
    if widget_id and not consent_id.startswith(f"{widget_id}_"):
        return None

    parts = consent_id.split("_")
    if len(parts) < 3:
        return None

    if _TIMESTAMP.match(parts[-1]) and _HASH_PREFIX.match(parts[-2]):
        owner = "_".join(parts[:-2])
        if owner and (widget_id is None or owner == widget_id):
            return ParsedConsentId(
                widget_id=owner,
                timestamp_ms=int(parts[-1]),
                is_verified=True,
                email_hash_prefix=parts[-2],
            )

    if len(parts) >= 4 and _TIMESTAMP.match(parts[-2]) and _SUFFIX.match(parts[-1]):
        head = "_".join(parts[:-2])
        if widget_id:
            owner = widget_id
            visitor = head[len(widget_id) + 1:]
        else:
            owner, _, visitor = head.partition("_")
        if owner and visitor:
            return ParsedConsentId(
                widget_id=owner,
                timestamp_ms=int(parts[-2]),
                is_verified=False,
                visitor_id=visitor,
                random_suffix=parts[-1],
            )

    return None


def is_valid_consent_id(consent_id: str, widget_id: Optional[str] = None) -> bool:
    return parse_consent_id(consent_id, widget_id) is not None


def is_verified_consent_id(consent_id: str, widget_id: Optional[str] = None) -> bool:
    parsed = parse_consent_id(consent_id, widget_id)
    return parsed is not None and parsed.is_verified

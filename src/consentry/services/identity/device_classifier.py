"""
Identity & Device Classifier

Derives device type, browser, OS, country and language for a consent
record from request headers and client-supplied metadata.

Client metadata wins over header-derived values. Classification never
raises: missing or garbled input degrades to "Unknown".
"""

import re
from dataclasses import dataclass
from typing import Mapping, Optional

from consentry.domain.enums import DeviceType
from consentry.domain.models import ConsentMetadata
from consentry.services.validation.input_validator import clean_url

UNKNOWN = "Unknown"
DEFAULT_LANGUAGE = "en"

# Tablet first: Android tablets omit "mobi" but would otherwise match mobile
TABLET_PATTERN = re.compile(r"(tablet|ipad|playbook|silk)|(android(?!.*mobi))", re.IGNORECASE)
MOBILE_PATTERN = re.compile(r"mobile|iphone|ipod|blackberry|windows phone|android.*mobile", re.IGNORECASE)
DESKTOP_PATTERN = re.compile(r"windows|macintosh|linux", re.IGNORECASE)

# Ordered: Edge and Opera UAs also carry Chrome and Safari tokens
BROWSER_TOKENS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Edge", ("edg/",)),
    ("Opera", ("opr/", "opera")),
    ("Chrome", ("chrome/", "crios/")),
    ("Firefox", ("firefox/", "fxios/")),
    ("Safari", ("safari/",)),
)

# Ordered: Android UAs carry "linux", iOS UAs carry "mac os"
OS_TOKENS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Windows", ("windows",)),
    ("Android", ("android",)),
    ("iOS", ("iphone", "ipad", "ipod")),
    ("macOS", ("mac os", "macintosh")),
    ("Linux", ("linux",)),
)

COUNTRY_HEADERS = ("cf-ipcountry", "x-vercel-ip-country")


def detect_device_type(user_agent: Optional[str]) -> DeviceType:
    if not user_agent:
        return DeviceType.UNKNOWN
    if TABLET_PATTERN.search(user_agent):
        return DeviceType.TABLET
    if MOBILE_PATTERN.search(user_agent):
        return DeviceType.MOBILE
    if DESKTOP_PATTERN.search(user_agent):
        return DeviceType.DESKTOP
    return DeviceType.UNKNOWN


def _first_token_match(user_agent: Optional[str], candidates) -> str:
    if not user_agent:
        return UNKNOWN
    ua = user_agent.lower()
    for name, tokens in candidates:
        if any(token in ua for token in tokens):
            return name
    return UNKNOWN


def detect_browser(user_agent: Optional[str]) -> str:
    return _first_token_match(user_agent, BROWSER_TOKENS)


def detect_os(user_agent: Optional[str]) -> str:
    return _first_token_match(user_agent, OS_TOKENS)


@dataclass(frozen=True)
class RequestSignals:
    """
    Header-derived signals for one request.

    Header names are matched case-insensitively.
    """

    user_agent: Optional[str] = None
    forwarded_for: Optional[str] = None
    real_ip: Optional[str] = None
    accept_language: Optional[str] = None
    referer: Optional[str] = None
    country: Optional[str] = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RequestSignals":
        lowered = {key.lower(): value for key, value in headers.items()}
        country = next(
            (lowered[name] for name in COUNTRY_HEADERS if lowered.get(name)),
            None,
        )
        return cls(
            user_agent=lowered.get("user-agent") or None,
            forwarded_for=lowered.get("x-forwarded-for") or None,
            real_ip=lowered.get("x-real-ip") or None,
            accept_language=lowered.get("accept-language") or None,
            referer=lowered.get("referer") or None,
            country=country,
        )

    @property
    def client_ip(self) -> Optional[str]:
        """First hop of X-Forwarded-For, else X-Real-IP."""
        if self.forwarded_for:
            first = self.forwarded_for.split(",")[0].strip()
            if first:
                return first
        return self.real_ip

    @property
    def primary_language(self) -> Optional[str]:
        if not self.accept_language:
            return None
        first = self.accept_language.split(",")[0].split(";")[0].strip()
        return first or None


class DeviceClassifier:
    """
    Builds the device/geo metadata stored with a consent record.

    Usage:
        classifier = DeviceClassifier()
        metadata = classifier.classify(RequestSignals.from_headers(headers), submission.metadata)
    """

    def classify(
        self,
        signals: RequestSignals,
        client: Optional[ConsentMetadata] = None,
    ) -> ConsentMetadata:
        """
        Merge client metadata with header-derived values.

        Args:
            signals: Request header signals
            client: Sanitized metadata sent by the widget

        Returns:
            ConsentMetadata with every classification field populated
        """
        client = client or ConsentMetadata()
        user_agent = signals.user_agent or client.user_agent

        return ConsentMetadata(
            ip_address=signals.client_ip or client.ip_address or "unknown",
            user_agent=user_agent,
            device_type=client.device_type or detect_device_type(user_agent).value,
            browser=client.browser or detect_browser(user_agent),
            os=client.os or detect_os(user_agent),
            country=client.country or signals.country or UNKNOWN,
            language=client.language or signals.primary_language or DEFAULT_LANGUAGE,
            referrer=client.referrer or clean_url(signals.referer),
            current_url=client.current_url,
            page_title=client.page_title,
        )

"""Record matching services package."""

from consentry.services.matching.url_normalizer import normalize_url, same_page
from consentry.services.matching.record_matcher import (
    EmailHashMatchStrategy,
    MatchQuery,
    MatchResult,
    MatchStrategy,
    PageUrlMatchStrategy,
    RecordMatcher,
)

__all__ = [
    # URL normalization
    "normalize_url",
    "same_page",
    # Strategies
    "EmailHashMatchStrategy",
    "PageUrlMatchStrategy",
    "MatchStrategy",
    # Matcher
    "MatchQuery",
    "MatchResult",
    "RecordMatcher",
]

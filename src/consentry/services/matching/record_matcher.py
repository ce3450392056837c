"""
Existing-Record Matcher

Decides whether a submission continues an existing consent record
(update) or starts a new one (create).

Strategies run in order; the first that returns a MatchResult decides.
When every strategy abstains the submission creates a new record.

1. EmailHashMatchStrategy - strongest signal, consolidates across devices.
   An identical selection updates; a changed selection creates a new
   record so the verified visitor's history is preserved.
2. PageUrlMatchStrategy - per-page continuation for the same visitor.

A lookup error inside a strategy is logged and the strategy abstains:
recording a duplicate consent is less harmful than losing one.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Sequence

from consentry.domain.enums import ConsentStatus, MatchAction
from consentry.domain.models import ConsentRecord
from consentry.infrastructure.database.repositories.interfaces import ConsentRecordStore
from consentry.infrastructure.metrics import track_match_decision
from consentry.services.matching.url_normalizer import same_page
from consentry.config.logging_config import get_logger

logger = get_logger(__name__)

FALLBACK_STRATEGY = "fallback"


@dataclass(frozen=True)
class MatchQuery:
    """Everything a strategy may look at."""

    widget_id: str
    visitor_id: str
    status: ConsentStatus
    accepted: Sequence[str] = field(default_factory=tuple)
    rejected: Sequence[str] = field(default_factory=tuple)
    email_hash: Optional[str] = None
    page_url: Optional[str] = None


@dataclass(frozen=True)
class MatchResult:
    """
    Matcher decision.

    Attributes:
        action: UPDATE or CREATE
        strategy: Name of the deciding strategy
        record: Record to update (UPDATE only)
        reason: Short human-readable explanation
    """

    action: MatchAction
    strategy: str
    record: Optional[ConsentRecord] = None
    reason: str = ""

    @classmethod
    def update(cls, strategy: str, record: ConsentRecord, reason: str) -> "MatchResult":
        return cls(action=MatchAction.UPDATE, strategy=strategy, record=record, reason=reason)

    @classmethod
    def create(cls, strategy: str, reason: str) -> "MatchResult":
        return cls(action=MatchAction.CREATE, strategy=strategy, reason=reason)

    @property
    def is_update(self) -> bool:
        return self.action == MatchAction.UPDATE


class MatchStrategy(ABC):
    """One step of the matching chain."""

    name: str = ""

    @abstractmethod
    async def match(self, query: MatchQuery) -> Optional[MatchResult]:
        """Return a decision, or None to defer to the next strategy."""
        pass


class EmailHashMatchStrategy(MatchStrategy):
    """Match on the verified e-mail hash."""

    name = "email_hash"

    def __init__(self, records: ConsentRecordStore) -> None:
        self._records = records

    async def match(self, query: MatchQuery) -> Optional[MatchResult]:
        if not query.email_hash:
            return None

        latest = await self._records.find_latest_by_email_hash(
            query.widget_id, query.email_hash
        )
        if latest is None:
            return None

        if latest.selection_matches(query.status, list(query.accepted), list(query.rejected)):
            return MatchResult.update(
                self.name, latest, "identical selection for verified visitor"
            )
        return MatchResult.create(self.name, "changed selection for verified visitor")


class PageUrlMatchStrategy(MatchStrategy):
    """Match the visitor's prior record on the same normalized page URL."""

    name = "page_url"

    def __init__(self, records: ConsentRecordStore, scan_limit: int = 50) -> None:
        self._records = records
        self._scan_limit = scan_limit

    async def match(self, query: MatchQuery) -> Optional[MatchResult]:
        candidates = await self._records.list_for_visitor(
            query.widget_id, query.visitor_id, limit=self._scan_limit
        )
        for record in candidates:
            if record.visitor_email_hash and record.visitor_email_hash != query.email_hash:
                continue
            if same_page(record.page_url, query.page_url):
                return MatchResult.update(self.name, record, "same visitor on same page")
        return None


class RecordMatcher:
    """
    Ordered strategy chain.

    Usage:
        matcher = RecordMatcher.default(record_store)
        result = await matcher.decide(query)
    """

    def __init__(self, strategies: Sequence[MatchStrategy]) -> None:
        self._strategies = list(strategies)

    @classmethod
    def default(cls, records: ConsentRecordStore, scan_limit: int = 50) -> "RecordMatcher":
        return cls([
            EmailHashMatchStrategy(records),
            PageUrlMatchStrategy(records, scan_limit=scan_limit),
        ])

    async def decide(self, query: MatchQuery) -> MatchResult:
        """Run the chain and return the first decision, else CREATE."""
        for strategy in self._strategies:
            try:
                result = await strategy.match(query)
            except Exception as e:
                logger.error(
                    "Record lookup failed; strategy abstains",
                    strategy=strategy.name,
                    widget_id=query.widget_id,
                    error=str(e),
                )
                continue

            if result is not None:
                self._log_decision(query, result)
                return result

        result = MatchResult.create(FALLBACK_STRATEGY, "no existing record matched")
        self._log_decision(query, result)
        return result

    @staticmethod
    def _log_decision(query: MatchQuery, result: MatchResult) -> None:
        track_match_decision(result.strategy, result.action.value)
        logger.debug(
            "Match decided",
            widget_id=query.widget_id,
            strategy=result.strategy,
            action=result.action.value,
            record_id=str(result.record.id) if result.record else None,
        )

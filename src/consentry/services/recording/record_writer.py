"""
Record Writer

Performs the create-or-update decided by the matcher, then mirrors the
result into the per-activity preference projection.

The primary write is authoritative and its failure fails the request.
The projection sync runs afterwards in its own transaction, is retried,
and on final failure is reported as a failed BestEffortOutcome.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from consentry.config.settings import ConsentSettings
from consentry.domain.enums import ConsentStatus, MatchAction, PreferenceStatus
from consentry.domain.exceptions import ConstraintViolationError, RecordWriteError
from consentry.domain.models import (
    BestEffortOutcome,
    ConsentDetails,
    ConsentRecord,
    PreferenceProjection,
    WidgetConfig,
)
from consentry.infrastructure.database.repositories.interfaces import (
    ConsentRecordStore,
    PreferenceStore,
    StoreConstraintError,
    StoreError,
)
from consentry.infrastructure.metrics import track_best_effort_failure, track_record_written
from consentry.services.identifiers.consent_id import ConsentIdGenerator
from consentry.services.identity.visitor_identity import VisitorIdentity
from consentry.services.matching.record_matcher import MatchResult
from consentry.config.logging_config import get_logger

logger = get_logger(__name__)

PROJECTION_STEP = "projection_sync"


@dataclass
class RecordDraft:
    """
    Everything the writer needs besides the match decision.

    Attributes:
        widget: Collecting widget
        identity: Visitor identity signals
        status: Reconciled status
        accepted: Accepted activity ids
        rejected: Rejected activity ids
        details: Consent detail document (snapshot already attached)
        duration_days: Consent lifetime in days
        revocation_reason: Reason supplied with a revocation
    """

    widget: WidgetConfig
    identity: VisitorIdentity
    status: ConsentStatus
    accepted: list[str]
    rejected: list[str]
    details: ConsentDetails
    duration_days: int
    revocation_reason: Optional[str] = None


@dataclass(frozen=True)
class WriteResult:
    """Written record plus the projection sync outcome."""

    record: ConsentRecord
    operation: MatchAction
    projection_outcome: BestEffortOutcome


class RecordWriter:
    """
    Writes consent records and their preference projection.

    Usage:
        writer = RecordWriter(record_store, preference_store, settings.consent)
        result = await writer.write(draft, match)
    """

    def __init__(
        self,
        records: ConsentRecordStore,
        preferences: PreferenceStore,
        settings: ConsentSettings,
        id_generator: Optional[ConsentIdGenerator] = None,
        clock: Optional[Callable[[], datetime]] = None,
        projection_wait=None,
    ) -> None:
        """
        Initialize the writer.

        Args:
            records: Consent record store
            preferences: Preference projection store
            settings: Consent policy settings
            id_generator: Consent id generator for new records
            clock: Source of "now" (UTC)
            projection_wait: tenacity wait strategy between projection retries
        """
        self._records = records
        self._preferences = preferences
        self._settings = settings
        self._id_generator = id_generator or ConsentIdGenerator()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._projection_wait = projection_wait or wait_exponential(multiplier=0.2, min=0.2, max=2)

    async def write(self, draft: RecordDraft, match: MatchResult) -> WriteResult:
        """
        Create or update the record, then sync the projection.

        Raises:
            ConstraintViolationError: Record breaks an integrity rule
            RecordWriteError: Store failed for any other reason
        """
        now = self._clock()
        if match.is_update and match.record is not None:
            operation = MatchAction.UPDATE
            record = self._apply_update(match.record, draft, now)
        else:
            operation = MatchAction.CREATE
            record = self._build_new(draft, now)

        violations = record.invariant_violations()
        if violations:
            logger.warning(
                "Consent record rejected by integrity rules",
                widget_id=record.widget_id,
                operation=operation.value,
                violations=violations,
            )
            raise ConstraintViolationError(violations)

        saved = await self._persist(record, operation)
        track_record_written(operation.value, saved.status.value)
        logger.info(
            "Consent record written",
            record_id=str(saved.id),
            widget_id=saved.widget_id,
            operation=operation.value,
            status=saved.status.value,
        )

        projection_outcome = await self.sync_projection(saved)
        return WriteResult(record=saved, operation=operation, projection_outcome=projection_outcome)

    def _build_new(self, draft: RecordDraft, now: datetime) -> ConsentRecord:
        identity = draft.identity
        record = ConsentRecord(
            widget_id=draft.widget.widget_id,
            visitor_id=identity.visitor_id,
            status=draft.status,
            expires_at=now + timedelta(days=draft.duration_days),
            consent_id=self._id_generator.generate(
                draft.widget.widget_id, identity.visitor_id, identity.email_hash
            ),
            visitor_email=identity.email,
            visitor_email_hash=identity.email_hash,
            consented_activities=list(draft.accepted),
            rejected_activities=list(draft.rejected),
            consent_details=draft.details,
            given_at=now,
            updated_at=now,
            notice_version=self._settings.notice_version,
        )
        return self._stamp_revocation(record, draft, now)

    def _apply_update(
        self,
        existing: ConsentRecord,
        draft: RecordDraft,
        now: datetime,
    ) -> ConsentRecord:
        identity = draft.identity
        record = replace(
            existing,
            status=draft.status,
            consented_activities=list(draft.accepted),
            rejected_activities=list(draft.rejected),
            consent_details=draft.details,
            updated_at=now,
            expires_at=now + timedelta(days=draft.duration_days),
        )
        # E-mail fields are only overwritten when the submission carries one
        if identity.is_verified:
            record.visitor_email = identity.email
            record.visitor_email_hash = identity.email_hash
        return self._stamp_revocation(record, draft, now)

    def _stamp_revocation(
        self,
        record: ConsentRecord,
        draft: RecordDraft,
        now: datetime,
    ) -> ConsentRecord:
        if record.status == ConsentStatus.REVOKED:
            record.revoked_at = now
            record.revocation_reason = (
                draft.revocation_reason or self._settings.default_revocation_reason
            )
        else:
            record.revoked_at = None
            record.revocation_reason = None
        return record

    async def _persist(self, record: ConsentRecord, operation: MatchAction) -> ConsentRecord:
        try:
            if operation == MatchAction.UPDATE:
                return await self._records.update(record)
            return await self._records.insert(record)
        except StoreConstraintError as e:
            logger.warning(
                "Store rejected consent record",
                widget_id=record.widget_id,
                operation=operation.value,
                error=str(e),
            )
            raise ConstraintViolationError([str(e)]) from e
        except StoreError as e:
            logger.error(
                "Consent record write failed",
                widget_id=record.widget_id,
                operation=operation.value,
                error=str(e),
            )
            raise RecordWriteError(operation.value) from e

    async def sync_projection(self, record: ConsentRecord) -> BestEffortOutcome:
        """
        Mirror a written record into the preference projection.

        Retried with exponential backoff. Never raises.
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._settings.projection_sync_attempts),
                wait=self._projection_wait,
                reraise=True,
            ):
                with attempt:
                    await self._apply_projection(record)
        except Exception as e:
            track_best_effort_failure(PROJECTION_STEP)
            logger.error(
                "Preference projection sync failed; consent record kept",
                record_id=str(record.id),
                widget_id=record.widget_id,
                error=str(e),
            )
            return BestEffortOutcome.failed(PROJECTION_STEP, str(e))

        return BestEffortOutcome.ok(PROJECTION_STEP)

    async def _apply_projection(self, record: ConsentRecord) -> None:
        if record.status == ConsentStatus.REVOKED:
            await self._preferences.withdraw_all(
                record.visitor_id,
                record.widget_id,
                withdrawn_at=record.updated_at,
            )
            return

        rows = [
            self._projection_row(record, activity_id, PreferenceStatus.ACCEPTED)
            for activity_id in record.consented_activities
        ] + [
            self._projection_row(record, activity_id, PreferenceStatus.REJECTED)
            for activity_id in record.rejected_activities
        ]
        if rows:
            await self._preferences.upsert_many(rows)

    @staticmethod
    def _projection_row(
        record: ConsentRecord,
        activity_id: str,
        status: PreferenceStatus,
    ) -> PreferenceProjection:
        return PreferenceProjection(
            visitor_id=record.visitor_id,
            widget_id=record.widget_id,
            activity_id=activity_id,
            status=status,
            updated_at=record.updated_at,
            expires_at=record.expires_at,
            visitor_email_hash=record.visitor_email_hash,
        )

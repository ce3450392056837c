"""
Consent Engine

Orchestrates one consent submission end to end:

    validate + classify -> widget lookup -> quota gate -> reconcile
    -> match -> notice snapshot -> (consent id on create) -> write

ARCHITECTURE: Every collaborator is constructor-injected. The engine is
built once per process (application lifespan) and holds no per-request
state, so one instance serves all concurrent requests.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from consentry.config.settings import Settings
from consentry.domain.enums import MatchAction
from consentry.domain.exceptions import WidgetNotFoundError
from consentry.domain.models import (
    BestEffortOutcome,
    ConsentDetails,
    ConsentMetadata,
    ConsentRecord,
    ConsentSubmission,
    WidgetConfig,
)
from consentry.infrastructure.database.repositories.interfaces import (
    ConsentRecordStore,
    PreferenceStore,
    SubscriptionDirectory,
    WidgetDirectory,
)
from consentry.infrastructure.metrics import track_submission
from consentry.services.identifiers.consent_id import ConsentIdGenerator
from consentry.services.identity.device_classifier import DeviceClassifier, RequestSignals
from consentry.services.identity.visitor_identity import VisitorIdentity
from consentry.services.matching.record_matcher import MatchQuery, MatchResult, RecordMatcher
from consentry.services.notice.renderer import DefaultNoticeRenderer, NoticeRenderer
from consentry.services.notice.snapshot_builder import NoticeSnapshotBuilder
from consentry.services.quota.entitlements import EntitlementProvider, StoreEntitlementProvider
from consentry.services.quota.quota_controller import AdmissionDecision, QuotaController
from consentry.services.reconciliation.status_reconciler import ReconciledStatus, StatusReconciler
from consentry.services.recording.record_writer import RecordDraft, RecordWriter
from consentry.services.validation.input_validator import InputValidator, clamp_consent_duration
from consentry.config.logging_config import get_logger

logger = get_logger(__name__)

SUCCESS_MESSAGE = "Consent recorded successfully"


@dataclass(frozen=True)
class ConsentRecordingResult:
    """
    Outcome of a successful submission.

    Attributes:
        record: Record as written
        operation: CREATE or UPDATE
        reconciled: Status reconciliation result
        match: Matcher decision
        admission: Quota gate decision
        snapshot_outcome: Notice snapshot step outcome
        projection_outcome: Preference projection sync outcome
    """

    record: ConsentRecord
    operation: MatchAction
    reconciled: ReconciledStatus
    match: MatchResult
    admission: AdmissionDecision
    snapshot_outcome: BestEffortOutcome
    projection_outcome: BestEffortOutcome

    def to_response(self) -> dict:
        """Wire body returned to the widget."""
        return {
            "success": True,
            "consentId": str(self.record.id),
            "visitorId": self.record.visitor_id,
            "expiresAt": self.record.expires_at.isoformat(),
            "message": SUCCESS_MESSAGE,
        }


class ConsentEngine:
    """
    Consent record reconciliation pipeline.

    Usage:
        engine = build_consent_engine(settings, records, preferences, widgets, subscriptions)
        result = await engine.submit(payload, RequestSignals.from_headers(request.headers))
    """

    def __init__(
        self,
        *,
        validator: InputValidator,
        classifier: DeviceClassifier,
        widgets: WidgetDirectory,
        quota: QuotaController,
        reconciler: StatusReconciler,
        matcher: RecordMatcher,
        snapshots: NoticeSnapshotBuilder,
        writer: RecordWriter,
        default_duration_days: int = 365,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._validator = validator
        self._classifier = classifier
        self._widgets = widgets
        self._quota = quota
        self._reconciler = reconciler
        self._matcher = matcher
        self._snapshots = snapshots
        self._writer = writer
        self._default_duration_days = default_duration_days
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @track_submission
    async def submit(
        self,
        payload: Any,
        signals: Optional[RequestSignals] = None,
    ) -> ConsentRecordingResult:
        """
        Process one consent submission.

        Args:
            payload: Decoded JSON body
            signals: Request header signals

        Returns:
            ConsentRecordingResult for the written record

        Raises:
            ConsentEngineError: Any typed pipeline failure
        """
        submission = self._validator.validate(payload)
        metadata = self._classifier.classify(signals or RequestSignals(), submission.metadata)

        widget = await self._widgets.get_active_widget(submission.widget_id)
        if widget is None:
            logger.info("Submission for unknown or inactive widget", widget_id=submission.widget_id)
            raise WidgetNotFoundError(submission.widget_id)

        admission = await self._quota.admit(widget.user_id)

        reconciled = self._reconciler.reconcile(
            submission.claimed_status,
            submission.accepted_activities,
            submission.rejected_activities,
        )

        identity = VisitorIdentity.from_submission(submission)
        match = await self._matcher.decide(MatchQuery(
            widget_id=widget.widget_id,
            visitor_id=identity.visitor_id,
            status=reconciled.status,
            accepted=tuple(submission.accepted_activities),
            rejected=tuple(submission.rejected_activities),
            email_hash=identity.email_hash,
            page_url=submission.page_url,
        ))

        snapshot_result = await self._snapshots.build(widget)

        details = self._build_details(submission, metadata)
        details.attach_snapshot(snapshot_result.snapshot)

        draft = RecordDraft(
            widget=widget,
            identity=identity,
            status=reconciled.status,
            accepted=list(submission.accepted_activities),
            rejected=list(submission.rejected_activities),
            details=details,
            duration_days=self._duration_days(submission, widget),
            revocation_reason=submission.revocation_reason,
        )
        written = await self._writer.write(draft, match)

        return ConsentRecordingResult(
            record=written.record,
            operation=written.operation,
            reconciled=reconciled,
            match=match,
            admission=admission,
            snapshot_outcome=snapshot_result.outcome,
            projection_outcome=written.projection_outcome,
        )

    def _duration_days(self, submission: ConsentSubmission, widget: WidgetConfig) -> int:
        """Submission override, then widget default, then service default."""
        return (
            submission.consent_duration
            or clamp_consent_duration(widget.consent_duration_default)
            or self._default_duration_days
        )

    def _build_details(
        self,
        submission: ConsentSubmission,
        metadata: ConsentMetadata,
    ) -> ConsentDetails:
        timestamp = self._clock().isoformat()
        activity_consents = {
            activity_id: {"status": "accepted", "timestamp": timestamp}
            for activity_id in submission.accepted_activities
        }
        activity_consents.update({
            activity_id: {"status": "rejected", "timestamp": timestamp}
            for activity_id in submission.rejected_activities
        })
        return ConsentDetails(
            activity_consents=activity_consents,
            accepted_purpose_consents=dict(submission.accepted_purpose_consents),
            rejected_purpose_consents=dict(submission.rejected_purpose_consents),
            activity_purpose_consents=dict(submission.activity_purpose_consents),
            rule_context=submission.rule_context,
            page_url=submission.page_url,
            metadata=metadata,
        )


def build_consent_engine(
    settings: Settings,
    records: ConsentRecordStore,
    preferences: PreferenceStore,
    widgets: WidgetDirectory,
    subscriptions: SubscriptionDirectory,
    *,
    renderer: Optional[NoticeRenderer] = None,
    entitlements: Optional[EntitlementProvider] = None,
    id_generator: Optional[ConsentIdGenerator] = None,
    clock: Optional[Callable[[], datetime]] = None,
    projection_wait=None,
) -> ConsentEngine:
    """
    Wire a ConsentEngine from its stores and settings.

    Args:
        settings: Application settings
        records: Consent record store
        preferences: Preference projection store
        widgets: Widget directory
        subscriptions: Subscription directory (entitlements)
        renderer: Notice renderer, defaults to DefaultNoticeRenderer
        entitlements: Entitlement provider override
        id_generator: Consent id generator override
        clock: Source of "now" (UTC) shared by every step
        projection_wait: tenacity wait between projection retries

    Returns:
        Ready-to-use ConsentEngine
    """
    consent = settings.consent
    provider = entitlements or StoreEntitlementProvider(subscriptions, records, clock=clock)

    return ConsentEngine(
        validator=InputValidator(max_activities=consent.max_activities),
        classifier=DeviceClassifier(),
        widgets=widgets,
        quota=QuotaController(
            provider,
            enabled=settings.quota.enabled,
            fail_open=settings.quota.fail_open,
        ),
        reconciler=StatusReconciler(),
        matcher=RecordMatcher.default(records, scan_limit=consent.page_match_scan_limit),
        snapshots=NoticeSnapshotBuilder(
            widgets,
            renderer or DefaultNoticeRenderer(),
            consent.notice_version,
            clock=clock,
        ),
        writer=RecordWriter(
            records,
            preferences,
            consent,
            id_generator=id_generator,
            clock=clock,
            projection_wait=projection_wait,
        ),
        default_duration_days=consent.default_duration_days,
        clock=clock,
    )

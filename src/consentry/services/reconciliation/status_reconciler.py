"""
Status Reconciler

Derives the authoritative consent status from the activity selection.

The status claimed by the widget is a client-computed hint; the accepted
and rejected activity sets are ground truth. Minor mismatches are
corrected, a claim with no corroborating selection at all is rejected.

Rules (first match wins):
1. revoked passes through, no activity requirement
2. accepted with no accepted activities -> rejected if any rejected, else error
3. rejected with no rejected activities -> accepted if any accepted, else error
4. partial with one side empty -> the non-empty side, both empty -> error
5. otherwise the claim stands
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from consentry.domain.enums import ConsentStatus
from consentry.domain.exceptions import InvalidConsentActivitiesError
from consentry.infrastructure.metrics import track_status_adjustment
from consentry.config.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReconciledStatus:
    """
    Result of reconciliation.

    Attributes:
        status: Authoritative status
        claimed: Status the widget sent
        adjusted: Whether the claim was overridden
        reason: Why it was overridden
    """

    status: ConsentStatus
    claimed: ConsentStatus
    adjusted: bool = False
    reason: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "claimed": self.claimed.value,
            "adjusted": self.adjusted,
            "reason": self.reason,
        }


class StatusReconciler:
    """
    Single home for status precedence rules.

    Usage:
        reconciler = StatusReconciler()
        result = reconciler.reconcile(ConsentStatus.PARTIAL, accepted, rejected)
    """

    def reconcile(
        self,
        claimed: ConsentStatus,
        accepted: Sequence[str],
        rejected: Sequence[str],
    ) -> ReconciledStatus:
        """
        Reconcile a claimed status with the activity selection.

        Raises:
            InvalidConsentActivitiesError: If no activity supports the claim
        """
        result = self._apply_rules(claimed, bool(accepted), bool(rejected))

        if result.adjusted:
            track_status_adjustment(claimed.value, result.status.value)
            logger.info(
                "Consent status adjusted",
                claimed=claimed.value,
                derived=result.status.value,
                reason=result.reason,
            )
        return result

    def _apply_rules(
        self,
        claimed: ConsentStatus,
        has_accepted: bool,
        has_rejected: bool,
    ) -> ReconciledStatus:
        if claimed == ConsentStatus.REVOKED:
            return ReconciledStatus(status=claimed, claimed=claimed)

        if claimed == ConsentStatus.ACCEPTED and not has_accepted:
            if has_rejected:
                return self._adjusted(
                    claimed,
                    ConsentStatus.REJECTED,
                    "accepted claimed but only rejected activities present",
                )
            raise self._no_signal(claimed)

        if claimed == ConsentStatus.REJECTED and not has_rejected:
            if has_accepted:
                return self._adjusted(
                    claimed,
                    ConsentStatus.ACCEPTED,
                    "rejected claimed but only accepted activities present",
                )
            raise self._no_signal(claimed)

        if claimed == ConsentStatus.PARTIAL and not (has_accepted and has_rejected):
            if has_accepted:
                return self._adjusted(
                    claimed,
                    ConsentStatus.ACCEPTED,
                    "partial claimed but no rejected activities present",
                )
            if has_rejected:
                return self._adjusted(
                    claimed,
                    ConsentStatus.REJECTED,
                    "partial claimed but no accepted activities present",
                )
            raise self._no_signal(claimed)

        return ReconciledStatus(status=claimed, claimed=claimed)

    @staticmethod
    def _adjusted(
        claimed: ConsentStatus,
        status: ConsentStatus,
        reason: str,
    ) -> ReconciledStatus:
        return ReconciledStatus(status=status, claimed=claimed, adjusted=True, reason=reason)

    @staticmethod
    def _no_signal(claimed: ConsentStatus) -> InvalidConsentActivitiesError:
        return InvalidConsentActivitiesError(
            f"Consent status '{claimed.value}' requires at least one accepted "
            "or rejected activity",
            details={"claimedStatus": claimed.value},
        )

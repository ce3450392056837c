"""
Quota Admission Controller

Gates every submission on the widget owner's monthly consent allowance.
Runs before anything is written; a denial stops the pipeline.

No reservation is taken, so concurrent submissions may overshoot the
limit slightly.
"""

from dataclasses import dataclass
from typing import Optional

from consentry.domain.exceptions import ConsentLimitExceededError
from consentry.domain.models import Entitlements, QuotaUsage
from consentry.infrastructure.metrics import QUOTA_CHECK_ERRORS_TOTAL, track_quota_denial
from consentry.services.quota.entitlements import EntitlementProvider
from consentry.config.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AdmissionDecision:
    """
    Outcome of the quota gate for an admitted submission.

    Attributes:
        checked: False when the gate was disabled or the lookup failed open
        entitlements: Tenant entitlements, when resolved
        usage: Current-month usage, when resolved
    """

    checked: bool
    entitlements: Optional[Entitlements] = None
    usage: Optional[QuotaUsage] = None


class QuotaController:
    """
    Tenant-scoped admission control.

    Usage:
        controller = QuotaController(provider)
        decision = await controller.admit(widget.user_id)
    """

    def __init__(
        self,
        provider: EntitlementProvider,
        *,
        enabled: bool = True,
        fail_open: bool = True,
    ) -> None:
        """
        Initialize the controller.

        Args:
            provider: Entitlement/usage collaborator
            enabled: If False, every submission is admitted unchecked
            fail_open: Admit when the lookup itself errors
        """
        self._provider = provider
        self._enabled = enabled
        self._fail_open = fail_open

    async def admit(self, user_id: str) -> AdmissionDecision:
        """
        Admit or deny a submission for the tenant `user_id`.

        Raises:
            ConsentLimitExceededError: If the tenant is at or over its limit
        """
        if not self._enabled:
            return AdmissionDecision(checked=False)

        try:
            entitlements = await self._provider.get_entitlements(user_id)
            usage = await self._provider.check_consent_quota(user_id, entitlements)
        except Exception as e:
            if not self._fail_open:
                raise
            QUOTA_CHECK_ERRORS_TOTAL.inc()
            logger.error(
                "Entitlement lookup failed; admitting submission",
                tenant_id=user_id,
                error=str(e),
            )
            return AdmissionDecision(checked=False)

        if not usage.allowed:
            track_quota_denial(entitlements.plan)
            logger.warning(
                "Consent quota exceeded",
                tenant_id=user_id,
                plan=entitlements.plan,
                used=usage.used,
                limit=usage.limit,
            )
            raise ConsentLimitExceededError(
                used=usage.used,
                limit=usage.limit,
                plan=entitlements.plan,
            )

        return AdmissionDecision(checked=True, entitlements=entitlements, usage=usage)

"""Status reconciliation services package."""

from consentry.services.reconciliation.status_reconciler import (
    ReconciledStatus,
    StatusReconciler,
)

__all__ = ["ReconciledStatus", "StatusReconciler"]

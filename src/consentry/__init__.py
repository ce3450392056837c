"""
Consentry - Consent Record Reconciliation Engine

Backend service that turns consent-widget submissions into durable,
auditable consent records with a per-activity preference projection.

IMPORTANT: Consent records are legal evidence. Records are updated in
place only when the same visitor re-submits an identical choice; any
changed choice produces a new record so history is preserved.
"""

__version__ = "0.1.0"
__author__ = "Consentry Engineering Team"

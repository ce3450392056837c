"""
Consentry Services Layer

Consent pipeline components, leaves first: validation, identity,
quota, reconciliation, matching, notice, identifiers, recording.
"""

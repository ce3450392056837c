"""Consent recording services package."""

from consentry.services.recording.record_writer import RecordDraft, RecordWriter, WriteResult
from consentry.services.recording.consent_engine import (
    ConsentEngine,
    ConsentRecordingResult,
    build_consent_engine,
)

__all__ = [
    # Writer
    "RecordDraft",
    "RecordWriter",
    "WriteResult",
    # Pipeline
    "ConsentEngine",
    "ConsentRecordingResult",
    "build_consent_engine",
]

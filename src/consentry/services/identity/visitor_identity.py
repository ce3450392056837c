"""
Visitor Identity

Identity signals used for record matching: the anonymous visitor token
and, when present, a one-way hash of the verified e-mail.

SECURITY: The plaintext e-mail is stored for the tenant only. Matching
and logging use the hash.
"""

import hashlib
from dataclasses import dataclass
from typing import Optional

from consentry.domain.models import ConsentSubmission


def normalize_email(email: str) -> str:
    return email.strip().lower()


def hash_email(email: str) -> str:
    """SHA-256 hex digest of the normalized e-mail."""
    return hashlib.sha256(normalize_email(email).encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class VisitorIdentity:
    """Identity signals carried by a submission."""

    visitor_id: str
    email: Optional[str] = None
    email_hash: Optional[str] = None

    @property
    def is_verified(self) -> bool:
        return self.email_hash is not None

    @classmethod
    def from_submission(cls, submission: ConsentSubmission) -> "VisitorIdentity":
        if not submission.visitor_email:
            return cls(visitor_id=submission.visitor_id)
        email = normalize_email(submission.visitor_email)
        return cls(
            visitor_id=submission.visitor_id,
            email=email,
            email_hash=hash_email(email),
        )

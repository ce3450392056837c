"""
Consent Engine Exceptions

Every failure that reaches a widget client carries a stable `code`
so embedded scripts can branch on it without parsing messages.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation failure."""

    field: str
    message: str
    code: str

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message, "code": self.code}


class ConsentEngineError(Exception):
    """
    Base exception for consent pipeline failures.

    Attributes:
        code: Stable machine-readable error code
        message: Human-readable explanation (safe to return to clients)
        status_code: HTTP status the API layer responds with
        details: Optional structured details
    """

    code: str = "INTERNAL_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    def to_dict(self) -> dict:
        """Serialize into the wire error body."""
        body: dict[str, Any] = {
            "success": False,
            "error": self.message,
            "code": self.code,
        }
        if self.details is not None:
            body["details"] = self.details
        return body


class InvalidPayloadError(ConsentEngineError):
    """Request body is not valid JSON (or not a JSON object)."""

    code = "INVALID_JSON"
    status_code = 400


class SubmissionValidationError(ConsentEngineError):
    """Submission failed schema-level checks."""

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, errors: list[FieldError]) -> None:
        super().__init__(
            "Consent submission failed validation",
            details=[error.to_dict() for error in errors],
        )
        self.errors = errors


class TooManyActivitiesError(ConsentEngineError):
    """An activity array exceeded the per-request maximum."""

    code = "TOO_MANY_ACTIVITIES"
    status_code = 400

    def __init__(self, field: str, count: int, limit: int) -> None:
        super().__init__(
            f"{field} contains {count} entries; at most {limit} are allowed",
            details={"field": field, "count": count, "limit": limit},
        )


class InvalidConsentActivitiesError(ConsentEngineError):
    """Claimed status has no corroborating activity selection."""

    code = "INVALID_CONSENT_ACTIVITIES"
    status_code = 400


class WidgetNotFoundError(ConsentEngineError):
    """Widget does not exist or is inactive."""

    code = "INVALID_WIDGET"
    status_code = 404

    def __init__(self, widget_id: str) -> None:
        super().__init__("Invalid widget ID or widget is not active")
        self.widget_id = widget_id


class ConsentLimitExceededError(ConsentEngineError):
    """
    Tenant's monthly consent quota is exhausted.

    Terminal: retrying without a plan change will be denied again.
    """

    code = "CONSENT_LIMIT_EXCEEDED"
    status_code = 403

    def __init__(self, used: int, limit: Optional[int], plan: str) -> None:
        super().__init__(
            "Monthly consent limit reached for this widget's account",
            details={"used": used, "limit": limit, "plan": plan},
        )
        self.used = used
        self.limit = limit
        self.plan = plan


class ConstraintViolationError(ConsentEngineError):
    """Record integrity rule rejected the write (status/activities disagree)."""

    code = "CONSTRAINT_VIOLATION"
    status_code = 400

    def __init__(self, violations: list[str]) -> None:
        super().__init__(
            "Consent record violates integrity rules; status and activities disagree",
            details={"violations": violations},
        )
        self.violations = violations


class RecordWriteError(ConsentEngineError):
    """Primary record write failed (code is UPDATE_FAILED or CREATE_FAILED)."""

    status_code = 500

    def __init__(self, operation: str) -> None:
        code = "UPDATE_FAILED" if operation == "update" else "CREATE_FAILED"
        super().__init__(f"Failed to {operation} consent record", code=code)
        self.operation = operation

"""Domain error taxonomy for the assessment engine.

Every operation surfaces failures synchronously through one of these types.
Each carries a stable `code` (mapped to an HTTP status in
`assessment_service.http.error_mapping`), a human-readable `detail` and an
`extra` mapping of structured facts, e.g. the computed weight total.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class AssessmentError(Exception):
    code = "ASSESSMENT_ERROR"

    def __init__(self, detail: str, *, code: Optional[str] = None, **extra: Any) -> None:
        super().__init__(detail)
        self.detail = detail
        if code:
            self.code = code
        self.extra: Dict[str, Any] = dict(extra)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "detail": self.detail, **self.extra}


class ValidationError(AssessmentError):
    """Bad input shape: empty text, weight out of range, weight sum != 100."""

    code = "VALIDATION_FAILED"


class NotFound(AssessmentError):
    code = "NOT_FOUND"


class ConflictError(AssessmentError):
    """Active-version invariant violation or a lost compare-and-set race."""

    code = "ACTIVE_VERSION_CONFLICT"


class ImmutableFieldError(AssessmentError):
    code = "IMMUTABLE_FIELD"


class InvalidAnswerReference(AssessmentError):
    code = "INVALID_ANSWER_REFERENCE"


class EmptySession(AssessmentError):
    code = "EMPTY_SESSION"


__all__ = [
    "AssessmentError",
    "ValidationError",
    "NotFound",
    "ConflictError",
    "ImmutableFieldError",
    "InvalidAnswerReference",
    "EmptySession",
]

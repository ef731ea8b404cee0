"""Central error mapping for problem+json responses.

Single source of truth for mapping domain error codes to HTTP statuses and
problem titles. Route and handler modules must import from here instead of
hardcoding strings or numbers.
"""

from __future__ import annotations

VALIDATION_FAILED = {"code": "VALIDATION_FAILED", "status": 422, "title": "Unprocessable Entity"}
WEIGHT_SUM_INVALID = {"code": "WEIGHT_SUM_INVALID", "status": 422, "title": "Unprocessable Entity"}
NOT_FOUND = {"code": "NOT_FOUND", "status": 404, "title": "Not Found"}
ACTIVE_VERSION_CONFLICT = {"code": "ACTIVE_VERSION_CONFLICT", "status": 409, "title": "Conflict"}
REVISION_CONFLICT = {"code": "REVISION_CONFLICT", "status": 409, "title": "Conflict"}
IMMUTABLE_FIELD = {"code": "IMMUTABLE_FIELD", "status": 409, "title": "Conflict"}
INVALID_ANSWER_REFERENCE = {"code": "INVALID_ANSWER_REFERENCE", "status": 422, "title": "Unprocessable Entity"}
EMPTY_SESSION = {"code": "EMPTY_SESSION", "status": 422, "title": "Unprocessable Entity"}

# Optimistic concurrency on question PATCH
PRE_IF_MATCH_ETAG_MISMATCH = {"code": "PRE_IF_MATCH_ETAG_MISMATCH", "status": 412, "title": "Precondition Failed"}

ERROR_MAP = {
    entry["code"]: entry
    for entry in (
        VALIDATION_FAILED,
        WEIGHT_SUM_INVALID,
        NOT_FOUND,
        ACTIVE_VERSION_CONFLICT,
        REVISION_CONFLICT,
        IMMUTABLE_FIELD,
        INVALID_ANSWER_REFERENCE,
        EMPTY_SESSION,
        PRE_IF_MATCH_ETAG_MISMATCH,
    )
}

_FALLBACK = {"code": "INTERNAL_ERROR", "status": 500, "title": "Internal Server Error"}


def lookup(code: str) -> dict:
    """Return the mapping entry for `code`, falling back to a 500 entry."""
    return ERROR_MAP.get(code, _FALLBACK)


__all__ = ["ERROR_MAP", "lookup", "PRE_IF_MATCH_ETAG_MISMATCH"]

"""ETag computation and If-Match comparison helpers.

Question ETags are weak validators over the question id and its store
revision, so any write (text, answers, status) yields a new tag.
"""

from __future__ import annotations

import hashlib
import logging

logger = logging.getLogger(__name__)


def compute_question_etag(question_id: str, revision: int) -> str:
    """Token shape: "{question_id}|{revision}" -> SHA1 -> W/"…"."""
    token = f"{question_id}|{int(revision)}".encode("utf-8")
    return f'W/"{hashlib.sha1(token).hexdigest()}"'


def _normalize_etag_token(value: str) -> str:
    v = value.strip()
    if v[:2].upper() == "W/":
        v = v[2:].strip()
    if len(v) >= 2 and v[0] == '"' and v[-1] == '"':
        v = v[1:-1]
    return v


def normalize_if_match(value: str | None) -> str:
    """Return the opaque token of an ETag or If-Match value (weak prefix and quotes stripped)."""
    if value is None:
        return ""
    return _normalize_etag_token(value)


def compare_etag(current: str | None, if_match: str | None) -> bool:
    """Return True when the If-Match header matches the current entity tag.

    Any-match semantics over comma-separated lists; `*` matches any existing
    entity. Empty or missing headers never match.
    """
    if if_match is None or current is None:
        return False
    s = if_match.strip()
    if not s:
        return False
    if s == "*":
        return True
    current_norm = _normalize_etag_token(current)
    tokens = [_normalize_etag_token(t) for t in s.split(",") if t.strip()]
    matched = current_norm in tokens
    logger.debug("etag.compare tokens=%s matched=%s", len(tokens), matched)
    return matched


__all__ = ["compute_question_etag", "normalize_if_match", "compare_etag"]

"""Key layout of the key-value store."""

from __future__ import annotations

QUESTION_PREFIX = "question/"
VERSION_META_PREFIX = "version_meta/"
ACTIVE_VERSION_KEY = "registry/active_version"
QUESTION_SEQUENCE_KEY = "sequence/question"


def question_key(question_id: str) -> str:
    return f"{QUESTION_PREFIX}{question_id}"


def version_meta_key(version_id: str) -> str:
    return f"{VERSION_META_PREFIX}{version_id}"

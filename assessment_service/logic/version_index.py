"""Version identifiers and the version -> questions index.

Versions are not stored records: they are the groups formed by the
`version` field of persisted questions. The index is rebuilt from the
question documents on each read so it can never drift from them.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Tuple

from assessment_service.logic.errors import ValidationError
from assessment_service.models.question import Question


def normalize_version_id(raw: Any) -> str:
    """Return the canonical string form of a version id (1 and "1" are equal)."""
    if raw is None or isinstance(raw, bool):
        raise ValidationError("version must be a number or a non-empty string", path="$.version")
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    token = str(raw).strip()
    if not token:
        raise ValidationError("version must be a number or a non-empty string", path="$.version")
    return token


def version_sort_key(version_id: str) -> Tuple[int, float, str]:
    """Finite numeric ids sort numerically and before string ids ("nan", "inf" are strings)."""
    try:
        number = float(version_id)
    except ValueError:
        return (1, 0.0, version_id)
    if not math.isfinite(number):
        return (1, 0.0, version_id)
    return (0, number, version_id)


def build_version_index(questions: Iterable[Question]) -> Dict[str, List[Question]]:
    index: Dict[str, List[Question]] = {}
    for question in sorted(questions, key=lambda q: q.seq):
        index.setdefault(question.version, []).append(question)
    return {v: index[v] for v in sorted(index, key=version_sort_key)}


__all__ = ["normalize_version_id", "version_sort_key", "build_version_index"]

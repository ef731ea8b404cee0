"""Answer-set validation for weighted questions.

A question's answer options carry integer percentage weights in [0, 100]
which must add up to exactly 100. The check runs whenever a full answer set
is written; reads never re-validate.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping

from assessment_service.logic.errors import ValidationError
from assessment_service.models.question import AnswerOptionIn

REQUIRED_TOTAL = 100
WEIGHT_SUM_INVALID = "WEIGHT_SUM_INVALID"


def coerce_answer(raw: Any, index: int) -> AnswerOptionIn:
    """Accept an AnswerOptionIn, a mapping or a (text, weight) pair."""
    if isinstance(raw, AnswerOptionIn):
        return raw
    if isinstance(raw, Mapping):
        text, weight = raw.get("text"), raw.get("weight")
    elif isinstance(raw, (tuple, list)) and len(raw) == 2:
        text, weight = raw
    else:
        raise ValidationError(
            f"answers[{index}] must be a (text, weight) pair",
            path=f"$.answers[{index}]",
        )
    if isinstance(weight, bool) or not isinstance(weight, int):
        raise ValidationError(
            f"answers[{index}].weight must be an integer percentage",
            path=f"$.answers[{index}].weight",
        )
    return AnswerOptionIn(text=str(text) if text is not None else "", weight=weight)


def validate_answer_set(answers: Iterable[Any]) -> List[AnswerOptionIn]:
    """Validate a complete answer set and return it normalised.

    Raises ValidationError when the set is empty, an answer text is blank, a
    weight falls outside [0, 100], or the weights do not total 100. The
    weight-sum failure carries the computed `total`.
    """
    if answers is None:
        raise ValidationError("answers must not be empty", path="$.answers")
    normalised = [coerce_answer(raw, i) for i, raw in enumerate(answers)]
    if not normalised:
        raise ValidationError("answers must not be empty", path="$.answers")

    for i, answer in enumerate(normalised):
        if not answer.text.strip():
            raise ValidationError(f"answers[{i}].text must not be empty", path=f"$.answers[{i}].text")
        if not 0 <= answer.weight <= REQUIRED_TOTAL:
            raise ValidationError(
                f"answers[{i}].weight must be between 0 and 100, got {answer.weight}",
                path=f"$.answers[{i}].weight",
            )

    total = sum(a.weight for a in normalised)
    if total != REQUIRED_TOTAL:
        raise ValidationError(
            f"total must be 100%, currently {total}%",
            code=WEIGHT_SUM_INVALID,
            total=total,
        )
    return [AnswerOptionIn(text=a.text.strip(), weight=a.weight) for a in normalised]


def validate_question_text(text: Any) -> str:
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("question text must not be empty", path="$.text")
    return text.strip()


__all__ = [
    "REQUIRED_TOTAL",
    "WEIGHT_SUM_INVALID",
    "coerce_answer",
    "validate_answer_set",
    "validate_question_text",
]

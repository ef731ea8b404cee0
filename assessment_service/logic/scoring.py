"""Session scoring.

The score of a completed session is the arithmetic mean of the weights of
the selected answers over the questions actually answered. Unanswered
questions count in neither numerator nor denominator, so the score stays in
[0, 100] whatever the number of questions. The mean is then classified by
the routing policy.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from assessment_service.logic.errors import EmptySession, InvalidAnswerReference
from assessment_service.logic.routing_policy import RoutingPolicy
from assessment_service.logic.version_index import normalize_version_id
from assessment_service.models.question import Question
from assessment_service.models.scoring import RespondentSession, ScoringResult

logger = logging.getLogger(__name__)

_DEFAULT_POLICY = RoutingPolicy()


def score_session(
    session: RespondentSession,
    questions: Iterable[Question],
    policy: Optional[RoutingPolicy] = None,
) -> ScoringResult:
    """Score `session` against a snapshot of its version's questions.

    Only questions of `session.version_id` with `in_assessment` set are
    eligible. Pure: nothing is read from or written to a store.
    """
    version_id = normalize_version_id(session.version_id)
    eligible: Dict[str, Question] = {
        q.id: q for q in questions if q.version == version_id and q.in_assessment
    }
    if not session.answers:
        raise EmptySession("session has no answers to score", version_id=version_id)

    weights = []
    seen: set[str] = set()
    for position, item in enumerate(session.answers):
        question = eligible.get(item.question_id)
        if question is None:
            raise InvalidAnswerReference(
                f"question {item.question_id} is not an in-assessment question of version {version_id}",
                question_id=item.question_id,
                position=position,
            )
        if item.question_id in seen:
            raise InvalidAnswerReference(
                f"question {item.question_id} is answered more than once",
                question_id=item.question_id,
                position=position,
            )
        answer = question.answer_by_id(item.answer_id)
        if answer is None:
            raise InvalidAnswerReference(
                f"answer {item.answer_id} does not belong to question {item.question_id}",
                question_id=item.question_id,
                answer_id=item.answer_id,
                position=position,
            )
        seen.add(item.question_id)
        weights.append(answer.weight)

    score = sum(weights) / len(weights)
    risk_level, routing_outcome = (policy or _DEFAULT_POLICY).classify(score)
    logger.debug(
        "session.score version=%s answered=%s score=%.3f risk=%s",
        version_id,
        len(weights),
        score,
        risk_level.value,
    )
    return ScoringResult(
        score=score,
        risk_level=risk_level,
        routing_outcome=routing_outcome,
        version_id=version_id,
        answered_count=len(weights),
    )


__all__ = ["score_session"]

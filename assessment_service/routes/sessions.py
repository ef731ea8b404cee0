"""Scoring entry point and routing-policy introspection."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from assessment_service.logic import events
from assessment_service.logic.errors import NotFound
from assessment_service.logic.question_bank import QuestionBank
from assessment_service.logic.routing_policy import RoutingPolicy
from assessment_service.logic.scoring import score_session
from assessment_service.logic.version_index import normalize_version_id
from assessment_service.models.scoring import RespondentSession
from assessment_service.routes.dependencies import get_question_bank, get_routing_policy

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/sessions/score")
def score(
    session: RespondentSession,
    bank: QuestionBank = Depends(get_question_bank),
    policy: RoutingPolicy = Depends(get_routing_policy),
) -> dict:
    """Score a completed session; the result is returned, not stored."""
    version_id = normalize_version_id(session.version_id)
    snapshot = bank.list_questions(version=version_id)
    if not snapshot:
        raise NotFound(f"version {version_id} not found", version_id=version_id)
    result = score_session(session, snapshot, policy)
    logger.info(
        "session.score.success version=%s answered=%s risk=%s",
        result.version_id,
        result.answered_count,
        result.risk_level.value,
    )
    events.publish(
        events.SESSION_SCORED,
        {"version_id": result.version_id, "score": result.score, "routing_outcome": result.routing_outcome.value},
    )
    return result.model_dump(mode="json")


@router.get("/routing-policy")
def routing_policy(policy: RoutingPolicy = Depends(get_routing_policy)) -> dict:
    return {"bands": [b.model_dump(mode="json") for b in policy.as_bands()]}


__all__ = ["router"]

"""Question authoring routes.

Thin HTTP adapters over `QuestionBank`: payload parsing, ETag/If-Match
handling and status codes. Domain errors propagate to the problem+json
handlers registered in `create_app()`.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Response, status
from fastapi.responses import JSONResponse

from assessment_service.http.error_mapping import PRE_IF_MATCH_ETAG_MISMATCH
from assessment_service.http.problem import problem_response
from assessment_service.logic.etag import compare_etag, compute_question_etag
from assessment_service.logic.question_bank import UNSET, QuestionBank
from assessment_service.logic.version_registry import VersionRegistry
from assessment_service.models.question import AssessmentStatusUpdate, Question, QuestionCreate, QuestionUpdate
from assessment_service.routes.dependencies import get_question_bank, get_version_registry

router = APIRouter(prefix="/questions")
logger = logging.getLogger(__name__)


def _question_body(question: Question) -> dict:
    return question.model_dump(mode="json")


def _emit_etag(response: Response, question: Question) -> None:
    response.headers["ETag"] = compute_question_etag(question.id, question.revision)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_question(
    payload: QuestionCreate,
    response: Response,
    bank: QuestionBank = Depends(get_question_bank),
) -> dict:
    question = bank.create_question(
        payload.version,
        payload.text,
        category=payload.category,
        answers=payload.answers,
        in_assessment=payload.in_assessment,
    )
    _emit_etag(response, question)
    response.headers["Location"] = f"/api/v1/questions/{question.id}"
    return _question_body(question)


@router.get("")
def list_questions(
    version: Optional[str] = None,
    category: Optional[str] = None,
    in_assessment: Optional[bool] = None,
    bank: QuestionBank = Depends(get_question_bank),
) -> dict:
    questions = bank.list_questions(version=version, category=category, in_assessment=in_assessment)
    return {"questions": [_question_body(q) for q in questions], "count": len(questions)}


@router.get("/assessment")
def list_active_assessment_questions(
    registry: VersionRegistry = Depends(get_version_registry),
) -> dict:
    """Questions a respondent is shown: in-assessment questions of the active version."""
    questions = registry.active_questions()
    return {
        "version_id": registry.active_version_id(),
        "questions": [_question_body(q) for q in questions],
        "count": len(questions),
    }


@router.get("/{question_id}")
def get_question(
    question_id: str,
    response: Response,
    bank: QuestionBank = Depends(get_question_bank),
) -> dict:
    question = bank.get_question(question_id)
    _emit_etag(response, question)
    return _question_body(question)


@router.patch("/{question_id}", response_model=None)
def update_question(
    question_id: str,
    payload: QuestionUpdate,
    response: Response,
    if_match: Optional[str] = Header(default=None, alias="If-Match"),
    bank: QuestionBank = Depends(get_question_bank),
) -> dict | JSONResponse:
    expected_revision = None
    if if_match is not None:
        current = bank.get_question(question_id)
        current_etag = compute_question_etag(current.id, current.revision)
        if not compare_etag(current_etag, if_match):
            logger.info("question.update.precondition_failed question_id=%s", question_id)
            return problem_response(
                PRE_IF_MATCH_ETAG_MISMATCH["code"],
                "If-Match does not match the current question ETag",
                headers={"ETag": current_etag},
            )
        expected_revision = current.revision

    supplied = payload.model_fields_set
    question = bank.update_question(
        question_id,
        text=payload.text if "text" in supplied else UNSET,
        category=payload.category if "category" in supplied else UNSET,
        answers=payload.answers if "answers" in supplied else UNSET,
        in_assessment=payload.in_assessment if "in_assessment" in supplied else UNSET,
        version=payload.version if "version" in supplied else UNSET,
        expected_revision=expected_revision,
    )
    _emit_etag(response, question)
    return _question_body(question)


@router.patch("/{question_id}/assessment-status")
def update_assessment_status(
    question_id: str,
    payload: AssessmentStatusUpdate,
    response: Response,
    bank: QuestionBank = Depends(get_question_bank),
) -> dict:
    question = bank.set_in_assessment(question_id, payload.in_assessment)
    _emit_etag(response, question)
    return _question_body(question)


@router.delete("/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_question(
    question_id: str,
    bank: QuestionBank = Depends(get_question_bank),
) -> Response:
    bank.delete_question(question_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]

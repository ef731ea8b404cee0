"""Pydantic models for questions and their weighted answer options."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class AnswerOptionIn(BaseModel):
    """Answer option as supplied by an author (ids are assigned on save)."""

    text: str
    weight: int


class AnswerOption(BaseModel):
    id: str
    text: str
    weight: int


class Question(BaseModel):
    id: str
    version: str
    text: str
    category: Optional[str] = None
    in_assessment: bool = True
    # Derived from the registry's active pointer; never persisted
    is_authoritative: bool = False
    answers: List[AnswerOption] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    seq: int = 0
    # Store revision, exposed to HTTP callers through the ETag header only
    revision: int = Field(default=0, exclude=True)

    @property
    def weight_total(self) -> int:
        return sum(a.weight for a in self.answers)

    def answer_by_id(self, answer_id: str) -> Optional[AnswerOption]:
        for answer in self.answers:
            if answer.id == answer_id:
                return answer
        return None

    def to_document(self) -> dict:
        """Return the JSON document persisted for this question."""
        return self.model_dump(mode="json", exclude={"is_authoritative", "revision"})


class QuestionCreate(BaseModel):
    version: Union[int, str]
    text: str
    category: Optional[str] = None
    in_assessment: bool = True
    answers: List[AnswerOptionIn]


class QuestionUpdate(BaseModel):
    """Full-question edit payload.

    `version` is accepted by the schema only so that an attempt to move a
    question can be reported as an immutable-field error rather than being
    silently dropped.
    """

    model_config = ConfigDict(extra="forbid")

    text: Optional[str] = None
    category: Optional[str] = None
    answers: Optional[List[AnswerOptionIn]] = None
    in_assessment: Optional[bool] = None
    version: Optional[Union[int, str]] = None


class AssessmentStatusUpdate(BaseModel):
    in_assessment: bool


__all__ = [
    "AnswerOptionIn",
    "AnswerOption",
    "Question",
    "QuestionCreate",
    "QuestionUpdate",
    "AssessmentStatusUpdate",
]

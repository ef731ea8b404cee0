"""Pydantic models for respondent sessions, routing bands and scoring output."""

from __future__ import annotations

from enum import Enum
from typing import List, Union

from pydantic import BaseModel


class RiskLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class RoutingOutcome(str, Enum):
    EDUCATIONAL = "educational"
    CONSULTATION = "consultation"
    SPECIALIST = "specialist"


class SessionAnswer(BaseModel):
    question_id: str
    answer_id: str


class RespondentSession(BaseModel):
    version_id: Union[int, str]
    answers: List[SessionAnswer]


class RoutingBand(BaseModel):
    min_score: float
    risk_level: RiskLevel
    routing_outcome: RoutingOutcome


class ScoringResult(BaseModel):
    score: float
    risk_level: RiskLevel
    routing_outcome: RoutingOutcome
    version_id: str
    answered_count: int


__all__ = [
    "RiskLevel",
    "RoutingOutcome",
    "SessionAnswer",
    "RespondentSession",
    "RoutingBand",
    "ScoringResult",
]

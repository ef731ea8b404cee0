"""Score-band routing policy.

A declarative, ordered table of `(min_inclusive, (risk_level, routing_outcome))`
bands evaluated top-down; the first band whose lower bound the score reaches
wins. Thresholds come from configuration so they can be retuned without
touching the scoring code.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from assessment_service.logic.errors import ValidationError
from assessment_service.models.scoring import RiskLevel, RoutingBand, RoutingOutcome

logger = logging.getLogger(__name__)

MIN_SCORE = 0.0
MAX_SCORE = 100.0

Classification = Tuple[RiskLevel, RoutingOutcome]

DEFAULT_BANDS: Tuple[Tuple[float, Classification], ...] = (
    (75.0, (RiskLevel.HIGH, RoutingOutcome.SPECIALIST)),
    (25.0, (RiskLevel.MODERATE, RoutingOutcome.CONSULTATION)),
    (0.0, (RiskLevel.LOW, RoutingOutcome.EDUCATIONAL)),
)


class RoutingPolicy:
    def __init__(self, bands: Optional[Iterable[Tuple[float, Classification]]] = None) -> None:
        source = DEFAULT_BANDS if bands is None else bands
        table = [(float(lo), (RiskLevel(label[0]), RoutingOutcome(label[1]))) for lo, label in source]
        if not table:
            raise ValidationError("routing policy needs at least one band")
        thresholds = [lo for lo, _ in table]
        if any(a <= b for a, b in zip(thresholds, thresholds[1:])):
            raise ValidationError(
                "routing bands must be ordered by strictly descending threshold",
                thresholds=thresholds,
            )
        if thresholds[-1] > MIN_SCORE:
            raise ValidationError(
                "the last routing band must start at 0 so every score is covered",
                thresholds=thresholds,
            )
        self.bands: List[Tuple[float, Classification]] = table
        logger.debug("routing_policy.loaded thresholds=%s", thresholds)

    @classmethod
    def from_config(cls, bands: Sequence[RoutingBand]) -> "RoutingPolicy":
        ordered = sorted(bands, key=lambda b: b.min_score, reverse=True)
        return cls((b.min_score, (b.risk_level, b.routing_outcome)) for b in ordered)

    def classify(self, score: float) -> Classification:
        if not MIN_SCORE <= score <= MAX_SCORE:
            raise ValidationError(f"score must be within [0, 100], got {score}", score=score)
        for lower, classification in self.bands:
            if score >= lower:
                return classification
        # Unreachable: the last band starts at 0
        raise ValidationError(f"no routing band covers score {score}", score=score)

    def as_bands(self) -> List[RoutingBand]:
        return [
            RoutingBand(min_score=lo, risk_level=risk, routing_outcome=outcome)
            for lo, (risk, outcome) in self.bands
        ]


__all__ = ["RoutingPolicy", "DEFAULT_BANDS", "Classification"]

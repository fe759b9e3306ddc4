"""Composite score and recommendation tier: the one normative mapping.

Every scoring source (oracle or fallback) is passed through here so that
rankings stay comparable regardless of where the component scores came from.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, Field
from services.servewell_service.models import RecommendationTier, ScoreSource

WEIGHTS = {
    "spiritual_fit": 0.4,
    "skill_fit": 0.3,
    "availability": 0.2,
    "passion": 0.1,
}

# Checked top-down; first threshold met wins
TIER_THRESHOLDS = (
    (0.85, RecommendationTier.HIGHLY_RECOMMENDED),
    (0.65, RecommendationTier.RECOMMENDED),
    (0.40, RecommendationTier.CONSIDER),
)


class MatchScoreResult(BaseModel):
    """Validated score for one opportunity, ready to persist as a Match."""

    opportunity_id: uuid.UUID
    spiritual_fit_score: float = Field(..., ge=0, le=1)
    skill_fit_score: float = Field(..., ge=0, le=1)
    availability_score: float = Field(..., ge=0, le=1)
    passion_score: float = Field(..., ge=0, le=1)
    divine_appointment_score: float = Field(..., ge=0, le=1)
    recommendation_tier: RecommendationTier
    source: ScoreSource
    explanation: Optional[str] = None
    reasons: list[str] = []


def composite_score(
    spiritual_fit: float, skill_fit: float, availability: float, passion: float
) -> float:
    score = (
        WEIGHTS["spiritual_fit"] * spiritual_fit
        + WEIGHTS["skill_fit"] * skill_fit
        + WEIGHTS["availability"] * availability
        + WEIGHTS["passion"] * passion
    )
    return round(score, 4)


def recommendation_tier(score: float) -> RecommendationTier:
    for threshold, tier in TIER_THRESHOLDS:
        if score >= threshold:
            return tier
    return RecommendationTier.NOT_RECOMMENDED


def build_result(
    opportunity_id: uuid.UUID,
    *,
    spiritual_fit: float,
    skill_fit: float,
    availability: float,
    passion: float,
    source: ScoreSource,
    explanation: Optional[str] = None,
    reasons: Optional[list[str]] = None,
) -> MatchScoreResult:
    """Derive composite and tier from component scores and wrap them up."""
    score = composite_score(spiritual_fit, skill_fit, availability, passion)
    return MatchScoreResult(
        opportunity_id=opportunity_id,
        spiritual_fit_score=spiritual_fit,
        skill_fit_score=skill_fit,
        availability_score=availability,
        passion_score=passion,
        divine_appointment_score=score,
        recommendation_tier=recommendation_tier(score),
        source=source,
        explanation=explanation,
        reasons=reasons or [],
    )

"""Deterministic heuristic scorer used whenever the oracle cannot answer.

Component scores are plain set-overlap ratios; availability and passion have
no reliable heuristic so they use configured constants.
"""

from typing import Iterable

from libs.common.config import get_settings
from services.servewell_service.errors import ScoringUnavailableError
from services.servewell_service.models import Opportunity, ScoreSource, VolunteerProfile
from services.servewell_service.scoring.composite import MatchScoreResult, build_result


def _term_set(values: object, field: str) -> set[str]:
    """Normalize a stored tag list to a lowercase set, rejecting malformed data."""
    if values is None:
        return set()
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        raise ScoringUnavailableError(f"Cannot score: {field} is not a list")
    terms = set()
    for value in values:
        if not isinstance(value, str):
            raise ScoringUnavailableError(
                f"Cannot score: {field} contains a non-text value {value!r}"
            )
        term = value.strip().lower()
        if term:
            terms.add(term)
    return terms


def overlap_ratio(have: set[str], required: set[str]) -> float:
    """Share of required terms the volunteer covers; nothing required is a full fit."""
    if not required:
        return 1.0
    return len(have & required) / len(required)


def fallback_score(
    profile: VolunteerProfile, opportunity: Opportunity
) -> MatchScoreResult:
    settings = get_settings()

    gifts = _term_set(profile.spiritual_gifts, "spiritual_gifts")
    skills = _term_set(profile.skills, "skills")
    required_gifts = _term_set(opportunity.required_gifts, "required_gifts")
    required_skills = _term_set(opportunity.required_skills, "required_skills")

    shared_gifts = sorted(gifts & required_gifts)
    shared_skills = sorted(skills & required_skills)

    reasons = []
    if shared_gifts:
        reasons.append(f"Shares gifts: {', '.join(shared_gifts)}")
    if shared_skills:
        reasons.append(f"Brings skills: {', '.join(shared_skills)}")

    return build_result(
        opportunity.id,
        spiritual_fit=overlap_ratio(gifts, required_gifts),
        skill_fit=overlap_ratio(skills, required_skills),
        availability=settings.FALLBACK_AVAILABILITY_SCORE,
        passion=settings.FALLBACK_PASSION_SCORE,
        source=ScoreSource.FALLBACK,
        explanation=(
            f"Heuristic match: {len(shared_gifts)} of {len(required_gifts)} "
            f"required gifts and {len(shared_skills)} of {len(required_skills)} "
            "required skills."
        ),
        reasons=reasons,
    )


def fallback_score_all(
    profile: VolunteerProfile, opportunities: list[Opportunity]
) -> list[MatchScoreResult]:
    return [fallback_score(profile, opportunity) for opportunity in opportunities]

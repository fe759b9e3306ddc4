"""Scoring adapter: oracle call, validation, and fallback.

Failure policy:
- Whole-call failure (no oracle, timeout, provider error, or a body without a
  ``matches`` list) scores every opportunity with the fallback heuristic.
- Per-item failure (unknown opportunity id, non-numeric score, any component
  outside [0, 1]) drops that item only.
- An opportunity scored more than once is ambiguous: every item for it is
  dropped, whichever comes first.
Opportunities left unscored are simply absent from the result.
"""

import asyncio
from typing import Optional

from libs.common.config import get_settings
from libs.common.logging import get_logger
from pydantic import ValidationError
from services.servewell_service.models import Opportunity, ScoreSource, VolunteerProfile
from services.servewell_service.scoring.composite import MatchScoreResult, build_result
from services.servewell_service.scoring.fallback import fallback_score_all
from services.servewell_service.scoring.oracle import (
    OracleMatch,
    ScoringOracle,
    build_oracle_request,
)

logger = get_logger(__name__)


async def score_opportunities(
    profile: VolunteerProfile,
    opportunities: list[Opportunity],
    oracle: Optional[ScoringOracle] = None,
    *,
    timeout: Optional[float] = None,
) -> list[MatchScoreResult]:
    """Score ``opportunities`` for ``profile``, in input order."""
    if not opportunities:
        return []

    settings = get_settings()
    if oracle is None or not settings.SCORING_ORACLE_ENABLED:
        return fallback_score_all(profile, opportunities)

    timeout = timeout if timeout is not None else settings.SCORING_ORACLE_TIMEOUT_SECONDS
    request = build_oracle_request(profile, opportunities)
    try:
        payload = await asyncio.wait_for(oracle.score(request), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(
            "Scoring oracle timed out after %ss for volunteer %s, using fallback",
            timeout,
            profile.id,
        )
        return fallback_score_all(profile, opportunities)
    except Exception as e:
        logger.warning(
            "Scoring oracle failed for volunteer %s, using fallback: %s", profile.id, e
        )
        return fallback_score_all(profile, opportunities)

    items = payload.get("matches") if isinstance(payload, dict) else None
    if not isinstance(items, list):
        logger.warning(
            "Scoring oracle returned a malformed body for volunteer %s, using fallback",
            profile.id,
        )
        return fallback_score_all(profile, opportunities)

    return _normalize(items, opportunities)


def _normalize(items: list, opportunities: list[Opportunity]) -> list[MatchScoreResult]:
    known_ids = {o.id for o in opportunities}
    scored: dict = {}
    repeated: set = set()
    discarded = 0

    for raw in items:
        try:
            item = OracleMatch.model_validate(raw)
        except ValidationError as e:
            logger.info("Discarding invalid oracle item: %s", e.errors()[0]["msg"])
            discarded += 1
            continue
        if item.opportunity_id not in known_ids:
            discarded += 1
            continue
        if item.opportunity_id in scored or item.opportunity_id in repeated:
            if scored.pop(item.opportunity_id, None) is not None:
                discarded += 1
            repeated.add(item.opportunity_id)
            discarded += 1
            continue
        scored[item.opportunity_id] = build_result(
            item.opportunity_id,
            spiritual_fit=item.spiritual_fit_score,
            skill_fit=item.skill_fit_score,
            availability=item.availability_score,
            passion=item.passion_score,
            source=ScoreSource.ORACLE,
            explanation=item.explanation,
            reasons=item.reasons,
        )

    missing = len(known_ids) - len(scored)
    if discarded or missing:
        logger.warning(
            "Oracle scored %d of %d opportunities (%d items discarded)",
            len(scored),
            len(known_ids),
            discarded,
        )

    return [scored[o.id] for o in opportunities if o.id in scored]

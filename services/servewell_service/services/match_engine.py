"""Match Engine: scoring rounds and the volunteer's response to a match."""

import uuid
from typing import Iterable, Optional

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.servewell_service.errors import InvalidTransitionError, NotFoundError
from services.servewell_service.models import (
    Match,
    Opportunity,
    ProfileStatus,
    Registration,
    RegistrationStatus,
    VolunteerProfile,
    VolunteerResponse,
)
from services.servewell_service.scoring.adapter import score_opportunities
from services.servewell_service.scoring.oracle import ScoringOracle
from services.servewell_service.services import notifications
from services.servewell_service.services.notifications import Notifier
from services.servewell_service.services.profile_store import list_open_opportunities
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_pending_matches(
    db: AsyncSession, volunteer_id: uuid.UUID
) -> list[Match]:
    """Unresponded matches, best first; older opportunities win ties."""
    result = await db.execute(
        select(Match)
        .join(Opportunity, Opportunity.id == Match.opportunity_id)
        .where(
            Match.volunteer_id == volunteer_id,
            Match.volunteer_response == VolunteerResponse.NONE,
        )
        .order_by(
            Match.divine_appointment_score.desc(),
            Opportunity.created_at.asc(),
            Match.id,
        )
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_registration(
    db: AsyncSession, registration_id: uuid.UUID
) -> Registration:
    """Load a registration fresh from the database, with its opportunity and volunteer."""
    result = await db.execute(
        select(Registration)
        .where(Registration.id == registration_id)
        .execution_options(populate_existing=True)
    )
    registration = result.scalar_one_or_none()
    if registration is None:
        raise NotFoundError(f"Registration {registration_id} not found")
    return registration


async def _engaged_opportunity_ids(
    db: AsyncSession, volunteer_id: uuid.UUID
) -> set[uuid.UUID]:
    """Opportunities the volunteer already holds a live match or registration for."""
    matched = await db.execute(
        select(Match.opportunity_id).where(
            Match.volunteer_id == volunteer_id,
            Match.volunteer_response != VolunteerResponse.REJECTED,
        )
    )
    registered = await db.execute(
        select(Registration.opportunity_id).where(
            Registration.volunteer_id == volunteer_id,
            Registration.status != RegistrationStatus.CANCELLED,
        )
    )
    return set(matched.scalars().all()) | set(registered.scalars().all())


# ---------------------------------------------------------------------------
# Scoring rounds
# ---------------------------------------------------------------------------


async def find_matches(
    db: AsyncSession,
    volunteer_id: uuid.UUID,
    *,
    oracle: Optional[ScoringOracle] = None,
    exclude_opportunity_ids: Iterable[uuid.UUID] = (),
) -> list[Match]:
    """Return the volunteer's pending matches, running a scoring round if none exist.

    A volunteer who has not acted on the previous round gets that round back
    unchanged, so repeated calls never rescore or duplicate rows.
    """
    # Serialize rounds per volunteer; the partial unique index is the backstop
    result = await db.execute(
        select(VolunteerProfile)
        .where(VolunteerProfile.id == volunteer_id)
        .with_for_update()
    )
    profile = result.scalar_one_or_none()
    if profile is None:
        raise NotFoundError(f"Volunteer profile {volunteer_id} not found")

    pending = await list_pending_matches(db, volunteer_id)
    if pending or profile.status != ProfileStatus.ACTIVE:
        await db.commit()
        return pending

    excluded = await _engaged_opportunity_ids(db, volunteer_id) | set(
        exclude_opportunity_ids
    )
    candidates = [
        o
        for o in await list_open_opportunities(db, profile.organization_id)
        if o.id not in excluded
    ]
    if not candidates:
        await db.commit()
        return []

    results = await score_opportunities(profile, candidates, oracle)

    round_id = uuid.uuid4()
    for scored in results:
        db.add(
            Match(
                volunteer_id=volunteer_id,
                opportunity_id=scored.opportunity_id,
                scoring_round_id=round_id,
                spiritual_fit_score=scored.spiritual_fit_score,
                skill_fit_score=scored.skill_fit_score,
                availability_score=scored.availability_score,
                passion_score=scored.passion_score,
                divine_appointment_score=scored.divine_appointment_score,
                recommendation_tier=scored.recommendation_tier,
                score_source=scored.source,
                explanation=scored.explanation,
                reasons=scored.reasons,
                volunteer_response=VolunteerResponse.NONE,
            )
        )
    try:
        await db.commit()
    except IntegrityError:
        # A concurrent round for this volunteer committed first; use its rows
        await db.rollback()
        logger.info(
            "Concurrent scoring round detected for volunteer %s, reusing it",
            volunteer_id,
        )
        return await list_pending_matches(db, volunteer_id)

    logger.info(
        "Scoring round %s for volunteer %s: %d of %d candidates scored",
        round_id,
        volunteer_id,
        len(results),
        len(candidates),
    )
    return await list_pending_matches(db, volunteer_id)


# ---------------------------------------------------------------------------
# Volunteer response
# ---------------------------------------------------------------------------


async def respond_to_match(
    db: AsyncSession,
    *,
    match_id: uuid.UUID,
    volunteer_id: uuid.UUID,
    response: VolunteerResponse = VolunteerResponse.APPLIED,
    notes: Optional[str] = None,
    notifier: Optional[Notifier] = None,
) -> Registration:
    """Apply to a surfaced match: Match goes to ``applied`` with its Registration.

    Both rows are written in one transaction, so an applied match never exists
    without its pending registration.
    """
    result = await db.execute(
        select(Match)
        .where(Match.id == match_id, Match.volunteer_id == volunteer_id)
        .execution_options(populate_existing=True)
    )
    match = result.scalar_one_or_none()
    if match is None:
        raise NotFoundError(f"Match {match_id} not found for volunteer {volunteer_id}")

    if response != VolunteerResponse.APPLIED:
        raise InvalidTransitionError(
            f"Volunteers can only apply to a match, not set it to {response.value}"
        )

    seen_response = match.volunteer_response
    transition = await db.execute(
        update(Match)
        .where(Match.id == match_id, Match.volunteer_response == VolunteerResponse.NONE)
        .values(volunteer_response=VolunteerResponse.APPLIED, responded_at=utc_now())
        .execution_options(synchronize_session=False)
    )
    if transition.rowcount != 1:
        await db.rollback()
        raise InvalidTransitionError(
            f"Match {match_id} is already {seen_response.value}"
        )

    registration = Registration(
        volunteer_id=volunteer_id,
        opportunity_id=match.opportunity_id,
        match_id=match_id,
        status=RegistrationStatus.PENDING_APPROVAL,
        notes=notes,
    )
    db.add(registration)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise InvalidTransitionError(
            "Volunteer already has an active registration for this opportunity"
        )

    registration = await get_registration(db, registration.id)
    logger.info(
        "Volunteer %s applied to opportunity %s (registration %s)",
        volunteer_id,
        match.opportunity_id,
        registration.id,
    )

    profile = await db.get(VolunteerProfile, volunteer_id)
    await notifications.application_submitted(
        notifier, registration, match.opportunity, profile
    )
    return registration

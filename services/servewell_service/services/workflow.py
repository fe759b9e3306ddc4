"""Application Workflow: coordinator decisions, withdrawals, and capacity.

    Match.volunteer_response:  none -> applied -> {approved, rejected}
    Registration.status:       pending_approval -> {confirmed, cancelled}
                               confirmed -> cancelled (withdrawal)

Every transition is a conditional UPDATE on the row's current state, so a
retried or concurrent decision can never apply twice. Seat counting is a
single conditional UPDATE on the opportunity row and is the only
cross-request serialization point.
"""

import uuid
from typing import Callable, Optional

from fastapi import BackgroundTasks
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from libs.db.config import AsyncSessionLocal
from services.servewell_service.errors import (
    BackgroundCheckRequiredError,
    CapacityExceededError,
    InvalidTransitionError,
)
from services.servewell_service.models import (
    Match,
    Opportunity,
    OpportunityStatus,
    Registration,
    RegistrationDecision,
    RegistrationStatus,
    VolunteerResponse,
)
from services.servewell_service.schemas import VolunteerStatsResponse
from services.servewell_service.scoring.oracle import ScoringOracle
from services.servewell_service.services import notifications
from services.servewell_service.services.eligibility import (
    has_passed_check,
    requires_check,
)
from services.servewell_service.services.match_engine import (
    find_matches,
    get_registration,
)
from services.servewell_service.services.notifications import Notifier
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Row transitions
# ---------------------------------------------------------------------------


async def _transition_registration(
    db: AsyncSession,
    registration_id: uuid.UUID,
    *,
    from_status: RegistrationStatus,
    **values,
) -> bool:
    result = await db.execute(
        update(Registration)
        .where(Registration.id == registration_id, Registration.status == from_status)
        .values(**values, updated_at=utc_now())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def _transition_match(
    db: AsyncSession,
    match_id: uuid.UUID,
    *,
    from_response: VolunteerResponse,
    to_response: VolunteerResponse,
) -> bool:
    result = await db.execute(
        update(Match)
        .where(Match.id == match_id, Match.volunteer_response == from_response)
        .values(volunteer_response=to_response)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def _claim_seat(db: AsyncSession, opportunity_id: uuid.UUID) -> bool:
    """Take one seat if any is free; the opportunity flips to filled on the last one."""
    result = await db.execute(
        update(Opportunity)
        .where(
            Opportunity.id == opportunity_id,
            Opportunity.status != OpportunityStatus.CLOSED,
            Opportunity.volunteers_registered < Opportunity.volunteers_needed,
        )
        .values(
            volunteers_registered=Opportunity.volunteers_registered + 1,
            updated_at=utc_now(),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        return False

    # Same transaction, row already locked by the increment above
    await db.execute(
        update(Opportunity)
        .where(
            Opportunity.id == opportunity_id,
            Opportunity.status == OpportunityStatus.OPEN,
            Opportunity.volunteers_registered >= Opportunity.volunteers_needed,
        )
        .values(status=OpportunityStatus.FILLED)
        .execution_options(synchronize_session=False)
    )
    return True


async def _release_seat(db: AsyncSession, opportunity_id: uuid.UUID) -> bool:
    """Give one seat back; a filled opportunity reopens."""
    result = await db.execute(
        update(Opportunity)
        .where(
            Opportunity.id == opportunity_id,
            Opportunity.volunteers_registered > 0,
        )
        .values(
            volunteers_registered=Opportunity.volunteers_registered - 1,
            updated_at=utc_now(),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        return False

    await db.execute(
        update(Opportunity)
        .where(
            Opportunity.id == opportunity_id,
            Opportunity.status == OpportunityStatus.FILLED,
            Opportunity.volunteers_registered < Opportunity.volunteers_needed,
        )
        .values(status=OpportunityStatus.OPEN)
        .execution_options(synchronize_session=False)
    )
    return True


def _guard_pending(registration: Registration, action: str) -> None:
    if registration.status != RegistrationStatus.PENDING_APPROVAL:
        raise InvalidTransitionError(
            f"Cannot {action} registration {registration.id}: "
            f"it is {registration.status.value}"
        )


# ---------------------------------------------------------------------------
# Coordinator decisions
# ---------------------------------------------------------------------------


async def approve_registration(
    db: AsyncSession,
    *,
    registration_id: uuid.UUID,
    coordinator_id: str,
    message: Optional[str] = None,
    notifier: Optional[Notifier] = None,
) -> Registration:
    """Confirm a pending registration and take a seat for it.

    Fails with BackgroundCheckRequired or CapacityExceeded without changing
    anything, leaving the registration pending for the coordinator.
    """
    registration = await get_registration(db, registration_id)
    _guard_pending(registration, "approve")
    opportunity = registration.opportunity
    # Rollback expires loaded rows, so error paths below only use these
    opportunity_id = registration.opportunity_id
    match_id = registration.match_id
    title = opportunity.title

    if requires_check(opportunity) and not await has_passed_check(
        db, registration.volunteer_id
    ):
        raise BackgroundCheckRequiredError(
            f"{opportunity.title} requires a passed background check before approval"
        )

    now = utc_now()
    if not await _transition_registration(
        db,
        registration_id,
        from_status=RegistrationStatus.PENDING_APPROVAL,
        status=RegistrationStatus.CONFIRMED,
        decided_at=now,
        decided_by=coordinator_id,
        coordinator_message=message,
    ):
        await db.rollback()
        raise InvalidTransitionError(
            f"Registration {registration_id} was decided by another request"
        )

    if not await _claim_seat(db, opportunity_id):
        await db.rollback()
        logger.warning(
            "Approval of registration %s refused: opportunity %s has no free seat",
            registration_id,
            opportunity_id,
        )
        raise CapacityExceededError(
            f"{title} has no remaining seats; "
            "the registration is still pending"
        )

    if not await _transition_match(
        db,
        match_id,
        from_response=VolunteerResponse.APPLIED,
        to_response=VolunteerResponse.APPROVED,
    ):
        await db.rollback()
        raise InvalidTransitionError(
            f"Match {match_id} is no longer awaiting a decision"
        )

    await db.commit()
    registration = await get_registration(db, registration_id)
    logger.info(
        "Coordinator %s approved registration %s (%s now %d/%d)",
        coordinator_id,
        registration_id,
        registration.opportunity.title,
        registration.opportunity.volunteers_registered,
        registration.opportunity.volunteers_needed,
    )

    await notifications.application_decided(
        notifier,
        registration,
        registration.opportunity,
        registration.volunteer,
        approved=True,
        message=message,
    )
    return registration


async def reject_registration(
    db: AsyncSession,
    *,
    registration_id: uuid.UUID,
    coordinator_id: str,
    message: Optional[str] = None,
    notifier: Optional[Notifier] = None,
    background_tasks: Optional[BackgroundTasks] = None,
    oracle: Optional[ScoringOracle] = None,
    session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
) -> Registration:
    """Decline a pending registration; seats are untouched.

    An alternative-match search excluding this opportunity is queued on
    ``background_tasks`` so the rejection response never waits for scoring.
    """
    registration = await get_registration(db, registration_id)
    _guard_pending(registration, "reject")
    match_id = registration.match_id

    now = utc_now()
    if not await _transition_registration(
        db,
        registration_id,
        from_status=RegistrationStatus.PENDING_APPROVAL,
        status=RegistrationStatus.CANCELLED,
        decided_at=now,
        decided_by=coordinator_id,
        coordinator_message=message,
        cancelled_at=now,
        cancellation_reason="rejected_by_coordinator",
    ):
        await db.rollback()
        raise InvalidTransitionError(
            f"Registration {registration_id} was decided by another request"
        )

    if not await _transition_match(
        db,
        match_id,
        from_response=VolunteerResponse.APPLIED,
        to_response=VolunteerResponse.REJECTED,
    ):
        await db.rollback()
        raise InvalidTransitionError(
            f"Match {match_id} is no longer awaiting a decision"
        )

    await db.commit()
    registration = await get_registration(db, registration_id)
    logger.info(
        "Coordinator %s rejected registration %s", coordinator_id, registration_id
    )

    await notifications.application_decided(
        notifier,
        registration,
        registration.opportunity,
        registration.volunteer,
        approved=False,
        message=message,
    )

    if background_tasks is not None:
        background_tasks.add_task(
            suggest_alternative_matches,
            registration.volunteer_id,
            registration.opportunity_id,
            oracle=oracle,
            session_factory=session_factory,
        )
    return registration


async def decide_registration(
    db: AsyncSession,
    *,
    registration_id: uuid.UUID,
    coordinator_id: str,
    decision: RegistrationDecision,
    message: Optional[str] = None,
    notifier: Optional[Notifier] = None,
    background_tasks: Optional[BackgroundTasks] = None,
    oracle: Optional[ScoringOracle] = None,
    session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
) -> Registration:
    if decision == RegistrationDecision.APPROVE:
        return await approve_registration(
            db,
            registration_id=registration_id,
            coordinator_id=coordinator_id,
            message=message,
            notifier=notifier,
        )
    return await reject_registration(
        db,
        registration_id=registration_id,
        coordinator_id=coordinator_id,
        message=message,
        notifier=notifier,
        background_tasks=background_tasks,
        oracle=oracle,
        session_factory=session_factory,
    )


# ---------------------------------------------------------------------------
# Withdrawal
# ---------------------------------------------------------------------------


async def cancel_registration(
    db: AsyncSession,
    *,
    registration_id: uuid.UUID,
    reason: Optional[str] = None,
    notifier: Optional[Notifier] = None,
) -> Registration:
    """Withdraw a registration.

    A pending one is simply cancelled (its match becomes rejected). A confirmed
    one also gives its seat back. The match of a confirmed registration stays
    approved: the coordinator did approve it.
    """
    registration = await get_registration(db, registration_id)
    current = registration.status
    match_id = registration.match_id
    opportunity_id = registration.opportunity_id
    if current == RegistrationStatus.CANCELLED:
        raise InvalidTransitionError(f"Registration {registration_id} is already cancelled")

    now = utc_now()
    if not await _transition_registration(
        db,
        registration_id,
        from_status=current,
        status=RegistrationStatus.CANCELLED,
        cancelled_at=now,
        cancellation_reason=reason or "withdrawn_by_volunteer",
    ):
        await db.rollback()
        raise InvalidTransitionError(
            f"Registration {registration_id} changed while being cancelled"
        )

    if current == RegistrationStatus.PENDING_APPROVAL:
        await _transition_match(
            db,
            match_id,
            from_response=VolunteerResponse.APPLIED,
            to_response=VolunteerResponse.REJECTED,
        )
    elif not await _release_seat(db, opportunity_id):
        await db.rollback()
        logger.error(
            "Opportunity %s had no seat to release for confirmed registration %s",
            opportunity_id,
            registration_id,
        )
        raise InvalidTransitionError(
            f"Registration {registration_id} holds no seat to release"
        )

    await db.commit()
    registration = await get_registration(db, registration_id)
    logger.info(
        "Registration %s withdrawn (was %s)", registration_id, current.value
    )

    if current == RegistrationStatus.CONFIRMED:
        await notifications.registration_cancelled(
            notifier, registration, registration.opportunity, registration.volunteer
        )
    return registration


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


async def list_pending_registrations(
    db: AsyncSession, organization_id: uuid.UUID
) -> list[Registration]:
    """Applications awaiting a decision in the organization, oldest first."""
    result = await db.execute(
        select(Registration)
        .join(Opportunity, Opportunity.id == Registration.opportunity_id)
        .where(
            Opportunity.organization_id == organization_id,
            Registration.status == RegistrationStatus.PENDING_APPROVAL,
        )
        .order_by(Registration.registered_at, Registration.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def list_registrations_for_volunteer(
    db: AsyncSession, volunteer_id: uuid.UUID
) -> list[Registration]:
    result = await db.execute(
        select(Registration)
        .where(Registration.volunteer_id == volunteer_id)
        .order_by(Registration.registered_at.desc(), Registration.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_volunteer_stats(
    db: AsyncSession, volunteer_id: uuid.UUID
) -> VolunteerStatsResponse:
    """Count the volunteer's registrations by status."""
    result = await db.execute(
        select(Registration.status, func.count(Registration.id))
        .where(Registration.volunteer_id == volunteer_id)
        .group_by(Registration.status)
    )
    counts = {row_status: count for row_status, count in result.all()}
    total = sum(counts.values())
    confirmed = counts.get(RegistrationStatus.CONFIRMED, 0)
    return VolunteerStatsResponse(
        volunteer_id=volunteer_id,
        total_registrations=total,
        pending_registrations=counts.get(RegistrationStatus.PENDING_APPROVAL, 0),
        confirmed_registrations=confirmed,
        cancelled_registrations=counts.get(RegistrationStatus.CANCELLED, 0),
        success_rate=round(confirmed / total * 100, 1) if total else 0.0,
    )


async def match_scores_for(
    db: AsyncSession, registrations: list[Registration]
) -> dict[uuid.UUID, float]:
    """Composite score of the match behind each registration, keyed by match id."""
    match_ids = [r.match_id for r in registrations]
    if not match_ids:
        return {}
    result = await db.execute(
        select(Match.id, Match.divine_appointment_score).where(Match.id.in_(match_ids))
    )
    return {row.id: row.divine_appointment_score for row in result}


# ---------------------------------------------------------------------------
# Alternatives after rejection
# ---------------------------------------------------------------------------


async def suggest_alternative_matches(
    volunteer_id: uuid.UUID,
    rejected_opportunity_id: uuid.UUID,
    *,
    oracle: Optional[ScoringOracle] = None,
    session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
) -> list[Match]:
    """Best-effort scoring round that skips the opportunity just rejected.

    Runs in its own session after the rejection has been answered; failures
    are logged and never reach the coordinator.
    """
    try:
        async with session_factory() as db:
            matches = await find_matches(
                db,
                volunteer_id,
                oracle=oracle,
                exclude_opportunity_ids={rejected_opportunity_id},
            )
    except Exception:
        logger.exception(
            "Alternative match search failed for volunteer %s", volunteer_id
        )
        return []

    logger.info(
        "Alternative search for volunteer %s surfaced %d matches",
        volunteer_id,
        len(matches),
    )
    return matches

"""Profile Store: volunteer profile and opportunity records.

Pure data access. ``volunteers_registered`` is never written here; only the
application workflow moves capacity.
"""

import uuid
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.servewell_service.errors import NotFoundError
from services.servewell_service.models import (
    Opportunity,
    OpportunityStatus,
    ProfileStatus,
    VolunteerProfile,
)
from services.servewell_service.schemas import AssessmentResult, OpportunityCreate
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


async def get_profile(db: AsyncSession, volunteer_id: uuid.UUID) -> VolunteerProfile:
    profile = await db.get(VolunteerProfile, volunteer_id)
    if profile is None:
        raise NotFoundError(f"Volunteer profile {volunteer_id} not found")
    return profile


async def get_profile_for_member(
    db: AsyncSession, member_auth_id: str, organization_id: uuid.UUID
) -> Optional[VolunteerProfile]:
    result = await db.execute(
        select(VolunteerProfile).where(
            VolunteerProfile.member_auth_id == member_auth_id,
            VolunteerProfile.organization_id == organization_id,
        )
    )
    return result.scalar_one_or_none()


def _assessment_values(assessment: AssessmentResult) -> dict:
    """Column values from an assessment; fields left out or sent as null are omitted."""
    values = assessment.model_dump(exclude_unset=True, exclude_none=True)
    values["spiritual_gifts"] = [g.value for g in assessment.spiritual_gifts]
    values["gift_scores"] = {g.value: s for g, s in assessment.gift_scores.items()}
    return values


async def upsert_assessment(
    db: AsyncSession,
    *,
    member_auth_id: str,
    organization_id: uuid.UUID,
    assessment: AssessmentResult,
) -> tuple[VolunteerProfile, bool]:
    """Create the profile on first assessment, otherwise merge the new results.

    Returns ``(profile, created)``.
    """
    values = _assessment_values(assessment)

    profile = await get_profile_for_member(db, member_auth_id, organization_id)
    created = profile is None
    if created:
        profile = VolunteerProfile(
            member_auth_id=member_auth_id,
            organization_id=organization_id,
            **values,
        )
        db.add(profile)
        try:
            await db.commit()
        except IntegrityError:
            # Concurrent first submission won the insert; merge into that row
            await db.rollback()
            profile = await get_profile_for_member(db, member_auth_id, organization_id)
            created = False

    if not created:
        for field, value in values.items():
            setattr(profile, field, value)
        profile.updated_at = utc_now()
        await db.commit()

    await db.refresh(profile)
    logger.info(
        "%s volunteer profile %s for %s (gifts=%s)",
        "Created" if created else "Updated",
        profile.id,
        member_auth_id,
        ",".join(profile.spiritual_gifts),
    )
    return profile, created


async def deactivate_profile(
    db: AsyncSession, volunteer_id: uuid.UUID
) -> VolunteerProfile:
    profile = await get_profile(db, volunteer_id)
    if profile.status != ProfileStatus.INACTIVE:
        profile.status = ProfileStatus.INACTIVE
        await db.commit()
        await db.refresh(profile)
        logger.info("Deactivated volunteer profile %s", volunteer_id)
    return profile


async def list_profiles(
    db: AsyncSession,
    organization_id: uuid.UUID,
    *,
    status: Optional[ProfileStatus] = None,
) -> list[VolunteerProfile]:
    query = select(VolunteerProfile).where(
        VolunteerProfile.organization_id == organization_id
    )
    if status is not None:
        query = query.where(VolunteerProfile.status == status)
    result = await db.execute(query.order_by(VolunteerProfile.created_at))
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Opportunities
# ---------------------------------------------------------------------------


async def create_opportunity(
    db: AsyncSession, *, coordinator_id: str, data: OpportunityCreate
) -> Opportunity:
    values = data.model_dump()
    values["required_gifts"] = [g.value for g in data.required_gifts]
    opportunity = Opportunity(
        **values,
        volunteers_registered=0,
        status=OpportunityStatus.OPEN,
        created_by=coordinator_id,
    )
    db.add(opportunity)
    await db.commit()
    await db.refresh(opportunity)

    logger.info(
        "Coordinator %s created opportunity %s (%s, %d needed)",
        coordinator_id,
        opportunity.id,
        opportunity.title,
        opportunity.volunteers_needed,
    )
    return opportunity


async def get_opportunity(
    db: AsyncSession, opportunity_id: uuid.UUID
) -> Opportunity:
    opportunity = await db.get(Opportunity, opportunity_id)
    if opportunity is None:
        raise NotFoundError(f"Opportunity {opportunity_id} not found")
    return opportunity


async def close_opportunity(
    db: AsyncSession, opportunity_id: uuid.UUID
) -> Opportunity:
    """Stop the opportunity from being matched or approved; seats are left as-is."""
    opportunity = await get_opportunity(db, opportunity_id)
    await db.execute(
        update(Opportunity)
        .where(Opportunity.id == opportunity_id)
        .values(status=OpportunityStatus.CLOSED, updated_at=utc_now())
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(opportunity)
    logger.info("Closed opportunity %s", opportunity_id)
    return opportunity


async def list_open_opportunities(
    db: AsyncSession, organization_id: uuid.UUID
) -> list[Opportunity]:
    """Open opportunities with at least one free seat, oldest first."""
    result = await db.execute(
        select(Opportunity)
        .where(
            Opportunity.organization_id == organization_id,
            Opportunity.status == OpportunityStatus.OPEN,
            Opportunity.volunteers_registered < Opportunity.volunteers_needed,
        )
        .order_by(Opportunity.created_at, Opportunity.id)
    )
    return list(result.scalars().all())

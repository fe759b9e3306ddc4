"""Volunteer-facing endpoints: assessment, matches, applications, background checks."""

import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.rate_limit import api_limit, matching_limit
from libs.db.session import get_async_db
from services.servewell_service.dependencies import (
    get_notifier,
    get_owned_profile,
    get_scoring_oracle,
)
from services.servewell_service.schemas import (
    AssessmentSubmission,
    BackgroundCheckRequest,
    BackgroundCheckResponse,
    MatchAcceptRequest,
    MatchResponse,
    OpportunityResponse,
    RegistrationCancelRequest,
    RegistrationResponse,
    SpiritualGiftInfo,
    VolunteerProfileResponse,
    VolunteerStatsResponse,
)
from services.servewell_service.scoring.assessment import (
    assess_responses,
    gift_catalogue,
)
from services.servewell_service.scoring.oracle import ScoringOracle
from services.servewell_service.services import (
    cancel_registration,
    find_matches,
    get_profile_for_member,
    get_registration,
    get_status,
    get_volunteer_stats,
    list_open_opportunities,
    list_registrations_for_volunteer,
    request_check,
    respond_to_match,
    upsert_assessment,
)
from services.servewell_service.services.notifications import Notifier
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/volunteers", tags=["volunteers"])


# ── Assessment & profile ──


@router.post("/assessment", response_model=VolunteerProfileResponse)
@api_limit
async def submit_assessment(
    request: Request,
    response: Response,
    payload: AssessmentSubmission,
    user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    """Score the gifts questionnaire and create or update the caller's profile."""
    profile, created = await upsert_assessment(
        db,
        member_auth_id=user.user_id,
        organization_id=payload.organization_id,
        assessment=assess_responses(payload),
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return profile


@router.get("/profile/me", response_model=VolunteerProfileResponse)
async def get_my_profile(
    organization_id: uuid.UUID,
    user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    profile = await get_profile_for_member(db, user.user_id, organization_id)
    if profile is None:
        raise HTTPException(
            status_code=404, detail="Complete the gifts assessment first"
        )
    return profile


@router.get("/spiritual-gifts", response_model=list[SpiritualGiftInfo])
async def list_spiritual_gifts(
    user: Annotated[AuthUser, Depends(get_current_user)],
):
    """Every gift the assessment can recognize, with a short description."""
    return gift_catalogue()


# ── Opportunities ──


@router.get("/opportunities", response_model=list[OpportunityResponse])
@api_limit
async def browse_opportunities(
    request: Request,
    organization_id: uuid.UUID,
    user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    """Open opportunities that still have seats."""
    return await list_open_opportunities(db, organization_id)


# ── Matches ──


@router.get("/{volunteer_id}/matches", response_model=list[MatchResponse])
@matching_limit
async def get_matches(
    request: Request,
    volunteer_id: uuid.UUID,
    user: Annotated[AuthUser, Depends(get_current_user)],
    oracle: Annotated[Optional[ScoringOracle], Depends(get_scoring_oracle)],
    db: AsyncSession = Depends(get_async_db),
):
    """Pending matches for the volunteer; runs a scoring round when there are none."""
    await get_owned_profile(db, volunteer_id, user)
    return await find_matches(db, volunteer_id, oracle=oracle)


@router.post("/matches/{match_id}/accept", response_model=RegistrationResponse)
async def accept_match(
    match_id: uuid.UUID,
    payload: MatchAcceptRequest,
    user: Annotated[AuthUser, Depends(get_current_user)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
    db: AsyncSession = Depends(get_async_db),
):
    """Apply to a match; the registration waits for coordinator approval."""
    await get_owned_profile(db, payload.volunteer_id, user)
    return await respond_to_match(
        db,
        match_id=match_id,
        volunteer_id=payload.volunteer_id,
        notes=payload.notes,
        notifier=notifier,
    )


# ── Registrations ──


@router.get("/{volunteer_id}/registrations", response_model=list[RegistrationResponse])
async def my_registrations(
    volunteer_id: uuid.UUID,
    user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    await get_owned_profile(db, volunteer_id, user)
    return await list_registrations_for_volunteer(db, volunteer_id)


@router.get("/{volunteer_id}/stats", response_model=VolunteerStatsResponse)
async def my_stats(
    volunteer_id: uuid.UUID,
    user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    """Registration counts and the share that were confirmed."""
    await get_owned_profile(db, volunteer_id, user)
    return await get_volunteer_stats(db, volunteer_id)


@router.post(
    "/registrations/{registration_id}/cancel", response_model=RegistrationResponse
)
async def withdraw_registration(
    registration_id: uuid.UUID,
    user: Annotated[AuthUser, Depends(get_current_user)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
    payload: Optional[RegistrationCancelRequest] = None,
    db: AsyncSession = Depends(get_async_db),
):
    """Withdraw from an opportunity; a confirmed seat is released."""
    registration = await get_registration(db, registration_id)
    await get_owned_profile(db, registration.volunteer_id, user)
    return await cancel_registration(
        db,
        registration_id=registration_id,
        reason=payload.reason if payload else None,
        notifier=notifier,
    )


# ── Background checks ──


@router.post("/background-checks", response_model=BackgroundCheckResponse)
async def request_background_check(
    response: Response,
    payload: BackgroundCheckRequest,
    user: Annotated[AuthUser, Depends(get_current_user)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
    db: AsyncSession = Depends(get_async_db),
):
    await get_owned_profile(db, payload.volunteer_id, user)
    check, created = await request_check(
        db,
        volunteer_id=payload.volunteer_id,
        check_type=payload.check_type,
        notifier=notifier,
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return check


@router.get(
    "/background-checks/status", response_model=Optional[BackgroundCheckResponse]
)
async def background_check_status(
    volunteer_id: uuid.UUID,
    user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    """Latest background check for the volunteer, or null."""
    await get_owned_profile(db, volunteer_id, user)
    return await get_status(db, volunteer_id)

"""Coordinator endpoints: opportunities, application decisions, background check results."""

import uuid
from typing import Annotated, Callable, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from libs.auth.dependencies import require_coordinator
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.servewell_service.dependencies import (
    get_notifier,
    get_scoring_oracle,
    get_session_factory,
)
from services.servewell_service.models import ProfileStatus, Registration
from services.servewell_service.schemas import (
    BackgroundCheckResponse,
    BackgroundCheckResultRequest,
    OpportunityCreate,
    OpportunityResponse,
    PendingRegistrationResponse,
    RegistrationDecisionRequest,
    RegistrationResponse,
    VolunteerProfileResponse,
)
from services.servewell_service.scoring.oracle import ScoringOracle
from services.servewell_service.services import (
    close_opportunity,
    create_opportunity,
    deactivate_profile,
    decide_registration,
    list_expiring_checks,
    list_pending_registrations,
    list_profiles,
    record_result,
)
from services.servewell_service.services.notifications import Notifier
from services.servewell_service.services.workflow import match_scores_for
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/admin/volunteers", tags=["admin-volunteers"])


def _enrich_pending(
    registration: Registration, scores: dict[uuid.UUID, float]
) -> PendingRegistrationResponse:
    data = PendingRegistrationResponse.model_validate(registration)
    if registration.volunteer is not None:
        data.volunteer_name = registration.volunteer.display_name
        data.volunteer_email = registration.volunteer.email
    data.match_score = scores.get(registration.match_id)
    return data


# ── Opportunities ──


@router.post("/opportunities", response_model=OpportunityResponse, status_code=201)
async def post_opportunity(
    payload: OpportunityCreate,
    admin: Annotated[AuthUser, Depends(require_coordinator)],
    db: AsyncSession = Depends(get_async_db),
):
    return await create_opportunity(db, coordinator_id=admin.user_id, data=payload)


@router.post("/opportunities/{opportunity_id}/close", response_model=OpportunityResponse)
async def close_opportunity_endpoint(
    opportunity_id: uuid.UUID,
    admin: Annotated[AuthUser, Depends(require_coordinator)],
    db: AsyncSession = Depends(get_async_db),
):
    """Stop matching and approvals for an opportunity. Existing seats stay counted."""
    return await close_opportunity(db, opportunity_id)


# ── Profiles ──


@router.get("/profiles", response_model=list[VolunteerProfileResponse])
async def list_volunteer_profiles(
    organization_id: uuid.UUID,
    admin: Annotated[AuthUser, Depends(require_coordinator)],
    profile_status: Optional[ProfileStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_async_db),
):
    return await list_profiles(db, organization_id, status=profile_status)


@router.post(
    "/profiles/{volunteer_id}/deactivate", response_model=VolunteerProfileResponse
)
async def deactivate_volunteer(
    volunteer_id: uuid.UUID,
    admin: Annotated[AuthUser, Depends(require_coordinator)],
    db: AsyncSession = Depends(get_async_db),
):
    return await deactivate_profile(db, volunteer_id)


# ── Registrations ──


@router.get(
    "/registrations/pending", response_model=list[PendingRegistrationResponse]
)
async def pending_registrations(
    organization_id: uuid.UUID,
    admin: Annotated[AuthUser, Depends(require_coordinator)],
    db: AsyncSession = Depends(get_async_db),
):
    """Applications awaiting a decision, oldest first."""
    registrations = await list_pending_registrations(db, organization_id)
    scores = await match_scores_for(db, registrations)
    return [_enrich_pending(r, scores) for r in registrations]


@router.post(
    "/registrations/{registration_id}/decision", response_model=RegistrationResponse
)
async def decide(
    registration_id: uuid.UUID,
    payload: RegistrationDecisionRequest,
    background_tasks: BackgroundTasks,
    admin: Annotated[AuthUser, Depends(require_coordinator)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
    oracle: Annotated[Optional[ScoringOracle], Depends(get_scoring_oracle)],
    session_factory: Annotated[
        Callable[[], AsyncSession], Depends(get_session_factory)
    ],
    db: AsyncSession = Depends(get_async_db),
):
    """Approve or reject an application.

    409 when the opportunity is full, a background check is missing, or the
    registration was already decided.
    """
    return await decide_registration(
        db,
        registration_id=registration_id,
        coordinator_id=admin.user_id,
        decision=payload.decision,
        message=payload.message,
        notifier=notifier,
        background_tasks=background_tasks,
        oracle=oracle,
        session_factory=session_factory,
    )


# ── Background checks ──


@router.post(
    "/background-checks/{check_id}/result", response_model=BackgroundCheckResponse
)
async def post_background_check_result(
    check_id: uuid.UUID,
    payload: BackgroundCheckResultRequest,
    admin: Annotated[AuthUser, Depends(require_coordinator)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
    db: AsyncSession = Depends(get_async_db),
):
    """Record the outcome reported by the verification provider."""
    return await record_result(
        db,
        check_id=check_id,
        status=payload.status,
        notes=payload.notes,
        external_id=payload.external_id,
        notifier=notifier,
    )


@router.get(
    "/background-checks/expiring", response_model=list[BackgroundCheckResponse]
)
async def expiring_background_checks(
    admin: Annotated[AuthUser, Depends(require_coordinator)],
    days_ahead: int = Query(30, ge=1, le=365),
    db: AsyncSession = Depends(get_async_db),
):
    return await list_expiring_checks(db, days_ahead=days_ahead)

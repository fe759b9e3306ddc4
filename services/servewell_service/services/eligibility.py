"""Eligibility Tracker: background check requests and externally verified results."""

import uuid
from datetime import timedelta
from typing import Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import days_from_now, utc_now
from libs.common.logging import get_logger
from services.servewell_service.errors import InvalidTransitionError, NotFoundError
from services.servewell_service.models import (
    BackgroundCheck,
    BackgroundCheckStatus,
    BackgroundCheckType,
    Opportunity,
    VolunteerProfile,
)
from services.servewell_service.services import notifications
from services.servewell_service.services.notifications import Notifier
from services.servewell_service.services.profile_store import get_profile
from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def _pending_check(
    db: AsyncSession, volunteer_id: uuid.UUID, check_type: BackgroundCheckType
) -> Optional[BackgroundCheck]:
    result = await db.execute(
        select(BackgroundCheck).where(
            BackgroundCheck.volunteer_id == volunteer_id,
            BackgroundCheck.check_type == check_type,
            BackgroundCheck.status == BackgroundCheckStatus.PENDING,
        )
    )
    return result.scalar_one_or_none()


async def request_check(
    db: AsyncSession,
    *,
    volunteer_id: uuid.UUID,
    check_type: BackgroundCheckType = BackgroundCheckType.BASIC,
    notifier: Optional[Notifier] = None,
) -> tuple[BackgroundCheck, bool]:
    """Open a pending check, or return the one already pending for this type.

    Returns ``(check, created)``.
    """
    profile = await get_profile(db, volunteer_id)

    existing = await _pending_check(db, volunteer_id, check_type)
    if existing:
        return existing, False

    check = BackgroundCheck(
        volunteer_id=volunteer_id,
        check_type=check_type,
        status=BackgroundCheckStatus.PENDING,
        provider=get_settings().BACKGROUND_CHECK_PROVIDER,
    )
    db.add(check)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with an identical request; that one stands
        await db.rollback()
        existing = await _pending_check(db, volunteer_id, check_type)
        if existing is None:
            raise
        return existing, False

    await db.refresh(check)
    logger.info(
        "Requested %s background check %s for volunteer %s",
        check_type.value,
        check.id,
        volunteer_id,
    )
    await notifications.background_check_requested(notifier, check, profile)
    return check, True


async def get_status(
    db: AsyncSession, volunteer_id: uuid.UUID
) -> Optional[BackgroundCheck]:
    """Most recently requested check for the volunteer, if any."""
    result = await db.execute(
        select(BackgroundCheck)
        .where(BackgroundCheck.volunteer_id == volunteer_id)
        .order_by(BackgroundCheck.requested_at.desc(), BackgroundCheck.id)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def record_result(
    db: AsyncSession,
    *,
    check_id: uuid.UUID,
    status: BackgroundCheckStatus,
    notes: Optional[str] = None,
    external_id: Optional[str] = None,
    notifier: Optional[Notifier] = None,
) -> BackgroundCheck:
    """Write the outcome reported by the external verification process."""
    if status == BackgroundCheckStatus.PENDING:
        raise InvalidTransitionError("A background check result must be passed or failed")

    check = await db.get(BackgroundCheck, check_id, populate_existing=True)
    if check is None:
        raise NotFoundError(f"Background check {check_id} not found")

    seen_status = check.status
    completed_at = utc_now()
    values = {"status": status, "completed_at": completed_at}
    if status == BackgroundCheckStatus.PASSED:
        validity = get_settings().BACKGROUND_CHECK_VALIDITY_DAYS
        values["expires_at"] = completed_at + timedelta(days=validity)
    if notes is not None:
        values["notes"] = notes
    if external_id is not None:
        values["external_id"] = external_id

    result = await db.execute(
        update(BackgroundCheck)
        .where(
            BackgroundCheck.id == check_id,
            BackgroundCheck.status == BackgroundCheckStatus.PENDING,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await db.rollback()
        raise InvalidTransitionError(
            f"Background check {check_id} is already {seen_status.value}"
        )
    await db.commit()
    await db.refresh(check)

    logger.info(
        "Background check %s for volunteer %s recorded as %s",
        check_id,
        check.volunteer_id,
        status.value,
    )
    profile = await db.get(VolunteerProfile, check.volunteer_id)
    await notifications.background_check_completed(notifier, check, profile)
    return check


async def has_passed_check(db: AsyncSession, volunteer_id: uuid.UUID) -> bool:
    """True when the volunteer holds a passed check that has not expired."""
    result = await db.execute(
        select(BackgroundCheck.id)
        .where(
            BackgroundCheck.volunteer_id == volunteer_id,
            BackgroundCheck.status == BackgroundCheckStatus.PASSED,
            or_(
                BackgroundCheck.expires_at.is_(None),
                BackgroundCheck.expires_at > utc_now(),
            ),
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


def requires_check(opportunity: Opportunity) -> bool:
    if opportunity.background_check_required:
        return True
    return (
        opportunity.is_leadership_role
        and get_settings().LEADERSHIP_REQUIRES_BACKGROUND_CHECK
    )


async def list_expiring_checks(
    db: AsyncSession, days_ahead: int = 30
) -> list[BackgroundCheck]:
    """Passed checks whose validity ends within the next ``days_ahead`` days."""
    now = utc_now()
    result = await db.execute(
        select(BackgroundCheck)
        .where(
            BackgroundCheck.status == BackgroundCheckStatus.PASSED,
            BackgroundCheck.expires_at.is_not(None),
            BackgroundCheck.expires_at > now,
            BackgroundCheck.expires_at <= days_from_now(days_ahead),
        )
        .order_by(BackgroundCheck.expires_at)
    )
    return list(result.scalars().all())

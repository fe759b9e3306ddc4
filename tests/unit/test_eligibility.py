"""Unit tests for background check requests, results, and renewal reminders."""

import uuid
from datetime import timedelta

import pytest
from libs.common.datetime_utils import ensure_aware
from services.servewell_service.errors import InvalidTransitionError, NotFoundError
from services.servewell_service.models import (
    BackgroundCheckStatus,
    BackgroundCheckType,
    NotificationType,
)
from services.servewell_service.services.eligibility import (
    get_status,
    has_passed_check,
    list_expiring_checks,
    record_result,
    request_check,
    requires_check,
)
from services.servewell_service.tasks import send_background_check_renewal_reminders
from tests.factories import (
    BackgroundCheckFactory,
    OpportunityFactory,
    VolunteerProfileFactory,
    _now,
    persist,
)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_request_opens_pending_check(db_session, notifier):
    profile = await persist(db_session, VolunteerProfileFactory.create())

    check, created = await request_check(
        db_session,
        volunteer_id=profile.id,
        check_type=BackgroundCheckType.CHILD_PROTECTION,
        notifier=notifier,
    )

    assert created is True
    assert check.status == BackgroundCheckStatus.PENDING
    assert check.check_type == BackgroundCheckType.CHILD_PROTECTION
    assert check.provider == "manual"
    assert notifier.types() == [NotificationType.BACKGROUND_CHECK_REQUESTED.value]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_repeat_request_returns_the_pending_check(db_session):
    profile = await persist(db_session, VolunteerProfileFactory.create())

    first, _ = await request_check(db_session, volunteer_id=profile.id)
    again, created = await request_check(db_session, volunteer_id=profile.id)
    other_type, other_created = await request_check(
        db_session, volunteer_id=profile.id, check_type=BackgroundCheckType.COMPREHENSIVE
    )

    assert created is False
    assert again.id == first.id
    assert other_created is True
    assert other_type.id != first.id


@pytest.mark.asyncio
@pytest.mark.unit
async def test_request_for_unknown_volunteer(db_session):
    with pytest.raises(NotFoundError):
        await request_check(db_session, volunteer_id=uuid.uuid4())


@pytest.mark.asyncio
@pytest.mark.unit
async def test_status_is_latest_check(db_session):
    profile = await persist(db_session, VolunteerProfileFactory.create())
    assert await get_status(db_session, profile.id) is None

    old = BackgroundCheckFactory.passed(
        profile.id, requested_at=_now() - timedelta(days=400)
    )
    new = BackgroundCheckFactory.create(profile.id)
    await persist(db_session, old, new)

    assert (await get_status(db_session, profile.id)).id == new.id


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_passed_result_sets_expiry(db_session, notifier):
    profile = await persist(db_session, VolunteerProfileFactory.create())
    check, _ = await request_check(db_session, volunteer_id=profile.id)

    result = await record_result(
        db_session,
        check_id=check.id,
        status=BackgroundCheckStatus.PASSED,
        external_id="prov-123",
        notes="Clear",
        notifier=notifier,
    )

    assert result.status == BackgroundCheckStatus.PASSED
    assert result.external_id == "prov-123"
    assert result.completed_at is not None
    validity = ensure_aware(result.expires_at) - ensure_aware(result.completed_at)
    assert validity == timedelta(days=730)
    assert await has_passed_check(db_session, profile.id) is True
    assert notifier.types()[-1] == NotificationType.BACKGROUND_CHECK_COMPLETED.value


@pytest.mark.asyncio
@pytest.mark.unit
async def test_failed_result_has_no_expiry(db_session):
    profile = await persist(db_session, VolunteerProfileFactory.create())
    check, _ = await request_check(db_session, volunteer_id=profile.id)

    result = await record_result(
        db_session, check_id=check.id, status=BackgroundCheckStatus.FAILED
    )

    assert result.expires_at is None
    assert await has_passed_check(db_session, profile.id) is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_result_can_only_be_recorded_once(db_session):
    profile = await persist(db_session, VolunteerProfileFactory.create())
    check, _ = await request_check(db_session, volunteer_id=profile.id)
    check_id = check.id
    await record_result(db_session, check_id=check_id, status=BackgroundCheckStatus.PASSED)

    with pytest.raises(InvalidTransitionError) as exc_info:
        await record_result(db_session, check_id=check_id, status=BackgroundCheckStatus.FAILED)
    assert "already passed" in exc_info.value.detail
    with pytest.raises(InvalidTransitionError):
        await record_result(db_session, check_id=check_id, status=BackgroundCheckStatus.PENDING)
    unchanged = await get_status(db_session, profile.id)
    assert unchanged.status == BackgroundCheckStatus.PASSED
    with pytest.raises(NotFoundError):
        await record_result(
            db_session, check_id=uuid.uuid4(), status=BackgroundCheckStatus.PASSED
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_expired_check_does_not_count(db_session):
    profile = await persist(db_session, VolunteerProfileFactory.create())
    await persist(db_session, BackgroundCheckFactory.passed(profile.id, expires_in_days=-1))

    assert await has_passed_check(db_session, profile.id) is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_passed_check_without_expiry_counts(db_session):
    profile = await persist(db_session, VolunteerProfileFactory.create())
    await persist(
        db_session,
        BackgroundCheckFactory.create(
            profile.id, status=BackgroundCheckStatus.PASSED, completed_at=_now()
        ),
    )

    assert await has_passed_check(db_session, profile.id) is True


@pytest.mark.unit
def test_requires_check_rules():
    assert requires_check(OpportunityFactory.create(background_check_required=True))
    assert not requires_check(OpportunityFactory.create())
    assert not requires_check(OpportunityFactory.create(is_leadership_role=True))


# ---------------------------------------------------------------------------
# Renewal reminders
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_expiring_checks_window(db_session):
    profile = await persist(db_session, VolunteerProfileFactory.create())
    soon = BackgroundCheckFactory.passed(profile.id, expires_in_days=10)
    later = BackgroundCheckFactory.passed(profile.id, expires_in_days=90)
    expired = BackgroundCheckFactory.passed(profile.id, expires_in_days=-2)
    await persist(db_session, soon, later, expired)

    expiring = await list_expiring_checks(db_session, days_ahead=30)

    assert [c.id for c in expiring] == [soon.id]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_reminders_go_out_on_milestone_days(session_factory, notifier):
    async with session_factory() as setup:
        week = await persist(setup, VolunteerProfileFactory.create())
        twelve = await persist(setup, VolunteerProfileFactory.create())
        await persist(
            setup,
            BackgroundCheckFactory.passed(week.id, expires_in_days=7),
            BackgroundCheckFactory.passed(twelve.id, expires_in_days=12),
        )

    sent = await send_background_check_renewal_reminders(
        session_factory=session_factory, notifier=notifier
    )

    assert sent == 1
    [reminder] = notifier.sent
    assert reminder["recipient_id"] == week.member_auth_id
    assert reminder["type"] == NotificationType.BACKGROUND_CHECK_EXPIRING.value
    assert reminder["metadata"]["days_left"] == 7

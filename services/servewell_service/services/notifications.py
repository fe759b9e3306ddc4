"""Notification messages sent after workflow transitions.

Every helper here runs after the triggering transaction has committed.
Delivery failures are logged and swallowed so they can never undo a
transition.
"""

from typing import Any, Optional, Protocol

from libs.common.logging import get_logger
from services.servewell_service.models import (
    BackgroundCheck,
    NotificationType,
    Opportunity,
    Registration,
    VolunteerProfile,
)

logger = get_logger(__name__)


class Notifier(Protocol):
    async def notify(
        self,
        recipient_id: str,
        type: str,
        title: str,
        message: str,
        action_url: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> bool: ...


async def send(
    notifier: Optional[Notifier],
    *,
    recipient_id: str,
    type: NotificationType,
    title: str,
    message: str,
    action_url: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> None:
    if notifier is None:
        return
    try:
        delivered = await notifier.notify(
            recipient_id=recipient_id,
            type=type.value,
            title=title,
            message=message,
            action_url=action_url,
            metadata=metadata,
        )
    except Exception:
        logger.exception("Notification %s to %s failed", type.value, recipient_id)
        return
    if delivered is False:
        logger.warning("Notification %s to %s was not delivered", type.value, recipient_id)


def _volunteer_name(profile: Optional[VolunteerProfile]) -> str:
    if profile is not None and profile.display_name:
        return profile.display_name
    return "A volunteer"


async def application_submitted(
    notifier: Optional[Notifier],
    registration: Registration,
    opportunity: Opportunity,
    profile: VolunteerProfile,
) -> None:
    """Tell the coordinator about the new application and confirm it to the volunteer."""
    metadata = {
        "registration_id": str(registration.id),
        "opportunity_id": str(opportunity.id),
        "volunteer_id": str(profile.id),
    }
    await send(
        notifier,
        recipient_id=opportunity.created_by,
        type=NotificationType.APPLICATION_RECEIVED,
        title="New volunteer application",
        message=f"{_volunteer_name(profile)} applied to serve in {opportunity.title}.",
        action_url="/coordinator/registrations/pending",
        metadata=metadata,
    )
    await send(
        notifier,
        recipient_id=profile.member_auth_id,
        type=NotificationType.APPLICATION_SUBMITTED,
        title="Application submitted",
        message=(
            f"Thanks for offering to serve in {opportunity.title}. "
            "A coordinator will review your application soon."
        ),
        action_url="/volunteer/my-registrations",
        metadata=metadata,
    )


async def application_decided(
    notifier: Optional[Notifier],
    registration: Registration,
    opportunity: Opportunity,
    profile: VolunteerProfile,
    *,
    approved: bool,
    message: Optional[str] = None,
) -> None:
    if approved:
        title = "Application approved"
        body = f"You're confirmed to serve in {opportunity.title}."
        notification_type = NotificationType.APPLICATION_APPROVED
        action_url = "/volunteer/my-registrations"
    else:
        title = "Application update"
        body = (
            f"Your application for {opportunity.title} was not approved this time. "
            "We're looking for other places you could serve."
        )
        notification_type = NotificationType.APPLICATION_REJECTED
        action_url = "/volunteer/matches"
    if message:
        body = f"{body}\n\nMessage from the coordinator: {message}"

    await send(
        notifier,
        recipient_id=profile.member_auth_id,
        type=notification_type,
        title=title,
        message=body,
        action_url=action_url,
        metadata={
            "registration_id": str(registration.id),
            "opportunity_id": str(opportunity.id),
        },
    )


async def registration_cancelled(
    notifier: Optional[Notifier],
    registration: Registration,
    opportunity: Opportunity,
    profile: VolunteerProfile,
) -> None:
    await send(
        notifier,
        recipient_id=opportunity.created_by,
        type=NotificationType.REGISTRATION_CANCELLED,
        title="Volunteer withdrew",
        message=f"{_volunteer_name(profile)} withdrew from {opportunity.title}.",
        action_url=f"/coordinator/opportunities/{opportunity.id}",
        metadata={
            "registration_id": str(registration.id),
            "reason": registration.cancellation_reason,
        },
    )


async def background_check_requested(
    notifier: Optional[Notifier], check: BackgroundCheck, profile: VolunteerProfile
) -> None:
    await send(
        notifier,
        recipient_id=profile.member_auth_id,
        type=NotificationType.BACKGROUND_CHECK_REQUESTED,
        title="Background check requested",
        message=(
            f"A {check.check_type.value.replace('_', ' ')} background check has "
            "been requested. You'll be notified when it is complete."
        ),
        action_url="/volunteer/background-check",
        metadata={"check_id": str(check.id)},
    )


async def background_check_completed(
    notifier: Optional[Notifier], check: BackgroundCheck, profile: VolunteerProfile
) -> None:
    await send(
        notifier,
        recipient_id=profile.member_auth_id,
        type=NotificationType.BACKGROUND_CHECK_COMPLETED,
        title="Background check complete",
        message=f"Your background check result: {check.status.value}.",
        action_url="/volunteer/background-check",
        metadata={"check_id": str(check.id), "status": check.status.value},
    )


async def background_check_expiring(
    notifier: Optional[Notifier],
    check: BackgroundCheck,
    profile: VolunteerProfile,
    days_left: int,
) -> None:
    await send(
        notifier,
        recipient_id=profile.member_auth_id,
        type=NotificationType.BACKGROUND_CHECK_EXPIRING,
        title="Background check renewal",
        message=(
            f"Your background check expires in {days_left} day(s). "
            "Please request a renewal to keep serving in sensitive roles."
        ),
        action_url="/volunteer/background-check",
        metadata={"check_id": str(check.id), "days_left": days_left},
    )

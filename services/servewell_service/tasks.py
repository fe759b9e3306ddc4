"""Background tasks for ServeWell automation."""

from typing import Callable, Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import ensure_aware, utc_now
from libs.common.logging import get_logger
from libs.common.notification_client import get_notification_client
from libs.db.config import AsyncSessionLocal
from services.servewell_service.models import VolunteerProfile
from services.servewell_service.services import notifications
from services.servewell_service.services.eligibility import list_expiring_checks
from services.servewell_service.services.notifications import Notifier
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

# Days before expiry on which a reminder goes out
REMINDER_MILESTONES = (30, 7, 1)


async def send_background_check_renewal_reminders(
    session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
    notifier: Optional[Notifier] = None,
) -> int:
    """
    Remind volunteers whose passed background check is about to expire:
    - 30 days before (renewal window opens)
    - 7 days before
    - 1 day before

    Runs daily, so each milestone is hit exactly once per check.
    Returns the number of reminders sent.
    """
    notifier = notifier or get_notification_client()
    window = get_settings().BACKGROUND_CHECK_REMINDER_DAYS
    today = utc_now().date()
    sent = 0

    async with session_factory() as db:
        checks = await list_expiring_checks(db, days_ahead=window)
        for check in checks:
            days_left = (ensure_aware(check.expires_at).date() - today).days
            if days_left not in REMINDER_MILESTONES:
                continue

            profile = await db.get(VolunteerProfile, check.volunteer_id)
            if profile is None:
                continue
            await notifications.background_check_expiring(
                notifier, check, profile, days_left
            )
            sent += 1

    if sent:
        logger.info("Sent %d background check renewal reminders", sent)
    return sent

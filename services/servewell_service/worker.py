"""ARQ worker for ServeWell background tasks.

Schedules periodic tasks via ARQ cron jobs backed by Redis.
Run with: arq services.servewell_service.worker.WorkerSettings
"""

from arq import cron
from libs.common.arq_config import get_redis_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


# ── Wrapper functions (ARQ requires top-level async callables) ──


async def task_send_background_check_reminders(ctx: dict):
    """Remind volunteers whose background check is about to expire."""
    from services.servewell_service.tasks import (
        send_background_check_renewal_reminders,
    )

    logger.info("Running: send_background_check_renewal_reminders")
    await send_background_check_renewal_reminders()


# ── Worker configuration ──


class WorkerSettings:
    """ARQ worker settings with cron job schedules."""

    redis_settings = get_redis_settings()

    functions = [task_send_background_check_reminders]

    cron_jobs = [
        # Daily (7 AM UTC)
        cron(
            task_send_background_check_reminders,
            hour=7,
            minute=0,
            run_at_startup=False,
        ),
    ]

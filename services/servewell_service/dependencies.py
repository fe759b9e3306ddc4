"""FastAPI dependencies shared by the ServeWell routers."""

import uuid
from functools import lru_cache
from typing import Callable, Optional

from fastapi import HTTPException, status
from libs.auth.dependencies import is_coordinator
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.notification_client import get_notification_client
from libs.db.config import AsyncSessionLocal
from services.servewell_service.models import VolunteerProfile
from services.servewell_service.scoring.oracle import LLMScoringOracle, ScoringOracle
from services.servewell_service.services.notifications import Notifier
from services.servewell_service.services.profile_store import get_profile
from sqlalchemy.ext.asyncio import AsyncSession


@lru_cache
def _llm_oracle() -> LLMScoringOracle:
    return LLMScoringOracle(model=get_settings().AI_DEFAULT_MODEL)


def get_scoring_oracle() -> Optional[ScoringOracle]:
    """The oracle for scoring rounds; None sends every round to the fallback scorer."""
    if not get_settings().SCORING_ORACLE_ENABLED:
        return None
    return _llm_oracle()


def get_notifier() -> Notifier:
    return get_notification_client()


def get_session_factory() -> Callable[[], AsyncSession]:
    """Session factory for work that outlives the request, like background tasks."""
    return AsyncSessionLocal


async def get_owned_profile(
    db: AsyncSession, volunteer_id: uuid.UUID, current_user: AuthUser
) -> VolunteerProfile:
    """Load a profile the caller may act on: their own, or any for coordinators."""
    profile = await get_profile(db, volunteer_id)
    if profile.member_auth_id != current_user.user_id and not is_coordinator(
        current_user
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only act on your own volunteer profile",
        )
    return profile

"""ServeWell models package."""

from services.servewell_service.models.core import (
    BackgroundCheck,
    Match,
    Opportunity,
    Registration,
    VolunteerProfile,
)
from services.servewell_service.models.enums import (
    BackgroundCheckStatus,
    BackgroundCheckType,
    NotificationType,
    OpportunityPriority,
    OpportunityStatus,
    ProfileStatus,
    RecommendationTier,
    RegistrationDecision,
    RegistrationStatus,
    ScoreSource,
    ServingStyle,
    SpiritualGift,
    VolunteerResponse,
    enum_values,
)

__all__ = [
    "BackgroundCheck",
    "BackgroundCheckStatus",
    "BackgroundCheckType",
    "Match",
    "NotificationType",
    "Opportunity",
    "OpportunityPriority",
    "OpportunityStatus",
    "ProfileStatus",
    "RecommendationTier",
    "Registration",
    "RegistrationDecision",
    "RegistrationStatus",
    "ScoreSource",
    "ServingStyle",
    "SpiritualGift",
    "VolunteerProfile",
    "VolunteerResponse",
    "enum_values",
]

from services.servewell_service.schemas.main import (
    AssessmentResult,
    AssessmentSubmission,
    BackgroundCheckRequest,
    BackgroundCheckResponse,
    BackgroundCheckResultRequest,
    MatchAcceptRequest,
    MatchResponse,
    OpportunityCreate,
    OpportunityResponse,
    OpportunitySummary,
    PendingRegistrationResponse,
    RegistrationCancelRequest,
    RegistrationDecisionRequest,
    RegistrationResponse,
    SpiritualGiftInfo,
    VolunteerProfileResponse,
    VolunteerStatsResponse,
)

__all__ = [
    "AssessmentResult",
    "AssessmentSubmission",
    "BackgroundCheckRequest",
    "BackgroundCheckResponse",
    "BackgroundCheckResultRequest",
    "MatchAcceptRequest",
    "MatchResponse",
    "OpportunityCreate",
    "OpportunityResponse",
    "OpportunitySummary",
    "PendingRegistrationResponse",
    "RegistrationCancelRequest",
    "RegistrationDecisionRequest",
    "RegistrationResponse",
    "SpiritualGiftInfo",
    "VolunteerProfileResponse",
    "VolunteerStatsResponse",
]

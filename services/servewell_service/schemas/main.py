"""Pydantic schemas for the ServeWell API."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)
from services.servewell_service.models import (
    BackgroundCheckStatus,
    BackgroundCheckType,
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
)

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def _clean_terms(values: Optional[list[str]]) -> Optional[list[str]]:
    """Trim, drop blanks and de-duplicate free-text tags, keeping first-seen order."""
    if values is None:
        return None
    seen: dict[str, str] = {}
    for value in values:
        term = value.strip()
        if term:
            seen.setdefault(term.lower(), term)
    return list(seen.values())


# ============================================================================
# ASSESSMENT / PROFILE SCHEMAS
# ============================================================================


class AssessmentSubmission(BaseModel):
    """Answers to the spiritual gifts questionnaire plus self-declared preferences.

    ``responses`` maps each gift to the 1-5 agreement ratings given for its
    statements. Fields left out of the payload are not touched on re-assessment.
    """

    organization_id: uuid.UUID
    responses: dict[SpiritualGift, list[int]] = Field(..., min_length=1)
    display_name: Optional[str] = Field(None, max_length=200)
    email: Optional[EmailStr] = None
    serving_style: Optional[ServingStyle] = None
    ministry_passions: Optional[list[str]] = None
    skills: Optional[list[str]] = None
    availability: Optional[list[str]] = None

    @field_validator("responses")
    @classmethod
    def validate_ratings(cls, v: dict[SpiritualGift, list[int]]):
        for gift, ratings in v.items():
            if not ratings:
                raise ValueError(f"No ratings supplied for {gift.value}")
            if any(r < 1 or r > 5 for r in ratings):
                raise ValueError(f"Ratings for {gift.value} must be between 1 and 5")
        return v

    @field_validator("ministry_passions", "skills")
    @classmethod
    def clean_terms(cls, v: Optional[list[str]]):
        return _clean_terms(v)

    @field_validator("availability")
    @classmethod
    def validate_availability(cls, v: Optional[list[str]]):
        if v is None:
            return v
        days = [d.strip().lower() for d in v]
        unknown = [d for d in days if d not in WEEKDAYS]
        if unknown:
            raise ValueError(f"Unknown weekday(s): {', '.join(unknown)}")
        return [d for d in WEEKDAYS if d in days]


class AssessmentResult(BaseModel):
    """Scored assessment ready to be merged into a profile."""

    spiritual_gifts: list[SpiritualGift]
    gift_scores: dict[SpiritualGift, int]
    display_name: Optional[str] = None
    email: Optional[str] = None
    serving_style: Optional[ServingStyle] = None
    ministry_passions: Optional[list[str]] = None
    skills: Optional[list[str]] = None
    availability: Optional[list[str]] = None


class VolunteerProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    member_auth_id: str
    organization_id: uuid.UUID
    display_name: Optional[str] = None
    email: Optional[str] = None
    spiritual_gifts: list[str] = []
    gift_scores: dict[str, int] = {}
    serving_style: Optional[ServingStyle] = None
    ministry_passions: list[str] = []
    skills: list[str] = []
    availability: list[str] = []
    status: ProfileStatus
    created_at: datetime
    updated_at: datetime


class SpiritualGiftInfo(BaseModel):
    gift: SpiritualGift
    name: str
    category: str
    description: str


class VolunteerStatsResponse(BaseModel):
    """Registration history counts for one volunteer.

    ``success_rate`` is the percentage of registrations that were confirmed,
    0 when the volunteer has never applied.
    """

    volunteer_id: uuid.UUID
    total_registrations: int
    pending_registrations: int
    confirmed_registrations: int
    cancelled_registrations: int
    success_rate: float


# ============================================================================
# OPPORTUNITY SCHEMAS
# ============================================================================


class OpportunityCreate(BaseModel):
    organization_id: uuid.UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    ministry: Optional[str] = Field(None, max_length=120)
    required_gifts: list[SpiritualGift] = []
    required_skills: list[str] = []
    time_commitment: Optional[str] = Field(None, max_length=120)
    location: Optional[str] = Field(None, max_length=200)
    priority: OpportunityPriority = OpportunityPriority.MEDIUM
    volunteers_needed: int = Field(1, ge=1, le=50)
    background_check_required: bool = False
    is_leadership_role: bool = False
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("required_skills")
    @classmethod
    def clean_skills(cls, v: list[str]):
        return _clean_terms(v)

    @field_validator("required_gifts")
    @classmethod
    def dedupe_gifts(cls, v: list[SpiritualGift]):
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class OpportunitySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    ministry: Optional[str] = None
    time_commitment: Optional[str] = None
    location: Optional[str] = None
    status: OpportunityStatus


class OpportunityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    organization_id: uuid.UUID
    title: str
    description: Optional[str] = None
    ministry: Optional[str] = None
    required_gifts: list[str] = []
    required_skills: list[str] = []
    time_commitment: Optional[str] = None
    location: Optional[str] = None
    priority: OpportunityPriority
    volunteers_needed: int
    volunteers_registered: int
    seats_remaining: int
    background_check_required: bool
    is_leadership_role: bool
    status: OpportunityStatus
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_by: str
    created_at: datetime
    updated_at: datetime


# ============================================================================
# MATCH SCHEMAS
# ============================================================================


class MatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    volunteer_id: uuid.UUID
    opportunity_id: uuid.UUID
    scoring_round_id: uuid.UUID
    spiritual_fit_score: float
    skill_fit_score: float
    availability_score: float
    passion_score: float
    divine_appointment_score: float
    recommendation_tier: RecommendationTier
    score_source: ScoreSource
    explanation: Optional[str] = None
    reasons: list[str] = []
    volunteer_response: VolunteerResponse
    responded_at: Optional[datetime] = None
    created_at: datetime
    opportunity: Optional[OpportunitySummary] = None


class MatchAcceptRequest(BaseModel):
    volunteer_id: uuid.UUID
    notes: Optional[str] = Field(None, max_length=2000)


# ============================================================================
# REGISTRATION SCHEMAS
# ============================================================================


class RegistrationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    volunteer_id: uuid.UUID
    opportunity_id: uuid.UUID
    match_id: uuid.UUID
    status: RegistrationStatus
    notes: Optional[str] = None
    registered_at: datetime
    decided_at: Optional[datetime] = None
    decided_by: Optional[str] = None
    coordinator_message: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    opportunity: Optional[OpportunitySummary] = None


class PendingRegistrationResponse(RegistrationResponse):
    """Coordinator view: the registration plus who applied."""

    volunteer_name: Optional[str] = None
    volunteer_email: Optional[str] = None
    match_score: Optional[float] = None


class RegistrationDecisionRequest(BaseModel):
    decision: RegistrationDecision
    message: Optional[str] = Field(None, max_length=2000)


class RegistrationCancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=2000)


# ============================================================================
# BACKGROUND CHECK SCHEMAS
# ============================================================================


class BackgroundCheckRequest(BaseModel):
    volunteer_id: uuid.UUID
    check_type: BackgroundCheckType = BackgroundCheckType.BASIC


class BackgroundCheckResultRequest(BaseModel):
    status: BackgroundCheckStatus
    notes: Optional[str] = Field(None, max_length=2000)
    external_id: Optional[str] = Field(None, max_length=255)

    @field_validator("status")
    @classmethod
    def must_be_final(cls, v: BackgroundCheckStatus):
        if v == BackgroundCheckStatus.PENDING:
            raise ValueError("A result must be passed or failed")
        return v


class BackgroundCheckResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    volunteer_id: uuid.UUID
    check_type: BackgroundCheckType
    status: BackgroundCheckStatus
    provider: Optional[str] = None
    external_id: Optional[str] = None
    requested_at: datetime
    completed_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    notes: Optional[str] = None

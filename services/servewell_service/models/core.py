"""ServeWell ORM models: profiles, opportunities, matches, registrations, checks."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy import (
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from services.servewell_service.models.enums import (
    BackgroundCheckStatus,
    BackgroundCheckType,
    OpportunityPriority,
    OpportunityStatus,
    ProfileStatus,
    RecommendationTier,
    RegistrationStatus,
    ScoreSource,
    ServingStyle,
    VolunteerResponse,
    enum_values,
)

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _enum(enum_cls, name: str) -> SAEnum:
    return SAEnum(
        enum_cls,
        name=name,
        values_callable=enum_values,
        create_constraint=False,
        validate_strings=True,
    )


# ============================================================================
# PROFILES
# ============================================================================


class VolunteerProfile(Base):
    """A member's volunteer identity within one organization."""

    __tablename__ = "volunteer_profiles"
    __table_args__ = (
        UniqueConstraint(
            "member_auth_id",
            "organization_id",
            name="uq_volunteer_profiles_member_org",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    member_auth_id: Mapped[str] = mapped_column(String(255), index=True)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    display_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    spiritual_gifts: Mapped[list] = mapped_column(JSONType, default=list)
    gift_scores: Mapped[dict] = mapped_column(JSONType, default=dict)
    serving_style: Mapped[Optional[ServingStyle]] = mapped_column(
        _enum(ServingStyle, "serving_style"), nullable=True
    )
    ministry_passions: Mapped[list] = mapped_column(JSONType, default=list)
    skills: Mapped[list] = mapped_column(JSONType, default=list)
    availability: Mapped[list] = mapped_column(JSONType, default=list)

    status: Mapped[ProfileStatus] = mapped_column(
        _enum(ProfileStatus, "volunteer_profile_status"),
        default=ProfileStatus.ACTIVE,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    def __repr__(self) -> str:
        return f"<VolunteerProfile {self.member_auth_id} org={self.organization_id}>"


# ============================================================================
# OPPORTUNITIES
# ============================================================================


class Opportunity(Base):
    """A posted serving need with a fixed number of seats."""

    __tablename__ = "volunteer_opportunities"
    __table_args__ = (
        CheckConstraint("volunteers_needed >= 1", name="volunteers_needed_positive"),
        CheckConstraint(
            "volunteers_registered >= 0 AND volunteers_registered <= volunteers_needed",
            name="registered_within_capacity",
        ),
        Index(
            "ix_volunteer_opportunities_org_status",
            "organization_id",
            "status",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ministry: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    required_gifts: Mapped[list] = mapped_column(JSONType, default=list)
    required_skills: Mapped[list] = mapped_column(JSONType, default=list)
    time_commitment: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    priority: Mapped[OpportunityPriority] = mapped_column(
        _enum(OpportunityPriority, "opportunity_priority"),
        default=OpportunityPriority.MEDIUM,
    )

    volunteers_needed: Mapped[int] = mapped_column(Integer, default=1)
    # Only the application workflow writes this column
    volunteers_registered: Mapped[int] = mapped_column(Integer, default=0)
    background_check_required: Mapped[bool] = mapped_column(Boolean, default=False)
    is_leadership_role: Mapped[bool] = mapped_column(Boolean, default=False)

    status: Mapped[OpportunityStatus] = mapped_column(
        _enum(OpportunityStatus, "servewell_opportunity_status"),
        default=OpportunityStatus.OPEN,
    )
    start_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    end_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_by: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    @property
    def seats_remaining(self) -> int:
        return max(self.volunteers_needed - self.volunteers_registered, 0)

    def __repr__(self) -> str:
        return (
            f"<Opportunity {self.title} "
            f"{self.volunteers_registered}/{self.volunteers_needed} {self.status}>"
        )


# ============================================================================
# MATCHES
# ============================================================================


class Match(Base):
    """One scored pairing of a volunteer with an opportunity."""

    __tablename__ = "volunteer_matches"
    __table_args__ = (
        # At most one live (non-rejected) match per volunteer/opportunity pair
        Index(
            "uq_volunteer_matches_active_pair",
            "volunteer_id",
            "opportunity_id",
            unique=True,
            postgresql_where=text("volunteer_response <> 'rejected'"),
            sqlite_where=text("volunteer_response <> 'rejected'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    volunteer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("volunteer_profiles.id", ondelete="CASCADE"), index=True
    )
    opportunity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("volunteer_opportunities.id", ondelete="CASCADE"), index=True
    )
    scoring_round_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)

    spiritual_fit_score: Mapped[float] = mapped_column(Float)
    skill_fit_score: Mapped[float] = mapped_column(Float)
    availability_score: Mapped[float] = mapped_column(Float)
    passion_score: Mapped[float] = mapped_column(Float)
    divine_appointment_score: Mapped[float] = mapped_column(Float)
    recommendation_tier: Mapped[RecommendationTier] = mapped_column(
        _enum(RecommendationTier, "recommendation_tier")
    )
    score_source: Mapped[ScoreSource] = mapped_column(
        _enum(ScoreSource, "score_source")
    )
    explanation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reasons: Mapped[list] = mapped_column(JSONType, default=list)

    volunteer_response: Mapped[VolunteerResponse] = mapped_column(
        _enum(VolunteerResponse, "volunteer_response"),
        default=VolunteerResponse.NONE,
    )
    responded_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    opportunity: Mapped["Opportunity"] = relationship(lazy="selectin")

    def __repr__(self) -> str:
        return (
            f"<Match volunteer={self.volunteer_id} opportunity={self.opportunity_id} "
            f"score={self.divine_appointment_score} {self.volunteer_response}>"
        )


# ============================================================================
# REGISTRATIONS
# ============================================================================


class Registration(Base):
    """A volunteer's application for an opportunity, pending coordinator review."""

    __tablename__ = "volunteer_registrations"
    __table_args__ = (
        Index(
            "uq_volunteer_registrations_active_pair",
            "volunteer_id",
            "opportunity_id",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    volunteer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("volunteer_profiles.id", ondelete="CASCADE"), index=True
    )
    opportunity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("volunteer_opportunities.id", ondelete="CASCADE"), index=True
    )
    match_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("volunteer_matches.id", ondelete="CASCADE"), unique=True
    )
    status: Mapped[RegistrationStatus] = mapped_column(
        _enum(RegistrationStatus, "registration_status"),
        default=RegistrationStatus.PENDING_APPROVAL,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    decided_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    decided_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    coordinator_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    opportunity: Mapped["Opportunity"] = relationship(lazy="selectin")
    volunteer: Mapped["VolunteerProfile"] = relationship(lazy="selectin")

    def __repr__(self) -> str:
        return f"<Registration {self.id} {self.status}>"


# ============================================================================
# ELIGIBILITY
# ============================================================================


class BackgroundCheck(Base):
    """A background check requested for a volunteer, verified externally."""

    __tablename__ = "background_checks"
    __table_args__ = (
        Index(
            "uq_background_checks_pending_type",
            "volunteer_id",
            "check_type",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    volunteer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("volunteer_profiles.id", ondelete="CASCADE"), index=True
    )
    check_type: Mapped[BackgroundCheckType] = mapped_column(
        _enum(BackgroundCheckType, "background_check_type"),
        default=BackgroundCheckType.BASIC,
    )
    status: Mapped[BackgroundCheckStatus] = mapped_column(
        _enum(BackgroundCheckStatus, "background_check_status"),
        default=BackgroundCheckStatus.PENDING,
    )
    provider: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    external_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<BackgroundCheck {self.check_type} {self.status}>"

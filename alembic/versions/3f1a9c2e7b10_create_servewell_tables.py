"""create_servewell_tables

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "3f1a9c2e7b10"
down_revision = None
branch_labels = None
depends_on = None


def _enum(name: str, *values: str) -> sa.Enum:
    return sa.Enum(*values, name=name)


SERVING_STYLE = _enum("serving_style", "hands_on", "behind_scenes", "leadership", "support")
PROFILE_STATUS = _enum("volunteer_profile_status", "active", "inactive")
OPPORTUNITY_PRIORITY = _enum("opportunity_priority", "low", "medium", "high", "urgent")
OPPORTUNITY_STATUS = _enum("servewell_opportunity_status", "open", "filled", "closed")
RECOMMENDATION_TIER = _enum(
    "recommendation_tier",
    "highly_recommended",
    "recommended",
    "consider",
    "not_recommended",
)
SCORE_SOURCE = _enum("score_source", "oracle", "fallback")
VOLUNTEER_RESPONSE = _enum("volunteer_response", "none", "applied", "approved", "rejected")
REGISTRATION_STATUS = _enum(
    "registration_status", "pending_approval", "confirmed", "cancelled"
)
CHECK_TYPE = _enum("background_check_type", "basic", "comprehensive", "child_protection")
CHECK_STATUS = _enum("background_check_status", "pending", "passed", "failed")

ALL_ENUMS = (
    SERVING_STYLE,
    PROFILE_STATUS,
    OPPORTUNITY_PRIORITY,
    OPPORTUNITY_STATUS,
    RECOMMENDATION_TIER,
    SCORE_SOURCE,
    VOLUNTEER_RESPONSE,
    REGISTRATION_STATUS,
    CHECK_TYPE,
    CHECK_STATUS,
)

JSONB = postgresql.JSONB(astext_type=sa.Text())


def upgrade() -> None:
    op.create_table(
        "volunteer_profiles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("member_auth_id", sa.String(length=255), nullable=False),
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        sa.Column("display_name", sa.String(length=200), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("spiritual_gifts", JSONB, nullable=False),
        sa.Column("gift_scores", JSONB, nullable=False),
        sa.Column("serving_style", SERVING_STYLE, nullable=True),
        sa.Column("ministry_passions", JSONB, nullable=False),
        sa.Column("skills", JSONB, nullable=False),
        sa.Column("availability", JSONB, nullable=False),
        sa.Column("status", PROFILE_STATUS, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_volunteer_profiles"),
        sa.UniqueConstraint(
            "member_auth_id", "organization_id", name="uq_volunteer_profiles_member_org"
        ),
    )
    op.create_index(
        "ix_volunteer_profiles_member_auth_id", "volunteer_profiles", ["member_auth_id"]
    )
    op.create_index(
        "ix_volunteer_profiles_organization_id", "volunteer_profiles", ["organization_id"]
    )

    op.create_table(
        "volunteer_opportunities",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("ministry", sa.String(length=120), nullable=True),
        sa.Column("required_gifts", JSONB, nullable=False),
        sa.Column("required_skills", JSONB, nullable=False),
        sa.Column("time_commitment", sa.String(length=120), nullable=True),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("priority", OPPORTUNITY_PRIORITY, nullable=False),
        sa.Column("volunteers_needed", sa.Integer(), nullable=False),
        sa.Column("volunteers_registered", sa.Integer(), nullable=False),
        sa.Column("background_check_required", sa.Boolean(), nullable=False),
        sa.Column("is_leadership_role", sa.Boolean(), nullable=False),
        sa.Column("status", OPPORTUNITY_STATUS, nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_volunteer_opportunities"),
        sa.CheckConstraint(
            "volunteers_needed >= 1",
            name="ck_volunteer_opportunities_volunteers_needed_positive",
        ),
        sa.CheckConstraint(
            "volunteers_registered >= 0 AND volunteers_registered <= volunteers_needed",
            name="ck_volunteer_opportunities_registered_within_capacity",
        ),
    )
    op.create_index(
        "ix_volunteer_opportunities_org_status",
        "volunteer_opportunities",
        ["organization_id", "status"],
    )

    op.create_table(
        "volunteer_matches",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("volunteer_id", sa.Uuid(), nullable=False),
        sa.Column("opportunity_id", sa.Uuid(), nullable=False),
        sa.Column("scoring_round_id", sa.Uuid(), nullable=False),
        sa.Column("spiritual_fit_score", sa.Float(), nullable=False),
        sa.Column("skill_fit_score", sa.Float(), nullable=False),
        sa.Column("availability_score", sa.Float(), nullable=False),
        sa.Column("passion_score", sa.Float(), nullable=False),
        sa.Column("divine_appointment_score", sa.Float(), nullable=False),
        sa.Column("recommendation_tier", RECOMMENDATION_TIER, nullable=False),
        sa.Column("score_source", SCORE_SOURCE, nullable=False),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("reasons", JSONB, nullable=False),
        sa.Column("volunteer_response", VOLUNTEER_RESPONSE, nullable=False),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_volunteer_matches"),
        sa.ForeignKeyConstraint(
            ["volunteer_id"],
            ["volunteer_profiles.id"],
            name="fk_volunteer_matches_volunteer_id_volunteer_profiles",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["opportunity_id"],
            ["volunteer_opportunities.id"],
            name="fk_volunteer_matches_opportunity_id_volunteer_opportunities",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_volunteer_matches_volunteer_id", "volunteer_matches", ["volunteer_id"])
    op.create_index(
        "ix_volunteer_matches_opportunity_id", "volunteer_matches", ["opportunity_id"]
    )
    op.create_index(
        "ix_volunteer_matches_scoring_round_id", "volunteer_matches", ["scoring_round_id"]
    )
    op.create_index(
        "uq_volunteer_matches_active_pair",
        "volunteer_matches",
        ["volunteer_id", "opportunity_id"],
        unique=True,
        postgresql_where=sa.text("volunteer_response <> 'rejected'"),
    )

    op.create_table(
        "volunteer_registrations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("volunteer_id", sa.Uuid(), nullable=False),
        sa.Column("opportunity_id", sa.Uuid(), nullable=False),
        sa.Column("match_id", sa.Uuid(), nullable=False),
        sa.Column("status", REGISTRATION_STATUS, nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decided_by", sa.String(length=255), nullable=True),
        sa.Column("coordinator_message", sa.Text(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_volunteer_registrations"),
        sa.UniqueConstraint("match_id", name="uq_volunteer_registrations_match_id"),
        sa.ForeignKeyConstraint(
            ["volunteer_id"],
            ["volunteer_profiles.id"],
            name="fk_volunteer_registrations_volunteer_id_volunteer_profiles",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["opportunity_id"],
            ["volunteer_opportunities.id"],
            name="fk_volunteer_registrations_opportunity_id_volunteer_opportunities",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["match_id"],
            ["volunteer_matches.id"],
            name="fk_volunteer_registrations_match_id_volunteer_matches",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "ix_volunteer_registrations_volunteer_id",
        "volunteer_registrations",
        ["volunteer_id"],
    )
    op.create_index(
        "ix_volunteer_registrations_opportunity_id",
        "volunteer_registrations",
        ["opportunity_id"],
    )
    op.create_index(
        "uq_volunteer_registrations_active_pair",
        "volunteer_registrations",
        ["volunteer_id", "opportunity_id"],
        unique=True,
        postgresql_where=sa.text("status <> 'cancelled'"),
    )

    op.create_table(
        "background_checks",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("volunteer_id", sa.Uuid(), nullable=False),
        sa.Column("check_type", CHECK_TYPE, nullable=False),
        sa.Column("status", CHECK_STATUS, nullable=False),
        sa.Column("provider", sa.String(length=100), nullable=True),
        sa.Column("external_id", sa.String(length=255), nullable=True),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_background_checks"),
        sa.ForeignKeyConstraint(
            ["volunteer_id"],
            ["volunteer_profiles.id"],
            name="fk_background_checks_volunteer_id_volunteer_profiles",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "ix_background_checks_volunteer_id", "background_checks", ["volunteer_id"]
    )
    op.create_index(
        "uq_background_checks_pending_type",
        "background_checks",
        ["volunteer_id", "check_type"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )


def downgrade() -> None:
    op.drop_table("background_checks")
    op.drop_table("volunteer_registrations")
    op.drop_table("volunteer_matches")
    op.drop_table("volunteer_opportunities")
    op.drop_table("volunteer_profiles")

    bind = op.get_bind()
    for enum_type in ALL_ENUMS:
        enum_type.drop(bind, checkfirst=True)

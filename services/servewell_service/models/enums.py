"""Enum definitions for ServeWell models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class SpiritualGift(str, enum.Enum):
    ADMINISTRATION = "administration"
    APOSTLESHIP = "apostleship"
    DISCERNMENT = "discernment"
    EVANGELISM = "evangelism"
    EXHORTATION = "exhortation"
    FAITH = "faith"
    GIVING = "giving"
    HELPS = "helps"
    HOSPITALITY = "hospitality"
    KNOWLEDGE = "knowledge"
    LEADERSHIP = "leadership"
    MERCY = "mercy"
    PROPHECY = "prophecy"
    SERVICE = "service"
    TEACHING = "teaching"
    TONGUES = "tongues"
    INTERPRETATION = "interpretation"
    WISDOM = "wisdom"
    HEALING = "healing"
    MIRACLES = "miracles"


class ServingStyle(str, enum.Enum):
    HANDS_ON = "hands_on"
    BEHIND_SCENES = "behind_scenes"
    LEADERSHIP = "leadership"
    SUPPORT = "support"


class ProfileStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class OpportunityStatus(str, enum.Enum):
    OPEN = "open"
    FILLED = "filled"
    CLOSED = "closed"


class OpportunityPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class RecommendationTier(str, enum.Enum):
    HIGHLY_RECOMMENDED = "highly_recommended"
    RECOMMENDED = "recommended"
    CONSIDER = "consider"
    NOT_RECOMMENDED = "not_recommended"


class ScoreSource(str, enum.Enum):
    ORACLE = "oracle"
    FALLBACK = "fallback"


class VolunteerResponse(str, enum.Enum):
    NONE = "none"
    APPLIED = "applied"
    APPROVED = "approved"
    REJECTED = "rejected"


class RegistrationStatus(str, enum.Enum):
    PENDING_APPROVAL = "pending_approval"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class RegistrationDecision(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


class BackgroundCheckType(str, enum.Enum):
    BASIC = "basic"
    COMPREHENSIVE = "comprehensive"
    CHILD_PROTECTION = "child_protection"


class BackgroundCheckStatus(str, enum.Enum):
    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"


class NotificationType(str, enum.Enum):
    APPLICATION_SUBMITTED = "application_submitted"
    APPLICATION_RECEIVED = "application_received"
    APPLICATION_APPROVED = "application_approved"
    APPLICATION_REJECTED = "application_rejected"
    REGISTRATION_CANCELLED = "registration_cancelled"
    BACKGROUND_CHECK_REQUESTED = "background_check_requested"
    BACKGROUND_CHECK_COMPLETED = "background_check_completed"
    BACKGROUND_CHECK_EXPIRING = "background_check_expiring"

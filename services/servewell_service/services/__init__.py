"""ServeWell service layer."""

from services.servewell_service.services.eligibility import (
    get_status,
    has_passed_check,
    list_expiring_checks,
    record_result,
    request_check,
)
from services.servewell_service.services.match_engine import (
    find_matches,
    get_registration,
    list_pending_matches,
    respond_to_match,
)
from services.servewell_service.services.profile_store import (
    close_opportunity,
    create_opportunity,
    deactivate_profile,
    get_opportunity,
    get_profile,
    get_profile_for_member,
    list_open_opportunities,
    list_profiles,
    upsert_assessment,
)
from services.servewell_service.services.workflow import (
    approve_registration,
    cancel_registration,
    decide_registration,
    get_volunteer_stats,
    list_pending_registrations,
    list_registrations_for_volunteer,
    reject_registration,
    suggest_alternative_matches,
)

__all__ = [
    "approve_registration",
    "cancel_registration",
    "close_opportunity",
    "create_opportunity",
    "deactivate_profile",
    "decide_registration",
    "find_matches",
    "get_opportunity",
    "get_profile",
    "get_profile_for_member",
    "get_registration",
    "get_status",
    "get_volunteer_stats",
    "has_passed_check",
    "list_expiring_checks",
    "list_open_opportunities",
    "list_pending_matches",
    "list_pending_registrations",
    "list_profiles",
    "list_registrations_for_volunteer",
    "record_result",
    "reject_registration",
    "request_check",
    "respond_to_match",
    "suggest_alternative_matches",
    "upsert_assessment",
]

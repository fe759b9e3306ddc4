"""Scoring oracle: the external, non-deterministic scorer.

The oracle receives a profile summary plus candidate opportunities and
returns per-opportunity component scores with a short rationale. The
production oracle is an LLM prompt; tests inject their own implementation.
"""

import json
import uuid
from typing import Optional, Protocol

from libs.common.logging import get_logger
from pydantic import BaseModel, ConfigDict, Field
from services.servewell_service.models import Opportunity, VolunteerProfile
from services.servewell_service.providers.base import call_llm

logger = get_logger(__name__)

SYSTEM_PROMPT = """You are a volunteer placement advisor for a local church community.

Your task is to score how well one volunteer fits each serving opportunity, based on:
1. Spiritual gifts: does the volunteer carry the gifts the ministry relies on?
2. Skills: does the volunteer bring the practical skills the role needs?
3. Availability: does the volunteer's week fit the time commitment?
4. Passion: does the ministry line up with what the volunteer cares about?

For each opportunity, assign four scores from 0.0 to 1.0 (1.0 = perfect fit),
a one or two sentence explanation, and up to three short reasons.
Do not compute an overall score.

Return valid JSON matching the specified schema."""

USER_PROMPT_TEMPLATE = """Score this volunteer against every opportunity below.

VOLUNTEER:
{profile_json}

OPPORTUNITIES:
{opportunities_json}

Return JSON with this exact structure:
{{
    "matches": [
        {{
            "opportunityId": "<uuid>",
            "spiritualFitScore": <0-1>,
            "skillFitScore": <0-1>,
            "availabilityScore": <0-1>,
            "passionScore": <0-1>,
            "explanation": "<why>",
            "reasons": ["<reason>", ...]
        }},
        ...
    ]
}}

Include one entry per opportunity id listed above."""


class ScoringOracle(Protocol):
    async def score(self, request: dict) -> dict: ...


class OracleMatch(BaseModel):
    """One oracle-scored item. Anything that fails validation is discarded."""

    model_config = ConfigDict(populate_by_name=True)

    opportunity_id: uuid.UUID = Field(..., alias="opportunityId")
    spiritual_fit_score: float = Field(..., alias="spiritualFitScore", ge=0, le=1, strict=True)
    skill_fit_score: float = Field(..., alias="skillFitScore", ge=0, le=1, strict=True)
    availability_score: float = Field(..., alias="availabilityScore", ge=0, le=1, strict=True)
    passion_score: float = Field(..., alias="passionScore", ge=0, le=1, strict=True)
    explanation: Optional[str] = None
    reasons: list[str] = []


def summarize_profile(profile: VolunteerProfile) -> dict:
    return {
        "spiritualGifts": list(profile.spiritual_gifts or []),
        "giftScores": dict(profile.gift_scores or {}),
        "servingStyle": profile.serving_style.value if profile.serving_style else None,
        "ministryPassions": list(profile.ministry_passions or []),
        "skills": list(profile.skills or []),
        "availability": list(profile.availability or []),
    }


def summarize_opportunity(opportunity: Opportunity) -> dict:
    return {
        "id": str(opportunity.id),
        "title": opportunity.title,
        "description": opportunity.description,
        "ministry": opportunity.ministry,
        "spiritualGifts": list(opportunity.required_gifts or []),
        "requiredSkills": list(opportunity.required_skills or []),
        "timeCommitment": opportunity.time_commitment,
        "isLeadershipRole": opportunity.is_leadership_role,
        "backgroundCheckRequired": opportunity.background_check_required,
    }


def build_oracle_request(
    profile: VolunteerProfile, opportunities: list[Opportunity]
) -> dict:
    return {
        "profile": summarize_profile(profile),
        "opportunities": [summarize_opportunity(o) for o in opportunities],
    }


class LLMScoringOracle:
    """Oracle backed by an LLM prompt routed through LiteLLM."""

    def __init__(self, model: Optional[str] = None):
        self.model = model

    async def score(self, request: dict) -> dict:
        user_prompt = USER_PROMPT_TEMPLATE.format(
            profile_json=json.dumps(request["profile"], indent=2),
            opportunities_json=json.dumps(request["opportunities"], indent=2),
        )
        ai_response = await call_llm(
            system_prompt=SYSTEM_PROMPT,
            user_prompt=user_prompt,
            model=self.model,
            response_format={"type": "json_object"},
        )
        logger.info(
            "Oracle scored %d opportunities with %s in %dms",
            len(request["opportunities"]),
            ai_response.model,
            ai_response.latency_ms,
        )
        return ai_response.parse_json()

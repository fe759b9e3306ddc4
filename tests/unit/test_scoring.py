"""Unit tests for the scoring adapter, fallback heuristic, and composite mapping.

No database involved: profiles and opportunities are transient model objects.
"""

import asyncio
import uuid

import pytest
from services.servewell_service.errors import ScoringUnavailableError
from services.servewell_service.models import RecommendationTier, ScoreSource
from services.servewell_service.scoring.adapter import score_opportunities
from services.servewell_service.scoring.composite import (
    build_result,
    composite_score,
    recommendation_tier,
)
from services.servewell_service.scoring.fallback import fallback_score, overlap_ratio
from services.servewell_service.scoring.oracle import build_oracle_request
from tests.conftest import StubOracle, oracle_item
from tests.factories import OpportunityFactory, VolunteerProfileFactory


# ---------------------------------------------------------------------------
# Composite & tiers
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_composite_score_uses_weights():
    assert composite_score(1.0, 1.0, 1.0, 1.0) == pytest.approx(1.0)
    assert composite_score(0.0, 0.0, 0.0, 0.0) == 0.0
    assert composite_score(1.0, 0.0, 0.0, 0.0) == pytest.approx(0.4)
    assert composite_score(0.0, 1.0, 0.0, 0.0) == pytest.approx(0.3)
    assert composite_score(0.0, 0.0, 1.0, 0.0) == pytest.approx(0.2)
    assert composite_score(0.0, 0.0, 0.0, 1.0) == pytest.approx(0.1)


@pytest.mark.unit
@pytest.mark.parametrize(
    "score,tier",
    [
        (1.0, RecommendationTier.HIGHLY_RECOMMENDED),
        (0.85, RecommendationTier.HIGHLY_RECOMMENDED),
        (0.8499, RecommendationTier.RECOMMENDED),
        (0.65, RecommendationTier.RECOMMENDED),
        (0.6499, RecommendationTier.CONSIDER),
        (0.4, RecommendationTier.CONSIDER),
        (0.3999, RecommendationTier.NOT_RECOMMENDED),
        (0.0, RecommendationTier.NOT_RECOMMENDED),
    ],
)
def test_recommendation_tier_boundaries(score, tier):
    assert recommendation_tier(score) == tier


@pytest.mark.unit
def test_build_result_derives_composite_and_tier():
    result = build_result(
        uuid.uuid4(),
        spiritual_fit=0.9,
        skill_fit=0.9,
        availability=0.9,
        passion=0.9,
        source=ScoreSource.ORACLE,
    )
    assert result.divine_appointment_score == pytest.approx(0.9)
    assert result.recommendation_tier == RecommendationTier.HIGHLY_RECOMMENDED
    assert result.reasons == []


# ---------------------------------------------------------------------------
# Fallback heuristic
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_overlap_ratio_with_nothing_required_is_full_fit():
    assert overlap_ratio({"driving"}, set()) == 1.0
    assert overlap_ratio(set(), {"driving"}) == 0.0
    assert overlap_ratio({"driving"}, {"driving", "cooking"}) == 0.5


@pytest.mark.unit
def test_fallback_gift_and_skill_overlap():
    """Gifts {teaching, mercy} + skills {driving} vs teaching / {driving, cooking}."""
    profile = VolunteerProfileFactory.create(
        spiritual_gifts=["teaching", "mercy"], skills=["driving"]
    )
    opportunity = OpportunityFactory.create(
        required_gifts=["teaching"], required_skills=["driving", "cooking"]
    )

    result = fallback_score(profile, opportunity)

    assert result.spiritual_fit_score == 1.0
    assert result.skill_fit_score == 0.5
    assert result.availability_score == 0.5
    assert result.passion_score == 0.5
    assert result.divine_appointment_score == pytest.approx(
        0.4 * 1.0 + 0.3 * 0.5 + 0.2 * 0.5 + 0.1 * 0.5
    )
    assert result.recommendation_tier == RecommendationTier.RECOMMENDED
    assert result.source == ScoreSource.FALLBACK
    assert "Brings skills: driving" in result.reasons


@pytest.mark.unit
def test_fallback_is_case_insensitive():
    profile = VolunteerProfileFactory.create(spiritual_gifts=["Teaching"], skills=["DRIVING "])
    opportunity = OpportunityFactory.create(
        required_gifts=["teaching"], required_skills=["driving"]
    )
    result = fallback_score(profile, opportunity)
    assert result.spiritual_fit_score == 1.0
    assert result.skill_fit_score == 1.0


@pytest.mark.unit
def test_fallback_is_deterministic():
    profile = VolunteerProfileFactory.create(
        spiritual_gifts=["teaching", "mercy"],
        skills=["driving"],
        availability=["sunday"],
        ministry_passions=["children"],
    )
    opportunity = OpportunityFactory.create(
        required_gifts=["teaching", "leadership"],
        required_skills=["driving", "cooking"],
    )

    first = fallback_score(profile, opportunity)
    repeats = [fallback_score(profile, opportunity) for _ in range(5)]

    assert {r.divine_appointment_score for r in repeats} == {
        first.divine_appointment_score
    }
    assert all(r == first for r in repeats)


@pytest.mark.unit
def test_fallback_rejects_malformed_profile_data():
    profile = VolunteerProfileFactory.create(skills="driving")
    opportunity = OpportunityFactory.create()
    with pytest.raises(ScoringUnavailableError):
        fallback_score(profile, opportunity)


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_no_opportunities_means_no_results():
    profile = VolunteerProfileFactory.create()
    oracle = StubOracle(payload={"matches": []})
    assert await score_opportunities(profile, [], oracle) == []
    assert oracle.requests == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_without_oracle_every_opportunity_gets_fallback():
    profile = VolunteerProfileFactory.create()
    opportunities = [OpportunityFactory.create(), OpportunityFactory.create()]

    results = await score_opportunities(profile, opportunities, None)

    assert [r.opportunity_id for r in results] == [o.id for o in opportunities]
    assert {r.source for r in results} == {ScoreSource.FALLBACK}


@pytest.mark.asyncio
@pytest.mark.unit
async def test_oracle_scores_are_recombined_with_fixed_weights():
    profile = VolunteerProfileFactory.create()
    opportunity = OpportunityFactory.create()
    oracle = StubOracle(
        payload={
            "matches": [
                oracle_item(
                    opportunity.id,
                    spiritual=1.0,
                    skill=1.0,
                    availability=0.0,
                    passion=0.0,
                    divineAppointmentScore=0.01,
                )
            ]
        }
    )

    [result] = await score_opportunities(profile, [opportunity], oracle)

    assert result.source == ScoreSource.ORACLE
    assert result.divine_appointment_score == pytest.approx(0.7)
    assert result.recommendation_tier == RecommendationTier.RECOMMENDED
    assert result.explanation == "Strong fit"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_oracle_request_carries_profile_and_candidates():
    profile = VolunteerProfileFactory.create(skills=["driving"])
    opportunity = OpportunityFactory.create()
    oracle = StubOracle(payload={"matches": []})

    await score_opportunities(profile, [opportunity], oracle)

    assert oracle.requests == [build_oracle_request(profile, [opportunity])]
    request = oracle.requests[0]
    assert request["profile"]["skills"] == ["driving"]
    assert request["opportunities"][0]["id"] == str(opportunity.id)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_invalid_items_are_dropped_individually():
    """Out-of-range, non-numeric, unknown, and repeated items are discarded."""
    profile = VolunteerProfileFactory.create()
    good, bad_range, bad_type, repeated = (OpportunityFactory.create() for _ in range(4))
    oracle = StubOracle(
        payload={
            "matches": [
                oracle_item(good.id),
                oracle_item(bad_range.id, spiritual=1.5),
                oracle_item(bad_type.id, skill="high"),
                oracle_item(uuid.uuid4()),
                oracle_item(repeated.id, spiritual=0.2),
                oracle_item(repeated.id, spiritual=0.9),
                "not an object",
            ]
        }
    )

    results = await score_opportunities(
        profile, [good, bad_range, bad_type, repeated], oracle
    )

    assert [r.opportunity_id for r in results] == [good.id]
    assert results[0].source == ScoreSource.ORACLE


@pytest.mark.asyncio
@pytest.mark.unit
async def test_opportunity_scored_twice_is_dropped_whatever_the_order():
    profile = VolunteerProfileFactory.create()
    single, twice = OpportunityFactory.create(), OpportunityFactory.create()
    oracle = StubOracle(
        payload={
            "matches": [
                oracle_item(twice.id, spiritual=0.9),
                oracle_item(single.id),
                oracle_item(twice.id, spiritual=0.1),
                oracle_item(twice.id, spiritual=0.5),
            ]
        }
    )

    results = await score_opportunities(profile, [twice, single], oracle)

    assert [r.opportunity_id for r in results] == [single.id]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_results_follow_input_order_not_oracle_order():
    profile = VolunteerProfileFactory.create()
    first, second = OpportunityFactory.create(), OpportunityFactory.create()
    oracle = StubOracle(payload={"matches": [oracle_item(second.id), oracle_item(first.id)]})

    results = await score_opportunities(profile, [first, second], oracle)

    assert [r.opportunity_id for r in results] == [first.id, second.id]


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize(
    "oracle",
    [
        StubOracle(error=RuntimeError("provider down")),
        StubOracle(payload={"results": []}),
        StubOracle(payload={"matches": "none"}),
        StubOracle(payload=["not", "a", "dict"]),
    ],
    ids=["provider-error", "missing-matches", "matches-not-list", "body-not-object"],
)
async def test_whole_call_failure_falls_back_for_all(oracle):
    profile = VolunteerProfileFactory.create()
    opportunities = [OpportunityFactory.create(), OpportunityFactory.create()]

    results = await score_opportunities(profile, opportunities, oracle)

    assert len(results) == 2
    assert {r.source for r in results} == {ScoreSource.FALLBACK}


@pytest.mark.asyncio
@pytest.mark.unit
async def test_oracle_timeout_falls_back():
    profile = VolunteerProfileFactory.create()
    opportunity = OpportunityFactory.create()
    oracle = StubOracle(payload={"matches": [oracle_item(opportunity.id)]}, delay=1)

    results = await score_opportunities(profile, [opportunity], oracle, timeout=0.05)

    assert [r.source for r in results] == [ScoreSource.FALLBACK]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_oracle_disabled_in_settings_skips_the_call(monkeypatch):
    from libs.common.config import get_settings

    monkeypatch.setattr(get_settings(), "SCORING_ORACLE_ENABLED", False)
    profile = VolunteerProfileFactory.create()
    opportunity = OpportunityFactory.create()
    oracle = StubOracle(payload={"matches": [oracle_item(opportunity.id)]})

    results = await score_opportunities(profile, [opportunity], oracle)

    assert oracle.requests == []
    assert results[0].source == ScoreSource.FALLBACK


@pytest.mark.asyncio
@pytest.mark.unit
async def test_parallel_rounds_do_not_share_state():
    profile = VolunteerProfileFactory.create()
    a, b = OpportunityFactory.create(), OpportunityFactory.create()
    oracle = StubOracle(
        payload=lambda request: {
            "matches": [oracle_item(o["id"]) for o in request["opportunities"]]
        }
    )

    first, second = await asyncio.gather(
        score_opportunities(profile, [a], oracle),
        score_opportunities(profile, [b], oracle),
    )

    assert [r.opportunity_id for r in first] == [a.id]
    assert [r.opportunity_id for r in second] == [b.id]

"""Integration tests for the volunteer-facing ServeWell endpoints."""

import uuid

import pytest
from tests.conftest import (
    StubOracle,
    make_coordinator_user,
    make_member_user,
    oracle_item,
    override_auth,
)
from tests.factories import ORG_ID

ASSESSMENT = {
    "organization_id": str(ORG_ID),
    "responses": {"teaching": [5, 5, 4], "mercy": [4, 4, 4], "giving": [2, 1, 1]},
    "display_name": "Ada Volunteer",
    "skills": ["driving"],
    "availability": ["sunday"],
}


async def _onboard(client, **overrides) -> dict:
    response = await client.post("/volunteers/assessment", json={**ASSESSMENT, **overrides})
    assert response.status_code in (200, 201), response.text
    return response.json()


async def _post_opportunity(client, app, **overrides) -> dict:
    payload = {
        "organization_id": str(ORG_ID),
        "title": "Sunday School Helper",
        "required_gifts": ["teaching"],
        "required_skills": ["driving", "cooking"],
        "volunteers_needed": 2,
    }
    payload.update(overrides)
    with override_auth(app, make_coordinator_user()):
        response = await client.post("/admin/volunteers/opportunities", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


# ---------------------------------------------------------------------------
# Assessment & profile
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_assessment_creates_then_updates_profile(client):
    """POST /volunteers/assessment: 201 first time, 200 on re-assessment."""
    response = await client.post("/volunteers/assessment", json=ASSESSMENT)
    assert response.status_code == 201, response.text
    created = response.json()
    assert created["spiritual_gifts"] == ["teaching", "mercy"]
    assert created["gift_scores"]["giving"] < 60
    assert created["status"] == "active"

    response = await client.post(
        "/volunteers/assessment",
        json={**ASSESSMENT, "skills": ["cooking"], "availability": None},
    )
    assert response.status_code == 200
    updated = response.json()
    assert updated["id"] == created["id"]
    assert updated["skills"] == ["cooking"]
    assert updated["availability"] == ["sunday"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_assessment_validation_error_shape(client):
    response = await client.post(
        "/volunteers/assessment",
        json={"organization_id": str(ORG_ID), "responses": {"teaching": [9]}},
    )
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_my_profile(client):
    """GET /volunteers/profile/me: 404 until the assessment is done."""
    response = await client.get(
        "/volunteers/profile/me", params={"organization_id": str(ORG_ID)}
    )
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"

    profile = await _onboard(client)
    response = await client.get(
        "/volunteers/profile/me", params={"organization_id": str(ORG_ID)}
    )
    assert response.status_code == 200
    assert response.json()["id"] == profile["id"]


# ---------------------------------------------------------------------------
# Matches
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_matches_use_fallback_without_oracle(client, app):
    """GET /volunteers/{id}/matches: heuristic scores when no oracle is configured."""
    profile = await _onboard(client)
    opportunity = await _post_opportunity(client, app)

    response = await client.get(f"/volunteers/{profile['id']}/matches")

    assert response.status_code == 200, response.text
    [match] = response.json()
    assert match["opportunity_id"] == opportunity["id"]
    assert match["score_source"] == "fallback"
    assert match["spiritual_fit_score"] == 1.0
    assert match["skill_fit_score"] == 0.5
    assert match["divine_appointment_score"] == pytest.approx(0.7)
    assert match["recommendation_tier"] == "recommended"
    assert match["opportunity"]["title"] == "Sunday School Helper"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_matches_use_oracle_and_are_stable(client, app, oracle_holder):
    profile = await _onboard(client)
    opportunity = await _post_opportunity(client, app)
    item = oracle_item(
        opportunity["id"], spiritual=1.0, skill=1.0, availability=1.0, passion=1.0
    )
    oracle = StubOracle(payload={"matches": [item]})
    oracle_holder["oracle"] = oracle

    first = (await client.get(f"/volunteers/{profile['id']}/matches")).json()
    second = (await client.get(f"/volunteers/{profile['id']}/matches")).json()

    assert first[0]["score_source"] == "oracle"
    assert first[0]["recommendation_tier"] == "highly_recommended"
    assert [m["id"] for m in second] == [m["id"] for m in first]
    assert len(oracle.requests) == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cannot_read_another_volunteers_matches(client, app):
    profile = await _onboard(client)

    with override_auth(app, make_member_user(user_id="someone-else")):
        response = await client.get(f"/volunteers/{profile['id']}/matches")

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unknown_volunteer_matches(client):
    response = await client.get(f"/volunteers/{uuid.uuid4()}/matches")
    assert response.status_code == 404


# ---------------------------------------------------------------------------
# Applying & withdrawing
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_accept_match_then_withdraw(client, app, notifier):
    profile = await _onboard(client)
    opportunity = await _post_opportunity(client, app)
    [match] = (await client.get(f"/volunteers/{profile['id']}/matches")).json()

    response = await client.post(
        f"/volunteers/matches/{match['id']}/accept",
        json={"volunteer_id": profile["id"], "notes": "Free most Sundays"},
    )
    assert response.status_code == 200, response.text
    registration = response.json()
    assert registration["status"] == "pending_approval"
    assert registration["opportunity"]["id"] == opportunity["id"]
    assert "application_received" in notifier.types()

    again = await client.post(
        f"/volunteers/matches/{match['id']}/accept", json={"volunteer_id": profile["id"]}
    )
    assert again.status_code == 409
    assert again.json()["code"] == "INVALID_TRANSITION"

    listed = (await client.get(f"/volunteers/{profile['id']}/registrations")).json()
    assert [r["id"] for r in listed] == [registration["id"]]

    response = await client.post(
        f"/volunteers/registrations/{registration['id']}/cancel",
        json={"reason": "Schedule changed"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert response.json()["cancellation_reason"] == "Schedule changed"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cannot_accept_for_someone_else(client, app):
    profile = await _onboard(client)
    await _post_opportunity(client, app)
    [match] = (await client.get(f"/volunteers/{profile['id']}/matches")).json()

    with override_auth(app, make_member_user(user_id="intruder")):
        response = await client.post(
            f"/volunteers/matches/{match['id']}/accept",
            json={"volunteer_id": profile["id"]},
        )

    assert response.status_code == 403


# ---------------------------------------------------------------------------
# Background checks
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_request_background_check_is_idempotent(client):
    profile = await _onboard(client)

    status = await client.get(
        "/volunteers/background-checks/status", params={"volunteer_id": profile["id"]}
    )
    assert status.status_code == 200
    assert status.json() is None

    first = await client.post(
        "/volunteers/background-checks", json={"volunteer_id": profile["id"]}
    )
    second = await client.post(
        "/volunteers/background-checks", json={"volunteer_id": profile["id"]}
    )

    assert first.status_code == 201, first.text
    assert second.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    assert first.json()["status"] == "pending"

    status = await client.get(
        "/volunteers/background-checks/status", params={"volunteer_id": profile["id"]}
    )
    assert status.json()["id"] == first.json()["id"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["service"] == "servewell"
    assert response.headers["X-Request-ID"]


# ---------------------------------------------------------------------------
# Stats & gift catalogue
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_volunteer_stats(client, app):
    profile = await _onboard(client)
    await _post_opportunity(client, app)

    empty = await client.get(f"/volunteers/{profile['id']}/stats")
    assert empty.status_code == 200, empty.text
    assert empty.json()["total_registrations"] == 0
    assert empty.json()["success_rate"] == 0

    [match] = (await client.get(f"/volunteers/{profile['id']}/matches")).json()
    await client.post(
        f"/volunteers/matches/{match['id']}/accept", json={"volunteer_id": profile["id"]}
    )

    stats = (await client.get(f"/volunteers/{profile['id']}/stats")).json()
    assert stats["total_registrations"] == 1
    assert stats["pending_registrations"] == 1
    assert stats["confirmed_registrations"] == 0

    with override_auth(app, make_member_user(user_id="someone-else")):
        forbidden = await client.get(f"/volunteers/{profile['id']}/stats")
    assert forbidden.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_spiritual_gift_catalogue(client):
    response = await client.get("/volunteers/spiritual-gifts")

    assert response.status_code == 200, response.text
    gifts = {entry["gift"]: entry for entry in response.json()}
    assert len(gifts) == 20
    assert gifts["mercy"]["name"] == "Mercy"
    assert gifts["administration"]["category"] == "ministry"


# ---------------------------------------------------------------------------
# Rate limits
# ---------------------------------------------------------------------------


@pytest.fixture
def rate_limits(monkeypatch):
    from libs.common.rate_limit import limiter

    limiter.reset()
    monkeypatch.setattr(limiter, "enabled", True)
    yield limiter
    limiter.reset()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_only_match_generation_gets_the_strict_limit(client, rate_limits):
    for _ in range(12):
        response = await client.post("/volunteers/assessment", json=ASSESSMENT)
        assert response.status_code in (200, 201), response.text
    profile = response.json()

    statuses = [
        (await client.get(f"/volunteers/{profile['id']}/matches")).status_code
        for _ in range(11)
    ]

    assert statuses[:10] == [200] * 10
    assert statuses[10] == 429
    limited = await client.get(f"/volunteers/{profile['id']}/matches")
    assert limited.json()["code"] == "RATE_LIMIT_EXCEEDED"

from uuid import UUID

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import IntegrityError

from app.config import settings
from app.models.availability import AvailabilitySession
from app.services import availability_service


async def start(client: AsyncClient, user: dict):
    return await client.post("/api/v1/availability", headers=user["headers"])


@pytest.mark.asyncio
async def test_start_requires_mutual_yes(client: AsyncClient, make_user, make_match):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    match_id = await make_match(alice, bob)
    await client.put(
        f"/api/v1/matches/{match_id}/meet-decision",
        json={"decision": "yes"},
        headers=alice["headers"],
    )

    response = await start(client, alice)

    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "NO_ELIGIBLE_MATCHES"
    assert data["detail"] == "No eligible matches where both users selected yes"


@pytest.mark.asyncio
async def test_start_seeds_candidates(client: AsyncClient, make_user, make_match, make_mutual_yes):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    carol = await make_user("Carol")
    dave = await make_user("Dave")
    bob_match = await make_mutual_yes(alice, bob)
    carol_match = await make_mutual_yes(carol, alice)
    await make_match(alice, dave)

    response = await start(client, alice)

    assert response.status_code == 201
    data = response.json()
    assert data["session"]["active"] is True
    assert data["session"]["initiator_user_id"] == alice["id"]
    candidates = {c["candidate_user_id"]: c for c in data["candidates"]}
    assert set(candidates) == {bob["id"], carol["id"]}
    assert candidates[bob["id"]]["match_id"] == bob_match
    assert candidates[carol["id"]]["match_id"] == carol_match
    assert all(c["response"] == "pending" for c in data["candidates"])
    assert candidates[bob["id"]]["candidate_profile"]["first_name"] == "Bob"


@pytest.mark.asyncio
async def test_restart_closes_previous_session(client: AsyncClient, make_user, make_mutual_yes):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    await make_mutual_yes(alice, bob)

    first = (await start(client, alice)).json()["session"]
    second = (await start(client, alice)).json()["session"]

    assert first["id"] != second["id"]
    response = await client.get(
        f"/api/v1/availability/{first['id']}", headers=alice["headers"]
    )
    assert response.status_code == 200
    assert response.json()["session"]["active"] is False
    assert response.json()["session"]["closed_at"] is not None


@pytest.mark.asyncio
async def test_restart_policy_reuse(
    client: AsyncClient, make_user, make_mutual_yes, monkeypatch
):
    monkeypatch.setattr(settings, "AVAILABILITY_RESTART_POLICY", "reuse")
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    await make_mutual_yes(alice, bob)

    first = (await start(client, alice)).json()["session"]
    second = (await start(client, alice)).json()["session"]

    assert first["id"] == second["id"]


@pytest.mark.asyncio
async def test_restart_policy_reject(
    client: AsyncClient, make_user, make_mutual_yes, monkeypatch
):
    monkeypatch.setattr(settings, "AVAILABILITY_RESTART_POLICY", "reject")
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    await make_mutual_yes(alice, bob)

    first = (await start(client, alice)).json()["session"]
    response = await start(client, alice)

    assert response.status_code == 409
    data = response.json()
    assert data["code"] == "SESSION_ALREADY_ACTIVE"
    assert data["metadata"]["session_id"] == first["id"]


@pytest.mark.asyncio
async def test_candidate_responds_interest(client: AsyncClient, make_user, make_mutual_yes):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    await make_mutual_yes(alice, bob)
    session_id = (await start(client, alice)).json()["session"]["id"]

    response = await client.post(
        f"/api/v1/availability/{session_id}/interest",
        json={"response": "yes"},
        headers=bob["headers"],
    )
    assert response.status_code == 200
    assert response.json()["response"] == "yes"

    # Later answers overwrite
    response = await client.post(
        f"/api/v1/availability/{session_id}/interest",
        json={"response": "no"},
        headers=bob["headers"],
    )
    assert response.json()["response"] == "no"

    state = await client.get(f"/api/v1/availability/{session_id}", headers=bob["headers"])
    assert state.json()["candidates"][0]["response"] == "no"
    assert state.json()["latest_offer"] is None


@pytest.mark.asyncio
async def test_initiator_cannot_respond_interest(client: AsyncClient, make_user, make_mutual_yes):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    await make_mutual_yes(alice, bob)
    session_id = (await start(client, alice)).json()["session"]["id"]

    response = await client.post(
        f"/api/v1/availability/{session_id}/interest",
        json={"response": "yes"},
        headers=alice["headers"],
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_non_candidate_cannot_respond(client: AsyncClient, make_user, make_mutual_yes):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    eve = await make_user("Eve")
    await make_mutual_yes(alice, bob)
    session_id = (await start(client, alice)).json()["session"]["id"]

    response = await client.post(
        f"/api/v1/availability/{session_id}/interest",
        json={"response": "yes"},
        headers=eve["headers"],
    )

    assert response.status_code == 400
    assert response.json()["code"] == "PRECONDITION_FAILED"


@pytest.mark.asyncio
async def test_close_session(client: AsyncClient, make_user, make_mutual_yes):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    await make_mutual_yes(alice, bob)
    session_id = (await start(client, alice)).json()["session"]["id"]

    # Only the initiator may close
    response = await client.post(
        f"/api/v1/availability/{session_id}/close", headers=bob["headers"]
    )
    assert response.status_code == 403

    response = await client.post(
        f"/api/v1/availability/{session_id}/close", headers=alice["headers"]
    )
    assert response.status_code == 200
    assert response.json()["active"] is False

    # Closed sessions accept no further interest
    response = await client.post(
        f"/api/v1/availability/{session_id}/interest",
        json={"response": "yes"},
        headers=bob["headers"],
    )
    assert response.status_code == 400
    assert response.json()["code"] == "SESSION_NOT_ACTIVE"

    response = await client.post(
        f"/api/v1/availability/{session_id}/close", headers=alice["headers"]
    )
    assert response.json()["code"] == "SESSION_NOT_ACTIVE"


@pytest.mark.asyncio
async def test_state_hidden_from_outsiders(client: AsyncClient, make_user, make_mutual_yes):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    eve = await make_user("Eve")
    await make_mutual_yes(alice, bob)
    session_id = (await start(client, alice)).json()["session"]["id"]

    response = await client.get(f"/api/v1/availability/{session_id}", headers=eve["headers"])
    assert response.status_code == 403

    response = await client.get(
        f"/api/v1/availability/{session_id}/candidates", headers=bob["headers"]
    )
    assert response.status_code == 200
    assert [c["candidate_user_id"] for c in response.json()] == [bob["id"]]


@pytest.mark.asyncio
async def test_one_active_session_per_initiator(db_session, make_user):
    alice = await make_user("Alice")

    for _ in range(2):
        db_session.add(AvailabilitySession(initiator_user_id=UUID(alice["id"]), active=True))
    with pytest.raises(IntegrityError):
        await db_session.commit()
    await db_session.rollback()

@pytest.mark.asyncio
async def test_lost_session_race_returns_conflict(
    client: AsyncClient, make_user, make_mutual_yes, monkeypatch
):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    await make_mutual_yes(alice, bob)
    first = (await start(client, alice)).json()["session"]

    # A concurrent start opened its session after this one checked
    async def none_active(db, initiator_user_id):
        return None

    monkeypatch.setattr(availability_service, "get_active_session_for_initiator", none_active)

    response = await start(client, alice)

    assert response.status_code == 409
    assert response.json()["code"] == "RESOURCE_CONFLICT"

    response = await client.get(f"/api/v1/availability/{first['id']}", headers=alice["headers"])
    assert response.json()["session"]["active"] is True

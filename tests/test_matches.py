import pytest
from httpx import AsyncClient

from app.config import settings


async def send(client: AsyncClient, match_id: str, user: dict, body: str = "hi"):
    return await client.post(
        f"/api/v1/matches/{match_id}/messages",
        json={"body": body},
        headers=user["headers"],
    )


@pytest.mark.asyncio
async def test_list_matches(client: AsyncClient, make_user, make_match):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    carol = await make_user("Carol")
    await make_match(alice, bob)
    await make_match(alice, carol)

    response = await client.get("/api/v1/matches", headers=alice["headers"])

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert data["page"] == 1
    names = {m["other_user_profile"]["first_name"] for m in data["matches"]}
    assert names == {"Bob", "Carol"}


@pytest.mark.asyncio
async def test_get_match_forbidden_for_non_member(client: AsyncClient, make_user, make_match):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    eve = await make_user("Eve")
    match_id = await make_match(alice, bob)

    response = await client.get(f"/api/v1/matches/{match_id}", headers=eve["headers"])

    assert response.status_code == 403
    assert response.json()["code"] == "AUTHZ_FORBIDDEN"


@pytest.mark.asyncio
async def test_send_message_reports_remaining_quota(client: AsyncClient, make_user, make_match):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    match_id = await make_match(alice, bob)

    response = await send(client, match_id, alice, "Ciao!")

    assert response.status_code == 201
    data = response.json()
    assert data["message"]["body"] == "Ciao!"
    assert data["message"]["sender_id"] == alice["id"]
    assert data["remaining_for_sender"] == settings.MAX_MESSAGES_PER_USER - 1
    assert data["remaining_total"] == settings.MAX_MESSAGES_TOTAL - 1
    assert data["needs_meet_decision"] is False


@pytest.mark.asyncio
async def test_match_counts_are_derived_per_sender(client: AsyncClient, make_user, make_match):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    match_id = await make_match(alice, bob)

    for _ in range(3):
        await send(client, match_id, alice)
    await send(client, match_id, bob)

    response = await client.get(f"/api/v1/matches/{match_id}", headers=bob["headers"])

    data = response.json()
    assert data["messages_by_user"] == {alice["id"]: 3, bob["id"]: 1}
    assert data["total_messages"] == 4


@pytest.mark.asyncio
async def test_per_sender_cap(client: AsyncClient, make_user, make_match, monkeypatch):
    monkeypatch.setattr(settings, "MAX_MESSAGES_PER_USER", 2)
    monkeypatch.setattr(settings, "MAX_MESSAGES_TOTAL", 4)
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    match_id = await make_match(alice, bob)

    assert (await send(client, match_id, alice)).status_code == 201
    assert (await send(client, match_id, alice)).status_code == 201
    response = await send(client, match_id, alice)

    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "MESSAGE_QUOTA_SENDER_REACHED"
    assert data["metadata"]["limit"] == 2

    # The other member still has quota left
    assert (await send(client, match_id, bob)).status_code == 201


@pytest.mark.asyncio
async def test_total_cap_prompts_meet_decision(
    client: AsyncClient, make_user, make_match, monkeypatch
):
    monkeypatch.setattr(settings, "MAX_MESSAGES_PER_USER", 3)
    monkeypatch.setattr(settings, "MAX_MESSAGES_TOTAL", 4)
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    match_id = await make_match(alice, bob)

    await send(client, match_id, alice)
    await send(client, match_id, alice)
    await send(client, match_id, bob)
    last = await send(client, match_id, bob)

    assert last.json()["needs_meet_decision"] is True
    assert last.json()["remaining_total"] == 0

    # Alice still has per-sender quota but the chat is full
    response = await send(client, match_id, alice)
    assert response.status_code == 400
    assert response.json()["code"] == "MESSAGE_QUOTA_TOTAL_REACHED"

    match = await client.get(f"/api/v1/matches/{match_id}", headers=alice["headers"])
    assert match.json()["total_messages"] == 4


@pytest.mark.asyncio
async def test_blank_message_rejected(client: AsyncClient, make_user, make_match):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    match_id = await make_match(alice, bob)

    response = await send(client, match_id, alice, "   ")

    assert response.status_code == 422
    assert response.json()["field"] == "body"


@pytest.mark.asyncio
async def test_non_member_cannot_send(client: AsyncClient, make_user, make_match):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    eve = await make_user("Eve")
    match_id = await make_match(alice, bob)

    response = await send(client, match_id, eve)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_message_history_is_chronological(
    client: AsyncClient, make_user, make_match, frozen_clock
):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    match_id = await make_match(alice, bob)

    for body in ("one", "two", "three"):
        await send(client, match_id, alice, body)
        frozen_clock.advance(seconds=5)

    response = await client.get(f"/api/v1/matches/{match_id}/messages", headers=bob["headers"])
    assert [m["body"] for m in response.json()] == ["one", "two", "three"]

    # Latest page of two, still oldest first
    response = await client.get(
        f"/api/v1/matches/{match_id}/messages",
        params={"limit": 2},
        headers=bob["headers"],
    )
    assert [m["body"] for m in response.json()] == ["two", "three"]


@pytest.mark.asyncio
async def test_message_history_limit_bounds(client: AsyncClient, make_user, make_match):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    match_id = await make_match(alice, bob)

    response = await client.get(
        f"/api/v1/matches/{match_id}/messages",
        params={"limit": 301},
        headers=alice["headers"],
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_meet_decision_both_yes(client: AsyncClient, make_user, make_match):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    match_id = await make_match(alice, bob)

    response = await client.put(
        f"/api/v1/matches/{match_id}/meet-decision",
        json={"decision": "yes"},
        headers=alice["headers"],
    )
    assert response.status_code == 200
    assert response.json()["both_yes"] is False
    assert response.json()["decisions"] == {alice["id"]: "yes"}

    response = await client.put(
        f"/api/v1/matches/{match_id}/meet-decision",
        json={"decision": "yes"},
        headers=bob["headers"],
    )
    assert response.json()["both_yes"] is True

    match = await client.get(f"/api/v1/matches/{match_id}", headers=alice["headers"])
    assert match.json()["both_yes"] is True


@pytest.mark.asyncio
async def test_meet_decision_flip_to_no(client: AsyncClient, make_user, make_mutual_yes):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    match_id = await make_mutual_yes(alice, bob)

    response = await client.put(
        f"/api/v1/matches/{match_id}/meet-decision",
        json={"decision": "no"},
        headers=bob["headers"],
    )

    data = response.json()
    assert data["both_yes"] is False
    assert data["decisions"] == {alice["id"]: "yes", bob["id"]: "no"}


@pytest.mark.asyncio
async def test_meet_decision_is_idempotent(client: AsyncClient, make_user, make_match):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    match_id = await make_match(alice, bob)

    for _ in range(2):
        response = await client.put(
            f"/api/v1/matches/{match_id}/meet-decision",
            json={"decision": "yes"},
            headers=alice["headers"],
        )
        assert response.status_code == 200
        assert response.json()["decisions"] == {alice["id"]: "yes"}


@pytest.mark.asyncio
async def test_meet_decision_non_member(client: AsyncClient, make_user, make_match):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    eve = await make_user("Eve")
    match_id = await make_match(alice, bob)

    response = await client.put(
        f"/api/v1/matches/{match_id}/meet-decision",
        json={"decision": "yes"},
        headers=eve["headers"],
    )

    assert response.status_code == 403

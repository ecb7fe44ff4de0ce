import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.models.match import Match, make_pair_key
from app.services import swipe_service


@pytest.mark.asyncio
async def test_one_sided_right_swipe_does_not_match(client: AsyncClient, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")

    response = await client.post(
        "/api/v1/swipes",
        json={"to_user_id": bob["id"], "decision": "right"},
        headers=alice["headers"],
    )

    assert response.status_code == 201
    data = response.json()
    assert data["matched"] is False
    assert data["is_new_match"] is False
    assert data["match"] is None


@pytest.mark.asyncio
async def test_reciprocal_right_swipe_creates_match(client: AsyncClient, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")

    await client.post(
        "/api/v1/swipes",
        json={"to_user_id": bob["id"], "decision": "right"},
        headers=alice["headers"],
    )
    response = await client.post(
        "/api/v1/swipes",
        json={"to_user_id": alice["id"], "decision": "right"},
        headers=bob["headers"],
    )

    assert response.status_code == 201
    data = response.json()
    assert data["matched"] is True
    assert data["is_new_match"] is True
    match = data["match"]
    assert {match["user_a_id"], match["user_b_id"]} == {alice["id"], bob["id"]}
    assert match["total_messages"] == 0
    assert match["both_yes"] is False
    assert match["coordination_ends_at"] is None
    assert match["other_user_profile"]["first_name"] == "Alice"


@pytest.mark.asyncio
async def test_reswipe_returns_existing_match(client: AsyncClient, make_user, make_match):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    match_id = await make_match(alice, bob)

    response = await client.post(
        "/api/v1/swipes",
        json={"to_user_id": bob["id"], "decision": "right"},
        headers=alice["headers"],
    )

    data = response.json()
    assert data["matched"] is True
    assert data["is_new_match"] is False
    assert data["match"]["id"] == match_id


@pytest.mark.asyncio
async def test_single_match_per_pair(client: AsyncClient, db_session, make_user, make_match):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    await make_match(alice, bob)

    # Swipe again in both directions
    for swiper, target in ((alice, bob), (bob, alice)):
        await client.post(
            "/api/v1/swipes",
            json={"to_user_id": target["id"], "decision": "right"},
            headers=swiper["headers"],
        )

    count = await db_session.scalar(select(func.count(Match.id)))
    assert count == 1


@pytest.mark.asyncio
async def test_left_swipe_then_right_does_not_match(client: AsyncClient, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")

    await client.post(
        "/api/v1/swipes",
        json={"to_user_id": bob["id"], "decision": "left"},
        headers=alice["headers"],
    )
    response = await client.post(
        "/api/v1/swipes",
        json={"to_user_id": alice["id"], "decision": "right"},
        headers=bob["headers"],
    )

    assert response.json()["matched"] is False


@pytest.mark.asyncio
async def test_changed_mind_to_right_creates_match(client: AsyncClient, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")

    await client.post(
        "/api/v1/swipes",
        json={"to_user_id": bob["id"], "decision": "left"},
        headers=alice["headers"],
    )
    await client.post(
        "/api/v1/swipes",
        json={"to_user_id": alice["id"], "decision": "right"},
        headers=bob["headers"],
    )
    response = await client.post(
        "/api/v1/swipes",
        json={"to_user_id": bob["id"], "decision": "right"},
        headers=alice["headers"],
    )

    data = response.json()
    assert data["matched"] is True
    assert data["is_new_match"] is True


@pytest.mark.asyncio
async def test_cannot_swipe_on_self(client: AsyncClient, make_user):
    alice = await make_user("Alice")

    response = await client.post(
        "/api/v1/swipes",
        json={"to_user_id": alice["id"], "decision": "right"},
        headers=alice["headers"],
    )

    assert response.status_code == 422
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert data["field"] == "to_user_id"


@pytest.mark.asyncio
async def test_swipe_on_unknown_user(client: AsyncClient, make_user):
    alice = await make_user("Alice")

    response = await client.post(
        "/api/v1/swipes",
        json={"to_user_id": str(uuid.uuid4()), "decision": "right"},
        headers=alice["headers"],
    )

    assert response.status_code == 404
    assert response.json()["code"] == "RESOURCE_NOT_FOUND"


@pytest.mark.asyncio
async def test_invalid_decision_rejected(client: AsyncClient, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")

    response = await client.post(
        "/api/v1/swipes",
        json={"to_user_id": bob["id"], "decision": "up"},
        headers=alice["headers"],
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_pair_key_rejects_duplicate_match(db_session, make_user, make_match):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    await make_match(alice, bob)

    alice_id, bob_id = uuid.UUID(alice["id"]), uuid.UUID(bob["id"])
    # Reversed order still maps to the same pair
    db_session.add(
        Match(user_a_id=bob_id, user_b_id=alice_id, pair_key=make_pair_key(bob_id, alice_id))
    )
    with pytest.raises(IntegrityError):
        await db_session.commit()
    await db_session.rollback()


def test_pair_key_is_order_independent():
    x, y = uuid.uuid4(), uuid.uuid4()
    assert make_pair_key(x, y) == make_pair_key(y, x)
    assert make_pair_key(x, y) != make_pair_key(x, uuid.uuid4())


@pytest.mark.asyncio
async def test_lost_match_race_returns_conflict(
    client: AsyncClient, make_user, make_match, monkeypatch
):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    await make_match(alice, bob)

    # The other request created the match after this one looked for it
    async def no_match_yet(db, user_a_id, user_b_id):
        return None

    monkeypatch.setattr(swipe_service, "get_match_between_users", no_match_yet)

    response = await client.post(
        "/api/v1/swipes",
        json={"to_user_id": bob["id"], "decision": "right"},
        headers=alice["headers"],
    )

    assert response.status_code == 409
    assert response.json()["code"] == "RESOURCE_CONFLICT"

    response = await client.get("/api/v1/matches", headers=alice["headers"])
    assert response.json()["total"] == 1

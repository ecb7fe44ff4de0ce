"""
Seed script to populate the database with development data.
Run with: python scripts/seed_test_data.py

Creates verified users scattered around a city centre, right swipes between
some of them, matches with a few chat messages, and meet decisions so that
availability sessions can be started right away.
"""

import asyncio
import random
import sys
from datetime import timedelta
from pathlib import Path

# Add parent directory to path so we can import app
sys.path.insert(0, str(Path(__file__).parent.parent))

from faker import Faker
from sqlalchemy import func, select

from app.core import clock
from app.core.security import hash_password
from app.database import async_session_maker
from app.models.match import Match, make_pair_key
from app.models.meet_decision import MeetDecision
from app.models.message import Message
from app.models.swipe import Swipe
from app.models.user import User

fake = Faker()

# Configuration
NUM_USERS = 40
NUM_MATCHES = 25
CENTER = (41.9028, 12.4964)
# Roughly 10 miles in degrees of latitude
SPREAD_DEGREES = 0.15
EMAIL_DOMAIN = "test.vicino.app"
TEST_PASSWORD = "Test1234!"


async def seed_users(db) -> list[User]:
    """Create verified users with a recent location."""
    users = []
    password_hash = hash_password(TEST_PASSWORD)
    now = clock.utcnow()

    print(f"Creating {NUM_USERS} test users...")

    for i in range(NUM_USERS):
        user = User(
            email=f"user{i + 1}@{EMAIL_DOMAIN}",
            password_hash=password_hash,
            first_name=fake.first_name(),
            verification_status=random.choice(["verified", "verified", "verified", "unverified"]),
            latitude=CENTER[0] + random.uniform(-SPREAD_DEGREES, SPREAD_DEGREES),
            longitude=CENTER[1] + random.uniform(-SPREAD_DEGREES, SPREAD_DEGREES),
            last_location_at=now - timedelta(minutes=random.randint(1, 240)),
            max_distance_miles=random.choice([5.0, 10.0, 25.0, 50.0]),
            created_at=now - timedelta(days=random.randint(1, 90)),
        )
        db.add(user)
        users.append(user)

    await db.flush()
    return users


async def seed_matches(db, users: list[User]) -> list[Match]:
    """Create reciprocal right swipes and the matches they imply."""
    verified = [u for u in users if u.is_verified]
    pairs = set()
    matches = []
    now = clock.utcnow()

    print(f"Creating up to {NUM_MATCHES} matches...")

    while len(pairs) < NUM_MATCHES and len(verified) > 1:
        user_a, user_b = random.sample(verified, 2)
        key = make_pair_key(user_a.id, user_b.id)
        if key in pairs:
            continue
        pairs.add(key)

        db.add(Swipe(from_user_id=user_a.id, to_user_id=user_b.id, decision="right", created_at=now))
        db.add(Swipe(from_user_id=user_b.id, to_user_id=user_a.id, decision="right", created_at=now))

        match = Match(
            user_a_id=user_b.id,
            user_b_id=user_a.id,
            pair_key=key,
            created_at=now - timedelta(hours=random.randint(1, 72)),
        )
        db.add(match)
        matches.append(match)

    await db.flush()
    return matches


async def seed_conversations(db, matches: list[Match]) -> tuple[int, int]:
    """Add chat messages and, for some matches, meet decisions."""
    message_count = 0
    mutual_yes = 0

    for match in matches:
        sent_at = match.created_at
        for _ in range(random.randint(0, 12)):
            sent_at += timedelta(minutes=random.randint(1, 30))
            db.add(
                Message(
                    match_id=match.id,
                    sender_id=random.choice([match.user_a_id, match.user_b_id]),
                    body=fake.sentence(nb_words=random.randint(3, 12)),
                    created_at=sent_at,
                )
            )
            message_count += 1

        if random.random() < 0.5:
            decision_a = random.choice(["yes", "yes", "no"])
            decision_b = random.choice(["yes", "yes", "no"])
            db.add(MeetDecision(match_id=match.id, user_id=match.user_a_id, decision=decision_a))
            db.add(MeetDecision(match_id=match.id, user_id=match.user_b_id, decision=decision_b))
            if decision_a == decision_b == "yes":
                mutual_yes += 1

    return message_count, mutual_yes


async def main():
    async with async_session_maker() as db:
        try:
            # Check if test users already exist
            count_result = await db.execute(
                select(func.count(User.id)).where(User.email.like(f"%@{EMAIL_DOMAIN}"))
            )
            existing_count = count_result.scalar() or 0
            if existing_count > 0:
                print(f"\nFound {existing_count} existing test users.")
                response = input("Do you want to add more test data? (y/n): ")
                if response.lower() != "y":
                    print("Aborted.")
                    return

            print("\nCreating test data...")
            users = await seed_users(db)
            matches = await seed_matches(db, users)
            message_count, mutual_yes = await seed_conversations(db, matches)

            await db.commit()

            print("\n" + "=" * 50)
            print("Summary:")
            print("=" * 50)
            print(f"  Users created: {len(users)}")
            print(f"    - Verified: {len([u for u in users if u.is_verified])}")
            print(f"  Matches created: {len(matches)}")
            print(f"    - Both said yes: {mutual_yes}")
            print(f"  Messages created: {message_count}")
            print("\nTest user login:")
            print(f"  Email: user1@{EMAIL_DOMAIN}")
            print(f"  Password: {TEST_PASSWORD}")
            print("=" * 50)

        except Exception as e:
            print(f"\nError: {e}")
            await db.rollback()
            raise


if __name__ == "__main__":
    asyncio.run(main())

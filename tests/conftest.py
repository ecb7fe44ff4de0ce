import itertools
import os
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator
from uuid import UUID

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_vicino.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.config import settings
from app.core import clock
from app.database import Base, get_db
from app.main import app
from app.models.user import User

test_engine = create_async_engine(settings.DATABASE_URL, echo=False, poolclass=NullPool)
test_async_session_maker = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with test_async_session_maker() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


class FrozenClock:
    """Controllable replacement for app.core.clock.utcnow."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def frozen_clock(monkeypatch) -> FrozenClock:
    frozen = FrozenClock(datetime(2026, 6, 1, 15, 0, tzinfo=timezone.utc))
    monkeypatch.setattr(clock, "utcnow", frozen)
    return frozen


@pytest_asyncio.fixture
async def make_user(client: AsyncClient, db_session: AsyncSession):
    """Factory: register, log in and optionally verify a user."""
    counter = itertools.count(1)

    async def _make_user(
        first_name: str = "Alex",
        verified: bool = True,
        location: tuple[float, float] | None = None,
    ) -> dict:
        n = next(counter)
        email = f"user{n}@example.com"
        password = "password123"

        await client.post(
            "/api/v1/auth/register",
            json={"email": email, "password": password, "first_name": first_name},
        )
        login_response = await client.post(
            "/api/v1/auth/login",
            data={"username": email, "password": password},
        )
        token = login_response.json()["access_token"]
        headers = {"Authorization": f"Bearer {token}"}

        me_response = await client.get("/api/v1/auth/me", headers=headers)
        user_id = me_response.json()["id"]

        if verified:
            user = await db_session.get(User, UUID(user_id))
            user.verification_status = "verified"
            await db_session.commit()

        if location is not None:
            await client.put(
                "/api/v1/users/me/location",
                json={"latitude": location[0], "longitude": location[1]},
                headers=headers,
            )

        return {
            "id": user_id,
            "email": email,
            "first_name": first_name,
            "token": token,
            "headers": headers,
        }

    return _make_user


@pytest_asyncio.fixture
async def make_match(client: AsyncClient):
    """Factory: two reciprocal right swipes. Returns the match id."""

    async def _make_match(user_a: dict, user_b: dict) -> str:
        await client.post(
            "/api/v1/swipes",
            json={"to_user_id": user_b["id"], "decision": "right"},
            headers=user_a["headers"],
        )
        response = await client.post(
            "/api/v1/swipes",
            json={"to_user_id": user_a["id"], "decision": "right"},
            headers=user_b["headers"],
        )
        return response.json()["match"]["id"]

    return _make_match


@pytest_asyncio.fixture
async def make_mutual_yes(client: AsyncClient, make_match):
    """Factory: a match where both users said yes to meeting."""

    async def _make_mutual_yes(user_a: dict, user_b: dict) -> str:
        match_id = await make_match(user_a, user_b)
        for user in (user_a, user_b):
            await client.put(
                f"/api/v1/matches/{match_id}/meet-decision",
                json={"decision": "yes"},
                headers=user["headers"],
            )
        return match_id

    return _make_mutual_yes


@pytest.fixture
def other_session_maker(db_session: AsyncSession) -> async_sessionmaker:
    """Sessions independent of the one the API requests use, for interleaving tests."""
    return test_async_session_maker

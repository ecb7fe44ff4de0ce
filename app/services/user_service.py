import re
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core import clock
from app.core.exceptions import ValidationError
from app.core.security import hash_password, verify_password
from app.models.push_token import PushToken
from app.models.user import User
from app.schemas.user import UserBrief, UserCreate

EXPO_TOKEN_RE = re.compile(r"^Expo(nent)?PushToken\[[^\]]+\]$")


async def create_user(db: AsyncSession, data: UserCreate) -> User:
    user = User(
        email=data.email.lower(),
        password_hash=hash_password(data.password),
        first_name=data.first_name.strip(),
        max_distance_miles=settings.DEFAULT_MAX_DISTANCE_MILES,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def get_user_by_id(db: AsyncSession, user_id: UUID) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User | None:
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


async def update_location(
    db: AsyncSession,
    user: User,
    latitude: float,
    longitude: float,
) -> User:
    user.latitude = latitude
    user.longitude = longitude
    user.last_location_at = clock.utcnow()
    await db.commit()
    await db.refresh(user)
    return user


async def update_distance_preference(
    db: AsyncSession,
    user: User,
    max_distance_miles: float,
) -> User:
    user.max_distance_miles = max_distance_miles
    await db.commit()
    await db.refresh(user)
    return user


async def register_push_token(
    db: AsyncSession,
    user_id: UUID,
    token: str,
    platform: str,
) -> PushToken:
    """
    Register a device token. A token already known (even for another
    account) is reassigned to this user and reactivated.
    """
    token = token.strip()
    if not EXPO_TOKEN_RE.match(token):
        raise ValidationError("Invalid Expo push token format", field="token")

    result = await db.execute(select(PushToken).where(PushToken.token == token))
    push_token = result.scalar_one_or_none()

    now = clock.utcnow()
    platform = platform.strip().lower() or "unknown"
    if push_token is None:
        push_token = PushToken(
            user_id=user_id,
            token=token,
            platform=platform,
            active=True,
            last_seen_at=now,
        )
        db.add(push_token)
    else:
        push_token.user_id = user_id
        push_token.platform = platform
        push_token.active = True
        push_token.last_seen_at = now

    await db.commit()
    await db.refresh(push_token)
    return push_token


async def get_user_briefs(db: AsyncSession, user_ids: list[UUID]) -> dict[UUID, dict]:
    """Public first-name/verified views keyed by user id, for enriching payloads."""
    if not user_ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(list(set(user_ids)))))
    return {
        user.id: UserBrief.model_validate(user).model_dump(mode="json")
        for user in result.scalars().all()
    }

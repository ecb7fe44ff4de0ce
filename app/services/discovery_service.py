"""Discovery service for nearby verified profiles."""

import math
import uuid

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import PreconditionError
from app.models.match import Match
from app.models.swipe import Swipe
from app.models.user import User
from app.schemas.user import DiscoveryProfile

EARTH_RADIUS_MILES = 3959.0


def distance_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance (spherical law of cosines), rounded to 2 places."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    cos_angle = (
        math.cos(phi1) * math.cos(phi2) * math.cos(math.radians(lon2) - math.radians(lon1))
        + math.sin(phi1) * math.sin(phi2)
    )
    # Float error can push the cosine just outside [-1, 1]
    cos_angle = max(-1.0, min(1.0, cos_angle))
    return round(EARTH_RADIUS_MILES * math.acos(cos_angle), 2)


async def list_discovery_profiles(
    db: AsyncSession,
    user: User,
    limit: int = 50,
) -> tuple[list[DiscoveryProfile], int]:
    """
    Verified users within the caller's max distance, nearest first.

    Users already swiped on or matched with are left out.
    """
    if user.latitude is None or user.longitude is None:
        raise PreconditionError("Set your location before discovery")

    exclude_ids: set[uuid.UUID] = {user.id}

    swiped = await db.execute(
        select(Swipe.to_user_id).where(Swipe.from_user_id == user.id)
    )
    exclude_ids.update(swiped.scalars().all())

    matched = await db.execute(
        select(Match.user_a_id, Match.user_b_id).where(
            or_(Match.user_a_id == user.id, Match.user_b_id == user.id)
        )
    )
    for user_a_id, user_b_id in matched.all():
        exclude_ids.update((user_a_id, user_b_id))

    result = await db.execute(
        select(User).where(
            User.id.not_in(list(exclude_ids)),
            User.verification_status == "verified",
            User.latitude.is_not(None),
            User.longitude.is_not(None),
        )
    )

    profiles = []
    for candidate in result.scalars().all():
        miles = distance_miles(
            user.latitude, user.longitude, candidate.latitude, candidate.longitude
        )
        if miles > user.max_distance_miles:
            continue
        profiles.append(
            DiscoveryProfile(
                id=candidate.id,
                first_name=candidate.first_name,
                is_verified=candidate.is_verified,
                distance_miles=miles,
            )
        )

    profiles.sort(key=lambda p: (p.distance_miles, str(p.id)))
    return profiles[:limit], len(profiles)

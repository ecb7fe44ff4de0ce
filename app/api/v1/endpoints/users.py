from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_current_user, get_verified_user
from app.database import get_db
from app.models.user import User
from app.schemas.user import (
    DiscoveryResponse,
    DistancePreferenceUpdate,
    LocationResponse,
    LocationUpdate,
    PushTokenRegister,
    PushTokenResponse,
    UserResponse,
)
from app.services import discovery_service, user_service

router = APIRouter(prefix="", tags=["users"])


@router.put("/me/location", response_model=LocationResponse)
async def update_my_location(
    data: LocationUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> LocationResponse:
    user = await user_service.update_location(db, current_user, data.latitude, data.longitude)
    return LocationResponse.model_validate(user)


@router.put("/me/distance", response_model=UserResponse)
async def update_my_distance(
    data: DistancePreferenceUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserResponse:
    """Set the discovery radius in miles."""
    user = await user_service.update_distance_preference(
        db, current_user, data.max_distance_miles
    )
    return UserResponse.model_validate(user)


@router.post(
    "/me/push-token",
    response_model=PushTokenResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_push_token(
    data: PushTokenRegister,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PushTokenResponse:
    """Register this device's Expo push token."""
    push_token = await user_service.register_push_token(
        db, current_user.id, data.token, data.platform
    )
    return PushTokenResponse.model_validate(push_token)


@router.get("/discovery", response_model=DiscoveryResponse)
async def discover(
    current_user: Annotated[User, Depends(get_verified_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    limit: int = Query(50, ge=1, le=100),
) -> DiscoveryResponse:
    """
    Verified people within your distance preference, nearest first.

    Excludes anyone you already swiped on or matched with.
    """
    profiles, total = await discovery_service.list_discovery_profiles(db, current_user, limit)
    return DiscoveryResponse(profiles=profiles, total=total)

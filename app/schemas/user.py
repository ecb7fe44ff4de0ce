from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1, max_length=100)


class UserResponse(BaseModel):
    id: UUID
    email: str
    first_name: str
    verification_status: str = "unverified"
    is_verified: bool = False
    latitude: float | None = None
    longitude: float | None = None
    max_distance_miles: float
    created_at: datetime

    model_config = {"from_attributes": True}


class UserBrief(BaseModel):
    """Public view of another user, used to enrich engine payloads"""

    id: UUID
    first_name: str
    is_verified: bool

    model_config = {"from_attributes": True}


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class TokenPayload(BaseModel):
    sub: str
    exp: int


class LocationUpdate(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class LocationResponse(BaseModel):
    id: UUID
    latitude: float
    longitude: float
    last_location_at: datetime

    model_config = {"from_attributes": True}


class DistancePreferenceUpdate(BaseModel):
    max_distance_miles: float = Field(..., ge=1, le=500)


class PushTokenRegister(BaseModel):
    token: str = Field(..., min_length=1, max_length=255)
    platform: str = Field("unknown", max_length=20)


class PushTokenResponse(BaseModel):
    token: str
    platform: str
    active: bool

    model_config = {"from_attributes": True}


class DiscoveryProfile(BaseModel):
    id: UUID
    first_name: str
    is_verified: bool
    distance_miles: float


class DiscoveryResponse(BaseModel):
    profiles: list[DiscoveryProfile]
    total: int

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class InterestResponseValue(str, Enum):
    yes = "yes"
    no = "no"


class InterestRespond(BaseModel):
    """Candidate's answer to an availability session"""

    response: InterestResponseValue


class AvailabilitySessionResponse(BaseModel):
    id: UUID
    initiator_user_id: UUID
    active: bool
    created_at: datetime
    closed_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CandidateResponse(BaseModel):
    session_id: UUID
    candidate_user_id: UUID
    match_id: UUID
    response: str
    updated_at: datetime

    # Filled in by the endpoint layer from the profile store
    candidate_profile: dict | None = None

    model_config = ConfigDict(from_attributes=True)


class MeetupOfferCreate(BaseModel):
    session_id: UUID
    recipient_user_id: UUID
    place_id: str = Field(..., min_length=1, max_length=200)
    place_label: str = Field(..., min_length=1, max_length=200)


class MeetupOfferRespond(BaseModel):
    accept: bool


class MeetupOfferResponse(BaseModel):
    id: UUID
    session_id: UUID
    initiator_user_id: UUID
    recipient_user_id: UUID
    place_id: str
    place_label: str
    status: str
    # "location_expired" is shown as "expired"
    display_status: str
    created_at: datetime
    respond_by: datetime
    location_expires_at: datetime
    responded_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class OfferDecisionResponse(BaseModel):
    offer: MeetupOfferResponse
    # Chat countdown shown after acceptance
    coordination_ends_at: datetime | None = None


class AvailabilityStartResponse(BaseModel):
    session: AvailabilitySessionResponse
    candidates: list[CandidateResponse]


class AvailabilityStateResponse(BaseModel):
    session: AvailabilitySessionResponse
    candidates: list[CandidateResponse]
    latest_offer: MeetupOfferResponse | None = None

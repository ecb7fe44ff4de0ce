from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_verified_user
from app.database import get_db
from app.models.user import User
from app.schemas.availability import (
    MeetupOfferCreate,
    MeetupOfferRespond,
    MeetupOfferResponse,
    OfferDecisionResponse,
)
from app.services import meetup_offer_service

router = APIRouter(prefix="", tags=["offers"])


@router.post("", response_model=MeetupOfferResponse, status_code=status.HTTP_201_CREATED)
async def create_offer(
    data: MeetupOfferCreate,
    current_user: Annotated[User, Depends(get_verified_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MeetupOfferResponse:
    """
    Offer a public place to an interested candidate.

    Validations:
    - Place must be a public mapped place
    - Only the session initiator can offer, and only while the session is active
    - Recipient must have answered yes to the session
    - Only one open offer per session (409 otherwise)
    """
    offer = await meetup_offer_service.create_meetup_offer(
        db,
        data.session_id,
        current_user.id,
        data.recipient_user_id,
        data.place_id,
        data.place_label,
    )
    return MeetupOfferResponse.model_validate(offer)


@router.get("/{offer_id}", response_model=MeetupOfferResponse)
async def get_offer(
    offer_id: UUID,
    current_user: Annotated[User, Depends(get_verified_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MeetupOfferResponse:
    offer = await meetup_offer_service.get_offer(db, offer_id, current_user.id)
    return MeetupOfferResponse.model_validate(offer)


@router.post("/{offer_id}/respond", response_model=OfferDecisionResponse)
async def respond_to_offer(
    offer_id: UUID,
    data: MeetupOfferRespond,
    current_user: Annotated[User, Depends(get_verified_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> OfferDecisionResponse:
    """Accept or decline an offer before its response deadline."""
    offer, coordination_ends_at = await meetup_offer_service.respond_to_offer(
        db, offer_id, current_user.id, data.accept
    )
    return OfferDecisionResponse(
        offer=MeetupOfferResponse.model_validate(offer),
        coordination_ends_at=coordination_ends_at,
    )


@router.post("/{offer_id}/expire-location", response_model=MeetupOfferResponse)
async def expire_location(
    offer_id: UUID,
    current_user: Annotated[User, Depends(get_verified_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MeetupOfferResponse:
    """Apply any elapsed deadline to the offer. Safe to call repeatedly."""
    offer = await meetup_offer_service.expire_location_if_needed(
        db, offer_id, current_user.id
    )
    return MeetupOfferResponse.model_validate(offer)

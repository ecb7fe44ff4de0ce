from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_verified_user
from app.database import get_db
from app.models.availability import SessionCandidate
from app.models.user import User
from app.schemas.availability import (
    AvailabilitySessionResponse,
    AvailabilityStartResponse,
    AvailabilityStateResponse,
    CandidateResponse,
    InterestRespond,
    MeetupOfferResponse,
)
from app.services import availability_service, user_service

router = APIRouter(prefix="", tags=["availability"])


async def _enrich_candidates_with_profile(
    db: AsyncSession,
    candidates: list[SessionCandidate],
) -> list[CandidateResponse]:
    """Add each candidate's public profile to the candidate rows."""
    briefs = await user_service.get_user_briefs(
        db, [c.candidate_user_id for c in candidates]
    )
    responses = []
    for candidate in candidates:
        response = CandidateResponse.model_validate(candidate)
        response.candidate_profile = briefs.get(candidate.candidate_user_id)
        responses.append(response)
    return responses


@router.post("", response_model=AvailabilityStartResponse, status_code=status.HTTP_201_CREATED)
async def start_availability(
    current_user: Annotated[User, Depends(get_verified_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AvailabilityStartResponse:
    """
    Tell your mutual-yes matches you are free to meet.

    Every match where both of you said yes becomes a candidate who can
    answer with interest.
    """
    session, candidates = await availability_service.start_availability(db, current_user.id)
    return AvailabilityStartResponse(
        session=AvailabilitySessionResponse.model_validate(session),
        candidates=await _enrich_candidates_with_profile(db, candidates),
    )


@router.get("/{session_id}", response_model=AvailabilityStateResponse)
async def get_availability_state(
    session_id: UUID,
    current_user: Annotated[User, Depends(get_verified_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AvailabilityStateResponse:
    """Session, its candidates and the latest offer."""
    session, candidates, latest_offer = await availability_service.get_availability_state(
        db, session_id, current_user.id
    )
    return AvailabilityStateResponse(
        session=AvailabilitySessionResponse.model_validate(session),
        candidates=await _enrich_candidates_with_profile(db, candidates),
        latest_offer=(
            MeetupOfferResponse.model_validate(latest_offer) if latest_offer else None
        ),
    )


@router.get("/{session_id}/candidates", response_model=list[CandidateResponse])
async def get_candidates(
    session_id: UUID,
    current_user: Annotated[User, Depends(get_verified_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[CandidateResponse]:
    _, candidates, _ = await availability_service.get_availability_state(
        db, session_id, current_user.id
    )
    return await _enrich_candidates_with_profile(db, candidates)


@router.post("/{session_id}/interest", response_model=CandidateResponse)
async def respond_interest(
    session_id: UUID,
    data: InterestRespond,
    current_user: Annotated[User, Depends(get_verified_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CandidateResponse:
    """Answer yes or no to an availability session you are a candidate in."""
    candidate = await availability_service.respond_interest(
        db, session_id, current_user.id, data.response.value
    )
    responses = await _enrich_candidates_with_profile(db, [candidate])
    return responses[0]


@router.post("/{session_id}/close", response_model=AvailabilitySessionResponse)
async def close_availability(
    session_id: UUID,
    current_user: Annotated[User, Depends(get_verified_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AvailabilitySessionResponse:
    session = await availability_service.close_availability(db, session_id, current_user.id)
    return AvailabilitySessionResponse.model_validate(session)

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_verified_user
from app.config import settings
from app.database import get_db
from app.models.match import Match
from app.models.user import User
from app.schemas.match import MatchListResponse, MatchResponse
from app.schemas.message import (
    MeetDecisionResponse,
    MeetDecisionUpdate,
    MessageCreate,
    MessageResponse,
    SendMessageResponse,
)
from app.services import (
    match_service,
    meet_decision_service,
    message_service,
    notification_service,
    user_service,
)

router = APIRouter(prefix="", tags=["matches"])


async def _enrich_match_with_profile(
    db: AsyncSession,
    match: Match,
    current_user_id: UUID,
) -> MatchResponse:
    """Match with counts plus the other user's public profile."""
    response = await match_service.build_match_response(db, match)
    other_user_id = match.other_user_id(current_user_id)
    briefs = await user_service.get_user_briefs(db, [other_user_id])
    response.other_user_profile = briefs.get(other_user_id)
    return response


@router.get("", response_model=MatchListResponse)
async def get_my_matches(
    current_user: Annotated[User, Depends(get_verified_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
) -> MatchListResponse:
    """Get all matches for current user, newest first."""
    matches, total = await match_service.get_user_matches(
        db, current_user.id, page, per_page
    )

    match_responses = [
        await _enrich_match_with_profile(db, match, current_user.id) for match in matches
    ]

    return MatchListResponse(
        matches=match_responses,
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/{match_id}", response_model=MatchResponse)
async def get_match(
    match_id: UUID,
    current_user: Annotated[User, Depends(get_verified_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MatchResponse:
    """Get specific match details."""
    match = await match_service.get_member_match(db, match_id, current_user.id)
    return await _enrich_match_with_profile(db, match, current_user.id)


@router.get("/{match_id}/messages", response_model=list[MessageResponse])
async def get_messages(
    match_id: UUID,
    current_user: Annotated[User, Depends(get_verified_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    limit: int = Query(100, ge=1, le=300),
    before: datetime | None = Query(None),
) -> list[MessageResponse]:
    """Get chat history, oldest first. Page back with `before`."""
    messages = await message_service.list_messages(
        db, match_id, current_user.id, limit, before
    )
    return [MessageResponse.model_validate(m) for m in messages]


@router.post(
    "/{match_id}/messages",
    response_model=SendMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    match_id: UUID,
    data: MessageCreate,
    background_tasks: BackgroundTasks,
    current_user: Annotated[User, Depends(get_verified_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> SendMessageResponse:
    """
    Send a message within the chat quota.

    Each person may send MAX_MESSAGES_PER_USER messages and the chat holds
    MAX_MESSAGES_TOTAL overall. Once the chat is full the client should ask
    both users whether they want to meet.
    """
    message, sender_count, total = await message_service.send_message(
        db, match_id, current_user.id, data.body
    )

    match = await match_service.get_match_by_id(db, match_id)
    background_tasks.add_task(
        notification_service.notify_users,
        [match.other_user_id(current_user.id)],
        current_user.first_name,
        message.body[:120],
        {"type": "message", "match_id": str(match_id)},
    )

    remaining_total = max(0, settings.MAX_MESSAGES_TOTAL - total)
    return SendMessageResponse(
        message=MessageResponse.model_validate(message),
        remaining_for_sender=max(0, settings.MAX_MESSAGES_PER_USER - sender_count),
        remaining_total=remaining_total,
        needs_meet_decision=remaining_total == 0,
    )


@router.put("/{match_id}/meet-decision", response_model=MeetDecisionResponse)
async def set_meet_decision(
    match_id: UUID,
    data: MeetDecisionUpdate,
    current_user: Annotated[User, Depends(get_verified_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MeetDecisionResponse:
    """Say whether you want to meet this match in person. Can be changed later."""
    decisions, both_yes = await meet_decision_service.set_meet_decision(
        db, match_id, current_user.id, data.decision.value
    )
    return MeetDecisionResponse(
        match_id=match_id,
        decisions={str(user_id): decision for user_id, decision in decisions.items()},
        both_yes=both_yes,
    )

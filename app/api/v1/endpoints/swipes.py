from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_verified_user
from app.database import get_db
from app.models.user import User
from app.schemas.match import SwipeCreate, SwipeResult
from app.services import match_service, notification_service, swipe_service, user_service

router = APIRouter(prefix="", tags=["swipes"])


@router.post("", response_model=SwipeResult, status_code=status.HTTP_201_CREATED)
async def swipe(
    data: SwipeCreate,
    background_tasks: BackgroundTasks,
    current_user: Annotated[User, Depends(get_verified_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> SwipeResult:
    """
    Swipe left or right on another user.

    A right swipe answering an earlier right swipe creates the match;
    `is_new_match` is true only for that swipe.
    """
    match, is_new = await swipe_service.record_swipe(
        db, current_user.id, data.to_user_id, data.decision.value
    )
    if match is None:
        return SwipeResult(matched=False)

    response = await match_service.build_match_response(db, match)
    briefs = await user_service.get_user_briefs(db, [data.to_user_id])
    response.other_user_profile = briefs.get(data.to_user_id)

    if is_new:
        background_tasks.add_task(
            notification_service.notify_users,
            [match.user_a_id, match.user_b_id],
            "It's a match!",
            "You have a new match. Say hi!",
            {"type": "match", "match_id": str(match.id)},
        )

    return SwipeResult(matched=True, is_new_match=is_new, match=response)

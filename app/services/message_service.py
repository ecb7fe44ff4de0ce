"""Message service for quota-limited chat within a match."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core import clock
from app.core.exceptions import (
    AuthorizationError,
    ErrorCode,
    NotFoundError,
    QuotaExceededError,
    ValidationError,
)
from app.database import acquire_xact_lock
from app.models.match import Match
from app.models.message import Message
from app.services.match_service import get_member_match, get_message_counts

logger = logging.getLogger(__name__)

MAX_BODY_LENGTH = 2000


async def get_messages(
    db: AsyncSession,
    match_id: UUID,
    limit: int = 100,
    before: datetime | None = None,
) -> list[Message]:
    """Get messages for a match, newest page first, returned oldest first."""
    query = select(Message).where(Message.match_id == match_id)
    if before is not None:
        query = query.where(Message.created_at < before)

    result = await db.execute(
        query.order_by(Message.created_at.desc(), Message.id.desc()).limit(limit)
    )
    # Reverse to get chronological order for display
    messages = list(result.scalars().all())
    messages.reverse()
    return messages


async def list_messages(
    db: AsyncSession,
    match_id: UUID,
    user_id: UUID,
    limit: int = 100,
    before: datetime | None = None,
) -> list[Message]:
    await get_member_match(db, match_id, user_id)
    return await get_messages(db, match_id, limit, before)


async def send_message(
    db: AsyncSession,
    match_id: UUID,
    sender_id: UUID,
    body: str,
) -> tuple[Message, int, int]:
    """
    Append a message if both quotas allow it.

    Counts are re-read under the match lock so two concurrent sends at the
    boundary cannot both pass. Returns (message, sender_count, total_count)
    after the append.
    """
    if not body.strip():
        raise ValidationError("Message body cannot be empty", field="body")
    if len(body) > MAX_BODY_LENGTH:
        raise ValidationError(
            f"Message body cannot exceed {MAX_BODY_LENGTH} characters", field="body"
        )

    await acquire_xact_lock(db, f"match_messages:{match_id}")

    result = await db.execute(
        select(Match).where(Match.id == match_id).with_for_update()
    )
    match = result.scalar_one_or_none()
    if match is None:
        raise NotFoundError("Match not found", resource="match")
    if not match.has_member(sender_id):
        raise AuthorizationError("User is not part of this match")

    by_sender, total = await get_message_counts(db, match_id)
    sender_count = by_sender.get(sender_id, 0)

    if sender_count >= settings.MAX_MESSAGES_PER_USER:
        raise QuotaExceededError(
            "Per-person message limit reached",
            code=ErrorCode.MESSAGE_QUOTA_SENDER_REACHED,
            limit=settings.MAX_MESSAGES_PER_USER,
        )
    if total >= settings.MAX_MESSAGES_TOTAL:
        raise QuotaExceededError(
            "Chat message cap reached",
            code=ErrorCode.MESSAGE_QUOTA_TOTAL_REACHED,
            limit=settings.MAX_MESSAGES_TOTAL,
        )

    message = Message(
        match_id=match_id,
        sender_id=sender_id,
        body=body,
        created_at=clock.utcnow(),
    )
    db.add(message)
    await db.commit()
    await db.refresh(message)

    logger.debug(
        "Message %s in match %s (sender=%d, total=%d)",
        message.id,
        match_id,
        sender_count + 1,
        total + 1,
    )
    return message, sender_count + 1, total + 1

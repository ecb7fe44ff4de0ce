import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import clock
from app.core.exceptions import ConflictError
from app.models.meet_decision import MeetDecision
from app.services.match_service import both_said_yes, get_meet_decisions, get_member_match

logger = logging.getLogger(__name__)


async def set_meet_decision(
    db: AsyncSession,
    match_id: UUID,
    user_id: UUID,
    decision: str,
) -> tuple[dict[UUID, str], bool]:
    """
    Upsert the user's yes/no on meeting in person.

    Allowed at any point in the chat; the quota running out is only a prompt
    for the client. Returns (decisions_by_user, both_yes).
    """
    match = await get_member_match(db, match_id, user_id)

    try:
        row = await db.get(MeetDecision, (match_id, user_id))
        if row is None:
            db.add(
                MeetDecision(
                    match_id=match_id,
                    user_id=user_id,
                    decision=decision,
                    updated_at=clock.utcnow(),
                )
            )
        else:
            row.decision = decision
            row.updated_at = clock.utcnow()
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Meet decision was updated concurrently, refresh and try again")

    decisions = await get_meet_decisions(db, match_id)
    both_yes = both_said_yes(match, decisions)
    if both_yes:
        logger.info("Match %s is now mutual yes", match_id)
    return decisions, both_yes

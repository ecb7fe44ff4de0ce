import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import clock
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.database import acquire_xact_lock
from app.models.match import Match, make_pair_key
from app.models.swipe import Swipe
from app.models.user import User
from app.services.match_service import create_match, get_match_between_users

logger = logging.getLogger(__name__)


async def record_swipe(
    db: AsyncSession,
    from_user_id: UUID,
    to_user_id: UUID,
    decision: str,
) -> tuple[Match | None, bool]:
    """
    Record a swipe and derive a match from a reciprocal right swipe.

    Swipes are current-state facts: re-swiping overwrites the decision.
    Returns (match_or_none, is_new_match).
    """
    if from_user_id == to_user_id:
        raise ValidationError("Cannot swipe on yourself", field="to_user_id")

    target = await db.execute(select(User.id).where(User.id == to_user_id))
    if target.scalar_one_or_none() is None:
        raise NotFoundError("User not found", resource="user")

    try:
        # Both directions of a pair serialize on the same key
        await acquire_xact_lock(db, f"swipe_pair:{make_pair_key(from_user_id, to_user_id)}")

        swipe = await db.get(Swipe, (from_user_id, to_user_id))
        now = clock.utcnow()
        if swipe is None:
            db.add(
                Swipe(
                    from_user_id=from_user_id,
                    to_user_id=to_user_id,
                    decision=decision,
                    created_at=now,
                )
            )
        else:
            swipe.decision = decision
            swipe.created_at = now

        if decision != "right":
            await db.commit()
            return None, False

        reciprocal = await db.execute(
            select(Swipe).where(
                Swipe.from_user_id == to_user_id,
                Swipe.to_user_id == from_user_id,
                Swipe.decision == "right",
            )
        )
        if reciprocal.scalar_one_or_none() is None:
            await db.commit()
            return None, False

        existing = await get_match_between_users(db, from_user_id, to_user_id)
        if existing is not None:
            await db.commit()
            return existing, False

        match = await create_match(db, from_user_id, to_user_id)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.warning(
            "Lost swipe race for pair %s/%s", from_user_id, to_user_id
        )
        raise ConflictError("Swipe conflicted with a concurrent request, refresh and try again")

    logger.info("Match %s created for %s and %s", match.id, from_user_id, to_user_id)
    return match, True

from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthorizationError, NotFoundError
from app.models.match import Match, make_pair_key
from app.models.meet_decision import MeetDecision
from app.models.message import Message
from app.schemas.match import MatchResponse


async def create_match(
    db: AsyncSession,
    user_a_id: UUID,
    user_b_id: UUID,
) -> Match:
    """
    Create a new match between two users.
    Callers must hold the pair lock; the unique pair_key rejects duplicates.
    """
    match = Match(
        user_a_id=user_a_id,
        user_b_id=user_b_id,
        pair_key=make_pair_key(user_a_id, user_b_id),
    )
    db.add(match)
    await db.flush()
    return match


async def get_match_by_id(
    db: AsyncSession,
    match_id: UUID,
) -> Match | None:
    """Get match by ID."""
    result = await db.execute(select(Match).where(Match.id == match_id))
    return result.scalar_one_or_none()


async def get_match_between_users(
    db: AsyncSession,
    user_x_id: UUID,
    user_y_id: UUID,
) -> Match | None:
    """Get the match for an unordered pair if it exists."""
    result = await db.execute(
        select(Match).where(Match.pair_key == make_pair_key(user_x_id, user_y_id))
    )
    return result.scalar_one_or_none()


async def get_member_match(
    db: AsyncSession,
    match_id: UUID,
    user_id: UUID,
) -> Match:
    """Load a match the user belongs to, or raise."""
    match = await get_match_by_id(db, match_id)
    if match is None:
        raise NotFoundError("Match not found", resource="match")
    if not match.has_member(user_id):
        raise AuthorizationError("User is not part of this match")
    return match


async def get_message_counts(
    db: AsyncSession,
    match_id: UUID,
) -> tuple[dict[UUID, int], int]:
    """Count messages per sender. Returns (counts_by_sender, total)."""
    result = await db.execute(
        select(Message.sender_id, func.count(Message.id))
        .where(Message.match_id == match_id)
        .group_by(Message.sender_id)
    )
    by_sender = {sender_id: count for sender_id, count in result.all()}
    return by_sender, sum(by_sender.values())


async def get_meet_decisions(
    db: AsyncSession,
    match_id: UUID,
) -> dict[UUID, str]:
    result = await db.execute(
        select(MeetDecision.user_id, MeetDecision.decision).where(
            MeetDecision.match_id == match_id
        )
    )
    return {user_id: decision for user_id, decision in result.all()}


def both_said_yes(match: Match, decisions: dict[UUID, str]) -> bool:
    return (
        decisions.get(match.user_a_id) == "yes"
        and decisions.get(match.user_b_id) == "yes"
    )


async def build_match_response(db: AsyncSession, match: Match) -> MatchResponse:
    """Match with its derived message counts and meet decisions."""
    by_sender, total = await get_message_counts(db, match.id)
    decisions = await get_meet_decisions(db, match.id)

    response = MatchResponse.model_validate(match)
    response.messages_by_user = {
        str(user_id): by_sender.get(user_id, 0)
        for user_id in (match.user_a_id, match.user_b_id)
    }
    response.total_messages = total
    response.meet_decision_by_user = {
        str(user_id): decision for user_id, decision in decisions.items()
    }
    response.both_yes = both_said_yes(match, decisions)
    return response


async def get_user_matches(
    db: AsyncSession,
    user_id: UUID,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[Match], int]:
    """Get all matches for a user."""
    query = select(Match).where(
        or_(Match.user_a_id == user_id, Match.user_b_id == user_id)
    )

    # Get total count
    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    # Apply pagination and ordering
    offset = (page - 1) * per_page
    query = query.order_by(Match.created_at.desc()).offset(offset).limit(per_page)

    result = await db.execute(query)
    matches = list(result.scalars().all())

    return matches, total

import logging
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.config import settings
from app.core import clock
from app.core.exceptions import (
    AuthorizationError,
    ConflictError,
    ErrorCode,
    NotFoundError,
    PreconditionError,
    SessionNotActiveError,
)
from app.database import acquire_xact_lock
from app.models.availability import AvailabilitySession, SessionCandidate
from app.models.match import Match
from app.models.meet_decision import MeetDecision
from app.models.meetup_offer import MeetupOffer
from app.services import meetup_offer_service

logger = logging.getLogger(__name__)


async def get_session_by_id(
    db: AsyncSession,
    session_id: UUID,
) -> AvailabilitySession | None:
    result = await db.execute(
        select(AvailabilitySession).where(AvailabilitySession.id == session_id)
    )
    return result.scalar_one_or_none()


async def get_active_session(
    db: AsyncSession,
    session_id: UUID,
) -> AvailabilitySession:
    session = await get_session_by_id(db, session_id)
    if session is None:
        raise NotFoundError("Availability session not found", resource="availability_session")
    if not session.active:
        raise SessionNotActiveError()
    return session


async def get_active_session_for_initiator(
    db: AsyncSession,
    initiator_user_id: UUID,
) -> AvailabilitySession | None:
    result = await db.execute(
        select(AvailabilitySession).where(
            AvailabilitySession.initiator_user_id == initiator_user_id,
            AvailabilitySession.active.is_(True),
        )
    )
    return result.scalar_one_or_none()


async def get_eligible_matches(
    db: AsyncSession,
    user_id: UUID,
) -> list[Match]:
    """
    Matches where both users said yes to meeting and no meetup has been
    accepted yet (coordination_ends_at unset).
    """
    decision_a = aliased(MeetDecision)
    decision_b = aliased(MeetDecision)
    result = await db.execute(
        select(Match)
        .join(
            decision_a,
            (decision_a.match_id == Match.id) & (decision_a.user_id == Match.user_a_id),
        )
        .join(
            decision_b,
            (decision_b.match_id == Match.id) & (decision_b.user_id == Match.user_b_id),
        )
        .where(
            or_(Match.user_a_id == user_id, Match.user_b_id == user_id),
            decision_a.decision == "yes",
            decision_b.decision == "yes",
            Match.coordination_ends_at.is_(None),
        )
        .order_by(Match.created_at.desc())
    )
    return list(result.scalars().all())


async def get_candidates(
    db: AsyncSession,
    session_id: UUID,
) -> list[SessionCandidate]:
    result = await db.execute(
        select(SessionCandidate)
        .where(SessionCandidate.session_id == session_id)
        .order_by(SessionCandidate.updated_at.desc())
    )
    return list(result.scalars().all())


async def start_availability(
    db: AsyncSession,
    initiator_user_id: UUID,
) -> tuple[AvailabilitySession, list[SessionCandidate]]:
    """
    Open an availability session seeded with every eligible match.

    An already active session is closed, reused or rejected according to
    AVAILABILITY_RESTART_POLICY.
    """
    await acquire_xact_lock(db, f"availability_initiator:{initiator_user_id}")

    existing = await get_active_session_for_initiator(db, initiator_user_id)
    policy = settings.AVAILABILITY_RESTART_POLICY
    if existing is not None:
        if policy == "reuse":
            await db.commit()
            return existing, await get_candidates(db, existing.id)
        if policy == "reject":
            raise ConflictError(
                "An availability session is already active",
                code=ErrorCode.SESSION_ALREADY_ACTIVE,
                metadata={"session_id": str(existing.id)},
            )

    eligible = await get_eligible_matches(db, initiator_user_id)
    if not eligible:
        raise PreconditionError(
            "No eligible matches where both users selected yes",
            code=ErrorCode.NO_ELIGIBLE_MATCHES,
        )

    now = clock.utcnow()
    try:
        if existing is not None:
            existing.active = False
            existing.closed_at = now
            await db.flush()

        session = AvailabilitySession(
            initiator_user_id=initiator_user_id,
            active=True,
            created_at=now,
        )
        db.add(session)
        await db.flush()

        for match in eligible:
            db.add(
                SessionCandidate(
                    session_id=session.id,
                    candidate_user_id=match.other_user_id(initiator_user_id),
                    match_id=match.id,
                    response="pending",
                    updated_at=now,
                )
            )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Availability session was started concurrently, refresh and try again")

    logger.info(
        "Availability session %s started by %s with %d candidates%s",
        session.id,
        initiator_user_id,
        len(eligible),
        f" (closed {existing.id})" if existing is not None else "",
    )
    return session, await get_candidates(db, session.id)


async def respond_interest(
    db: AsyncSession,
    session_id: UUID,
    user_id: UUID,
    response: str,
) -> SessionCandidate:
    """Record a candidate's yes/no for the session. Later answers overwrite."""
    session = await get_active_session(db, session_id)
    if session.initiator_user_id == user_id:
        raise AuthorizationError("The session initiator cannot respond to their own session")

    candidate = await db.get(SessionCandidate, (session_id, user_id))
    if candidate is None:
        raise PreconditionError("Candidate is not part of this session")

    candidate.response = response
    candidate.updated_at = clock.utcnow()
    await db.commit()
    return candidate


async def close_availability(
    db: AsyncSession,
    session_id: UUID,
    initiator_user_id: UUID,
) -> AvailabilitySession:
    """Close the session. Offers already created keep their own lifecycle."""
    session = await get_active_session(db, session_id)
    if session.initiator_user_id != initiator_user_id:
        raise AuthorizationError("Only session initiator can close this session")

    session.active = False
    session.closed_at = clock.utcnow()
    await db.commit()

    logger.info("Availability session %s closed", session_id)
    return session


async def get_availability_state(
    db: AsyncSession,
    session_id: UUID,
    user_id: UUID,
) -> tuple[AvailabilitySession, list[SessionCandidate], MeetupOffer | None]:
    """
    Session, its candidates and its latest offer with deadlines applied.
    Readable by the initiator and the session's candidates, also after close.
    """
    session = await get_session_by_id(db, session_id)
    if session is None:
        raise NotFoundError("Availability session not found", resource="availability_session")

    candidates = await get_candidates(db, session_id)
    if session.initiator_user_id != user_id and all(
        c.candidate_user_id != user_id for c in candidates
    ):
        raise AuthorizationError("Not part of this availability session")

    latest_offer = await meetup_offer_service.get_latest_offer(db, session_id)
    if latest_offer is not None:
        latest_offer = await meetup_offer_service.refresh_offer(db, latest_offer)

    return session, candidates, latest_offer

"""
Meetup offer state machine.

pending -> accepted | declined | expired
accepted -> location_expired

Deadlines are applied lazily whenever an offer is read or acted on; there
is no background sweeper.
"""

import logging
from datetime import datetime, timedelta
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core import clock
from app.core.exceptions import (
    AuthorizationError,
    ConflictError,
    ErrorCode,
    NotFoundError,
    OfferNotPendingError,
    OffersPausedError,
    PreconditionError,
    SessionNotActiveError,
    ValidationError,
)
from app.database import acquire_xact_lock
from app.models.availability import AvailabilitySession, SessionCandidate
from app.models.match import Match
from app.models.meetup_offer import OPEN_OFFER_STATUSES, MeetupOffer

logger = logging.getLogger(__name__)


def lazy_expiry_status(offer: MeetupOffer, now: datetime) -> str | None:
    """Status the offer moves to once a deadline has elapsed, or None."""
    if offer.status == "pending" and now > offer.respond_by:
        return "expired"
    if offer.status == "accepted" and now > offer.location_expires_at:
        return "location_expired"
    return None


async def apply_lazy_expiry(db: AsyncSession, offer: MeetupOffer, now: datetime) -> bool:
    """
    Move the offer past any elapsed deadline. Returns True if this call changed it.

    The UPDATE only matches the status the offer was read with, so an accept
    or decline committed by another request in the meantime is kept. The
    instance is reloaded afterwards and reflects whichever write won.
    """
    target = lazy_expiry_status(offer, now)
    if target is None:
        return False

    if offer.status == "pending":
        deadline = MeetupOffer.respond_by
    else:
        deadline = MeetupOffer.location_expires_at
    result = await db.execute(
        update(MeetupOffer)
        .where(
            MeetupOffer.id == offer.id,
            MeetupOffer.status == offer.status,
            deadline < now,
        )
        .values(status=target)
        .execution_options(synchronize_session=False)
    )
    await db.refresh(offer)
    return result.rowcount == 1


def is_curfew_hour(now: datetime) -> bool:
    start = settings.OFFER_CURFEW_START_HOUR
    end = settings.OFFER_CURFEW_END_HOUR
    hour = now.astimezone(ZoneInfo(settings.OFFER_CURFEW_TIMEZONE)).hour
    if start <= end:
        return start <= hour < end
    # Window wraps past midnight, e.g. 22 -> 4
    return hour >= start or hour < end


def check_curfew(now: datetime) -> None:
    if settings.OFFER_CURFEW_ENABLED and is_curfew_hour(now):
        raise OffersPausedError(resumes_at_hour=settings.OFFER_CURFEW_END_HOUR)


async def get_offer_by_id(
    db: AsyncSession,
    offer_id: UUID,
    for_update: bool = False,
) -> MeetupOffer | None:
    query = select(MeetupOffer).where(MeetupOffer.id == offer_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_latest_offer(
    db: AsyncSession,
    session_id: UUID,
) -> MeetupOffer | None:
    result = await db.execute(
        select(MeetupOffer)
        .where(MeetupOffer.session_id == session_id)
        .order_by(MeetupOffer.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_open_offers(db: AsyncSession, session_id: UUID) -> list[MeetupOffer]:
    result = await db.execute(
        select(MeetupOffer).where(
            MeetupOffer.session_id == session_id,
            MeetupOffer.status.in_(OPEN_OFFER_STATUSES),
        )
    )
    return list(result.scalars().all())


async def refresh_offer(db: AsyncSession, offer: MeetupOffer) -> MeetupOffer:
    """Apply deadlines to an offer that was just read and persist any change."""
    if await apply_lazy_expiry(db, offer, clock.utcnow()):
        await db.commit()
        logger.info("Offer %s lazily moved to %s", offer.id, offer.status)
    return offer


def _check_participant(offer: MeetupOffer, user_id: UUID) -> None:
    if user_id not in (offer.initiator_user_id, offer.recipient_user_id):
        raise AuthorizationError("Not a participant of this offer")


async def get_offer(
    db: AsyncSession,
    offer_id: UUID,
    user_id: UUID,
) -> MeetupOffer:
    offer = await get_offer_by_id(db, offer_id)
    if offer is None:
        raise NotFoundError("Offer not found", resource="meetup_offer")
    _check_participant(offer, user_id)
    return await refresh_offer(db, offer)


async def create_meetup_offer(
    db: AsyncSession,
    session_id: UUID,
    initiator_user_id: UUID,
    recipient_user_id: UUID,
    place_id: str,
    place_label: str,
) -> MeetupOffer:
    """
    Offer a public place to one interested candidate of the session.

    A session holds at most one open offer; open offers whose deadline has
    passed are expired first, anything still open yields 409.
    """
    if not place_id.startswith(settings.PUBLIC_PLACE_ID_PREFIX):
        raise ValidationError("Offer location must be a public mapped place", field="place_id")
    if not place_label.strip():
        raise ValidationError("Place label cannot be empty", field="place_label")
    if recipient_user_id == initiator_user_id:
        raise ValidationError("Cannot send an offer to yourself", field="recipient_user_id")

    now = clock.utcnow()
    check_curfew(now)

    await acquire_xact_lock(db, f"offer_session:{session_id}")

    result = await db.execute(
        select(AvailabilitySession)
        .where(AvailabilitySession.id == session_id)
        .with_for_update()
    )
    session = result.scalar_one_or_none()
    if session is None:
        raise NotFoundError("Availability session not found", resource="availability_session")
    if not session.active:
        raise SessionNotActiveError()
    if session.initiator_user_id != initiator_user_id:
        raise AuthorizationError("Only session initiator can create offers")

    candidate = await db.get(SessionCandidate, (session_id, recipient_user_id))
    if candidate is None:
        raise PreconditionError("Recipient is not a candidate in this session")
    if candidate.response != "yes":
        raise PreconditionError(
            "Candidate has not expressed interest",
            code=ErrorCode.CANDIDATE_NOT_INTERESTED,
        )

    open_offers = await get_open_offers(db, session_id)
    for open_offer in open_offers:
        await apply_lazy_expiry(db, open_offer, now)
    still_open = [o for o in open_offers if o.status in OPEN_OFFER_STATUSES]

    if still_open:
        await db.commit()
        raise ConflictError(
            "This session already has an open offer",
            code=ErrorCode.OFFER_ALREADY_ACTIVE,
            metadata={"offer_id": str(still_open[0].id)},
        )

    offer = MeetupOffer(
        session_id=session_id,
        initiator_user_id=initiator_user_id,
        recipient_user_id=recipient_user_id,
        place_id=place_id,
        place_label=place_label.strip(),
        status="pending",
        created_at=now,
        respond_by=now + timedelta(seconds=settings.OFFER_RESPONSE_SECONDS),
        location_expires_at=now + timedelta(minutes=settings.LOCATION_EXPIRY_MINUTES),
    )
    try:
        db.add(offer)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(
            "Another offer was created for this session, refresh and try again",
            code=ErrorCode.OFFER_ALREADY_ACTIVE,
        )

    logger.info(
        "Offer %s created in session %s for %s at %s",
        offer.id,
        session_id,
        recipient_user_id,
        place_id,
    )
    return offer


async def respond_to_offer(
    db: AsyncSession,
    offer_id: UUID,
    recipient_user_id: UUID,
    accept: bool,
) -> tuple[MeetupOffer, datetime | None]:
    """
    Accept or decline a pending offer.

    Deadlines are committed before the decision is considered, so a late
    answer sees the offer as expired. Returns (offer, coordination_ends_at).
    """
    await acquire_xact_lock(db, f"offer:{offer_id}")

    offer = await get_offer_by_id(db, offer_id, for_update=True)
    if offer is None:
        raise NotFoundError("Offer not found", resource="meetup_offer")
    if offer.recipient_user_id != recipient_user_id:
        raise AuthorizationError("Only the offer recipient can respond")

    now = clock.utcnow()
    if await apply_lazy_expiry(db, offer, now):
        await db.commit()
        logger.info("Offer %s expired before a response", offer_id)
    if offer.status != "pending":
        raise OfferNotPendingError(offer.status)

    check_curfew(now)

    if not accept:
        offer.status = "declined"
        offer.responded_at = now
        await db.commit()
        logger.info("Offer %s declined", offer_id)
        return offer, None

    candidate = await db.get(SessionCandidate, (offer.session_id, offer.recipient_user_id))
    if candidate is None:
        raise PreconditionError("Offer recipient is no longer a session candidate")
    match = await db.get(Match, candidate.match_id)
    if match is None:
        raise NotFoundError("Match not found", resource="match")

    coordination_ends_at = now + timedelta(minutes=settings.COORDINATION_WINDOW_MINUTES)
    offer.status = "accepted"
    offer.responded_at = now
    match.coordination_ends_at = coordination_ends_at
    await db.commit()

    logger.info(
        "Offer %s accepted, match %s coordinating until %s",
        offer_id,
        match.id,
        coordination_ends_at,
    )
    return offer, coordination_ends_at


async def expire_location_if_needed(
    db: AsyncSession,
    offer_id: UUID,
    user_id: UUID,
) -> MeetupOffer:
    """Apply elapsed deadlines on demand. A no-op when nothing has elapsed."""
    await acquire_xact_lock(db, f"offer:{offer_id}")

    offer = await get_offer_by_id(db, offer_id, for_update=True)
    if offer is None:
        raise NotFoundError("Offer not found", resource="meetup_offer")
    _check_participant(offer, user_id)

    changed = await apply_lazy_expiry(db, offer, clock.utcnow())
    # Commit either way to release the row lock
    await db.commit()
    if changed:
        logger.info("Offer %s moved to %s", offer_id, offer.status)
    return offer

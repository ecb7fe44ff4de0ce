import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, UTCDateTime

if TYPE_CHECKING:
    from app.models.availability import AvailabilitySession

OFFER_STATUSES = ("pending", "accepted", "declined", "expired", "location_expired")

# Statuses that still occupy the session's single offer slot
OPEN_OFFER_STATUSES = ("pending", "accepted")


class MeetupOffer(Base):
    __tablename__ = "meetup_offers"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    session_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("availability_sessions.id", ondelete="CASCADE"),
        nullable=False,
    )
    initiator_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    recipient_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Public mapped place, e.g. "poi_city_library"
    place_id: Mapped[str] = mapped_column(String(200), nullable=False)
    place_label: Mapped[str] = mapped_column(String(200), nullable=False)

    # pending, accepted, declined, expired, location_expired
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    # Deadline for the recipient to answer
    respond_by: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    # How long the shared location stays valid once accepted
    location_expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    responded_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    session: Mapped["AvailabilitySession"] = relationship(
        "AvailabilitySession", back_populates="offers"
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'accepted', 'declined', 'expired', 'location_expired')",
            name="meetup_offer_status_check",
        ),
        Index("ix_meetup_offers_session_created", "session_id", "created_at"),
        # At most one open offer per session
        Index(
            "ux_meetup_offers_open_session",
            "session_id",
            unique=True,
            postgresql_where=text("status IN ('pending', 'accepted')"),
            sqlite_where=text("status IN ('pending', 'accepted')"),
        ),
    )

    @property
    def display_status(self) -> str:
        # Clients show both deadline outcomes as "expired"
        if self.status == "location_expired":
            return "expired"
        return self.status

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, UTCDateTime

if TYPE_CHECKING:
    from app.models.meetup_offer import MeetupOffer


class AvailabilitySession(Base):
    """An initiator's open invitation to their mutual-yes matches."""

    __tablename__ = "availability_sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    initiator_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    closed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    # Relationships
    candidates: Mapped[list["SessionCandidate"]] = relationship(
        "SessionCandidate",
        back_populates="session",
        cascade="all, delete-orphan",
    )
    offers: Mapped[list["MeetupOffer"]] = relationship(
        "MeetupOffer",
        back_populates="session",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        # One active session per initiator
        Index(
            "ux_availability_sessions_active_initiator",
            "initiator_user_id",
            unique=True,
            postgresql_where=text("active = true"),
            sqlite_where=text("active = 1"),
        ),
    )


class SessionCandidate(Base):
    """A mutual-yes match attached to a session, with the candidate's interest."""

    __tablename__ = "session_candidates"

    session_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("availability_sessions.id", ondelete="CASCADE"),
        primary_key=True,
    )
    candidate_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    match_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("matches.id", ondelete="CASCADE"),
        nullable=False,
    )

    # pending, yes, no
    response: Mapped[str] = mapped_column(String(10), default="pending", nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    session: Mapped["AvailabilitySession"] = relationship(
        "AvailabilitySession", back_populates="candidates"
    )

    __table_args__ = (
        CheckConstraint(
            "response IN ('pending', 'yes', 'no')", name="candidate_response_check"
        ),
    )

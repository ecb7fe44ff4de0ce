import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, UTCDateTime

if TYPE_CHECKING:
    from app.models.match import Match


class MeetDecision(Base):
    __tablename__ = "meet_decisions"

    match_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("matches.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )

    # yes, no
    decision: Mapped[str] = mapped_column(String(10), nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    match: Mapped["Match"] = relationship("Match", back_populates="meet_decisions")

    __table_args__ = (
        CheckConstraint("decision IN ('yes', 'no')", name="meet_decision_value_check"),
    )

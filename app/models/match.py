import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, UTCDateTime

if TYPE_CHECKING:
    from app.models.meet_decision import MeetDecision
    from app.models.user import User


def make_pair_key(user_x: uuid.UUID, user_y: uuid.UUID) -> str:
    """Order-independent key for an unordered pair of users."""
    low, high = sorted((str(user_x), str(user_y)))
    return f"{low}:{high}"


class Match(Base):
    __tablename__ = "matches"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # Two users in the match, stored in the order the match completed.
    # The order carries no meaning; pair_key is the identity of the pair.
    user_a_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_b_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    pair_key: Mapped[str] = mapped_column(
        String(80),
        unique=True,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # End of the chat extension granted when a meetup offer is accepted
    coordination_ends_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime,
        nullable=True,
    )

    # Relationships
    user_a: Mapped["User"] = relationship("User", foreign_keys=[user_a_id])
    user_b: Mapped["User"] = relationship("User", foreign_keys=[user_b_id])
    meet_decisions: Mapped[list["MeetDecision"]] = relationship(
        "MeetDecision", back_populates="match"
    )

    __table_args__ = (
        CheckConstraint("user_a_id <> user_b_id", name="match_distinct_users_check"),
    )

    def has_member(self, user_id: uuid.UUID) -> bool:
        return user_id in (self.user_a_id, self.user_b_id)

    def other_user_id(self, user_id: uuid.UUID) -> uuid.UUID:
        return self.user_b_id if self.user_a_id == user_id else self.user_a_id

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class SwipeDecision(str, Enum):
    left = "left"
    right = "right"


class SwipeCreate(BaseModel):
    """Swipe on another user"""

    to_user_id: UUID
    decision: SwipeDecision


class MatchResponse(BaseModel):
    """Match details returned by API"""

    id: UUID
    user_a_id: UUID
    user_b_id: UUID
    created_at: datetime
    coordination_ends_at: datetime | None = None

    # Derived from message and meet-decision rows
    messages_by_user: dict[str, int] = {}
    total_messages: int = 0
    meet_decision_by_user: dict[str, str] = {}
    both_yes: bool = False

    # Profile of the other person in the match
    other_user_profile: dict | None = None

    model_config = ConfigDict(from_attributes=True)


class MatchListResponse(BaseModel):
    """Paginated list of matches"""

    matches: list[MatchResponse]
    total: int
    page: int
    per_page: int


class SwipeResult(BaseModel):
    """Outcome of a swipe"""

    matched: bool
    # True only for the swipe that created the match ("It's a match")
    is_new_match: bool = False
    match: MatchResponse | None = None

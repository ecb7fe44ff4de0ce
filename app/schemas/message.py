"""Message and meet-decision schemas for API requests and responses."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MessageCreate(BaseModel):
    """Create a new message."""
    body: str = Field(..., min_length=1, max_length=2000)


class MessageResponse(BaseModel):
    """Message response."""
    id: UUID
    match_id: UUID
    sender_id: UUID
    body: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SendMessageResponse(BaseModel):
    """Sent message with the quota left in the chat."""
    message: MessageResponse
    remaining_for_sender: int
    remaining_total: int
    needs_meet_decision: bool


class MeetDecisionValue(str, Enum):
    yes = "yes"
    no = "no"


class MeetDecisionUpdate(BaseModel):
    decision: MeetDecisionValue


class MeetDecisionResponse(BaseModel):
    match_id: UUID
    decisions: dict[str, str]
    both_yes: bool

from app.models.availability import AvailabilitySession, SessionCandidate
from app.models.match import Match
from app.models.meet_decision import MeetDecision
from app.models.meetup_offer import MeetupOffer
from app.models.message import Message
from app.models.push_token import PushToken
from app.models.swipe import Swipe
from app.models.user import User

__all__ = [
    "User",
    "Swipe",
    "Match",
    "Message",
    "MeetDecision",
    "AvailabilitySession",
    "SessionCandidate",
    "MeetupOffer",
    "PushToken",
]

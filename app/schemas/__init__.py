from app.schemas.availability import (
    AvailabilitySessionResponse,
    AvailabilityStartResponse,
    AvailabilityStateResponse,
    CandidateResponse,
    InterestRespond,
    MeetupOfferCreate,
    MeetupOfferRespond,
    MeetupOfferResponse,
    OfferDecisionResponse,
)
from app.schemas.match import (
    MatchListResponse,
    MatchResponse,
    SwipeCreate,
    SwipeDecision,
    SwipeResult,
)
from app.schemas.message import (
    MeetDecisionResponse,
    MeetDecisionUpdate,
    MessageCreate,
    MessageResponse,
    SendMessageResponse,
)
from app.schemas.user import (
    DiscoveryProfile,
    DiscoveryResponse,
    DistancePreferenceUpdate,
    LocationResponse,
    LocationUpdate,
    PushTokenRegister,
    PushTokenResponse,
    Token,
    TokenPayload,
    UserBrief,
    UserCreate,
    UserResponse,
)

__all__ = [
    "UserCreate",
    "UserResponse",
    "UserBrief",
    "Token",
    "TokenPayload",
    "LocationUpdate",
    "LocationResponse",
    "DistancePreferenceUpdate",
    "PushTokenRegister",
    "PushTokenResponse",
    "DiscoveryProfile",
    "DiscoveryResponse",
    "SwipeCreate",
    "SwipeDecision",
    "SwipeResult",
    "MatchResponse",
    "MatchListResponse",
    "MessageCreate",
    "MessageResponse",
    "SendMessageResponse",
    "MeetDecisionUpdate",
    "MeetDecisionResponse",
    "InterestRespond",
    "AvailabilitySessionResponse",
    "CandidateResponse",
    "AvailabilityStartResponse",
    "AvailabilityStateResponse",
    "MeetupOfferCreate",
    "MeetupOfferRespond",
    "MeetupOfferResponse",
    "OfferDecisionResponse",
]

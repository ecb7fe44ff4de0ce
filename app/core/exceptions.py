"""
Application error hierarchy.

Each class fixes an HTTP status and a default ErrorCode; services raise them
with a human message and the handlers in exception_handlers turn them into
the JSON error envelope the mobile client understands.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Machine-readable codes shared with the mobile client"""

    # 401
    AUTH_NOT_AUTHENTICATED = "AUTH_NOT_AUTHENTICATED"

    # 403
    AUTHZ_FORBIDDEN = "AUTHZ_FORBIDDEN"
    AUTHZ_USER_NOT_VERIFIED = "AUTHZ_USER_NOT_VERIFIED"

    # 404 / 409
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    OFFER_ALREADY_ACTIVE = "OFFER_ALREADY_ACTIVE"
    SESSION_ALREADY_ACTIVE = "SESSION_ALREADY_ACTIVE"

    # 422
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # 400, the action is not allowed in the current state
    PRECONDITION_FAILED = "PRECONDITION_FAILED"
    MESSAGE_QUOTA_SENDER_REACHED = "MESSAGE_QUOTA_SENDER_REACHED"
    MESSAGE_QUOTA_TOTAL_REACHED = "MESSAGE_QUOTA_TOTAL_REACHED"
    NO_ELIGIBLE_MATCHES = "NO_ELIGIBLE_MATCHES"
    SESSION_NOT_ACTIVE = "SESSION_NOT_ACTIVE"
    CANDIDATE_NOT_INTERESTED = "CANDIDATE_NOT_INTERESTED"
    OFFER_NOT_PENDING = "OFFER_NOT_PENDING"
    OFFERS_PAUSED = "OFFERS_PAUSED"

    # 5xx
    SERVER_ERROR = "SERVER_ERROR"
    SERVER_UNAVAILABLE = "SERVER_UNAVAILABLE"


class AppException(Exception):
    """Base class for every error the API reports on purpose."""

    status_code: int = 500
    default_code: ErrorCode = ErrorCode.SERVER_ERROR
    default_message: str = "Unexpected server error"

    def __init__(
        self,
        message: str | None = None,
        code: ErrorCode | None = None,
        field: str | None = None,
        metadata: dict[str, Any] | None = None,
    ):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.field = field
        self.metadata = metadata or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"detail": self.message, "code": self.code.value}
        if self.field:
            body["field"] = self.field
        if self.metadata:
            body["metadata"] = self.metadata
        return body


class AuthorizationError(AppException):
    status_code = 403
    default_code = ErrorCode.AUTHZ_FORBIDDEN
    default_message = "You are not allowed to perform this action"


class UserNotVerifiedError(AuthorizationError):
    default_code = ErrorCode.AUTHZ_USER_NOT_VERIFIED
    default_message = "Verify your identity to use this feature"


class NotFoundError(AppException):
    status_code = 404
    default_code = ErrorCode.RESOURCE_NOT_FOUND
    default_message = "Requested resource was not found"

    def __init__(self, message: str | None = None, resource: str | None = None):
        super().__init__(message, metadata={"resource": resource} if resource else None)


class ConflictError(AppException):
    """
    A concurrent writer won, or the aggregate already holds its single active
    child. Clients should re-fetch state instead of retrying blindly.
    """

    status_code = 409
    default_code = ErrorCode.RESOURCE_CONFLICT
    default_message = "Request conflicts with the current state, refresh and try again"


class ValidationError(AppException):
    status_code = 422
    default_code = ErrorCode.VALIDATION_ERROR
    default_message = "Please check the submitted data"


class PreconditionError(AppException):
    status_code = 400
    default_code = ErrorCode.PRECONDITION_FAILED
    default_message = "Action is not allowed in the current state"


class QuotaExceededError(PreconditionError):
    """Message quota for the match is used up"""

    def __init__(self, message: str, code: ErrorCode, limit: int):
        super().__init__(message, code=code, metadata={"limit": limit})


class SessionNotActiveError(PreconditionError):
    default_code = ErrorCode.SESSION_NOT_ACTIVE
    default_message = "Availability session is closed"


class OfferNotPendingError(PreconditionError):
    """Offer already resolved, including by a deadline passing"""

    default_code = ErrorCode.OFFER_NOT_PENDING

    def __init__(self, status: str):
        super().__init__(
            f"Offer is no longer pending (status: {status})",
            metadata={"status": status},
        )


class OffersPausedError(PreconditionError):
    default_code = ErrorCode.OFFERS_PAUSED
    default_message = "Meetup offers are paused during curfew hours"

    def __init__(self, resumes_at_hour: int):
        super().__init__(metadata={"resumes_at_hour": resumes_at_hour})

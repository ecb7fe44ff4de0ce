"""
Global exception handlers for the FastAPI application.

Every error leaves the API as {"detail", "code", "field"?, "metadata"?}
with an X-Request-ID header that also appears in the log line.
"""

import logging
import uuid
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import AppException, ErrorCode

logger = logging.getLogger(__name__)

STATUS_TO_CODE = {
    400: ErrorCode.PRECONDITION_FAILED,
    401: ErrorCode.AUTH_NOT_AUTHENTICATED,
    403: ErrorCode.AUTHZ_FORBIDDEN,
    404: ErrorCode.RESOURCE_NOT_FOUND,
    405: ErrorCode.PRECONDITION_FAILED,
    409: ErrorCode.RESOURCE_CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
    502: ErrorCode.SERVER_UNAVAILABLE,
    503: ErrorCode.SERVER_UNAVAILABLE,
}


def generate_request_id() -> str:
    """Short id tying a response to its log line"""
    return uuid.uuid4().hex[:8]


def _error_response(
    status_code: int,
    body: dict[str, Any],
    request_id: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=body,
        headers={**(headers or {}), "X-Request-ID": request_id},
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Domain errors raised by the services."""
    request_id = generate_request_id()

    # Conflicts are expected under concurrent use; the client re-fetches
    level = logging.INFO if exc.status_code == 409 else logging.WARNING
    logger.log(
        level,
        "%s %s -> %d %s: %s (request_id=%s)",
        request.method,
        request.url.path,
        exc.status_code,
        exc.code.value,
        exc.message,
        request_id,
    )

    return _error_response(exc.status_code, exc.to_dict(), request_id)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request body/query validation, reported per field."""
    request_id = generate_request_id()

    errors = [
        {"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]}
        for error in exc.errors()
    ]
    logger.warning(
        "%s %s -> 422 invalid request: %s (request_id=%s)",
        request.method,
        request.url.path,
        errors,
        request_id,
    )

    body: dict[str, Any] = {"detail": errors, "code": ErrorCode.VALIDATION_ERROR.value}
    # Surface the first offending field the way domain validation errors do
    if errors and len(errors[0]["loc"]) > 1:
        body["field"] = str(errors[0]["loc"][-1])

    return _error_response(422, body, request_id)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Framework HTTP errors (401 from auth, 404 for unknown routes)."""
    request_id = generate_request_id()
    code = STATUS_TO_CODE.get(exc.status_code, ErrorCode.SERVER_ERROR)

    logger.warning(
        "%s %s -> %d: %s (request_id=%s)",
        request.method,
        request.url.path,
        exc.status_code,
        exc.detail,
        request_id,
    )

    body = {"detail": exc.detail or "An error occurred", "code": code.value}
    return _error_response(exc.status_code, body, request_id, getattr(exc, "headers", None))


async def database_unavailable_handler(request: Request, exc: DBAPIError) -> JSONResponse:
    """
    Lost or refused database connections.

    The request's transaction is rolled back when its session closes, so the
    client can retry the same call.
    """
    request_id = generate_request_id()

    logger.error(
        "%s %s -> 503 database unavailable: %s (request_id=%s)",
        request.method,
        request.url.path,
        exc.orig or exc,
        request_id,
    )

    body = {
        "detail": "Service is temporarily unavailable. Please try again.",
        "code": ErrorCode.SERVER_UNAVAILABLE.value,
    }
    return _error_response(503, body, request_id)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unexpected: full traceback in the log, generic body to the client."""
    request_id = generate_request_id()

    logger.exception(
        "%s %s -> 500 unhandled %s (request_id=%s)",
        request.method,
        request.url.path,
        type(exc).__name__,
        request_id,
    )

    body = {
        "detail": "Something went wrong on our side. Please try again later.",
        "code": ErrorCode.SERVER_ERROR.value,
    }
    return _error_response(500, body, request_id)

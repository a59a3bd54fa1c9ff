"""
Domain exceptions and their HTTP mapping.

Services and the seat domain raise these instead of HTTPException so the
inventory can be exercised without a web stack. The handlers registered in
main.py turn them into JSON error bodies with the offending seat ids, which
lets clients re-sync their seat map instead of retrying blind.
"""

from typing import Iterable, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from theater.core.logging import get_logger

logger = get_logger(__name__)


class SeatingError(Exception):
    """Base class for every error the booking core reports to callers."""

    error = "Error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(SeatingError):
    error = "Not Found"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(SeatingError):
    """Seats are not in the state the requested transition needs."""

    error = "Conflict"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str, seat_ids: Iterable[str] = (), details: Optional[dict] = None):
        self.seat_ids = list(seat_ids)
        merged = dict(details or {})
        if self.seat_ids:
            merged["seat_ids"] = self.seat_ids
        super().__init__(message, merged)


class SeatsUnavailableError(ConflictError):
    """A confirmed selection lost the race; the local selection was cleared."""

    error = "Seats Unavailable"


class InvalidTransitionError(SeatingError):
    error = "Invalid Transition"
    status_code = status.HTTP_400_BAD_REQUEST


class ValidationError(SeatingError):
    error = "Validation Error"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class AuthenticationError(SeatingError):
    error = "Unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(SeatingError):
    error = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class RateLimitExceededError(SeatingError):
    error = "Too Many Requests"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


async def seating_error_handler(request: Request, exc: SeatingError) -> JSONResponse:
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "request_rejected",
        error=exc.error,
        detail=exc.message,
        status_code=exc.status_code,
        **exc.details,
    )
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "detail": exc.message, **exc.details},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SeatingError, seating_error_handler)

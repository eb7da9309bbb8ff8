"""
Failure kinds surfaced by the reservation engine and its collaborators.

Every kind is an HTTPException with a fixed status code, so services can
raise them directly (FastAPI renders them) while tests and other callers
can catch them by type. `code` is the machine-readable kind name included
in every error body.
"""

from typing import Optional

from fastapi import HTTPException, status


class ReservationError(HTTPException):
    """Base class for all domain failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "error"
    default_detail: str = "Request failed"

    def __init__(self, detail: Optional[str] = None, headers: Optional[dict] = None) -> None:
        super().__init__(
            status_code=type(self).status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class NotFound(ReservationError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_detail = "Resource not found"


class InvalidRequest(ReservationError):
    status_code = 422
    code = "invalid_request"
    default_detail = "Invalid request"


class DeadlineExpired(ReservationError):
    status_code = status.HTTP_410_GONE
    code = "deadline_expired"
    default_detail = "Registration for this event has closed"


class CapacityExceeded(ReservationError):
    status_code = status.HTTP_409_CONFLICT
    code = "capacity_exceeded"
    default_detail = "Not enough seats remaining"


class Contention(ReservationError):
    """Transient conflict with concurrent writers. Safe to resubmit."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "contention"
    default_detail = "Booking failed due to high demand. Please try again."

    def __init__(self, detail: Optional[str] = None, retry_after: int = 1) -> None:
        super().__init__(detail, headers={"Retry-After": str(retry_after)})


class Forbidden(ReservationError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_detail = "Not allowed"


class Unauthenticated(ReservationError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"
    default_detail = "Could not validate credentials"

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class NotEligible(ReservationError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "not_eligible"
    default_detail = "A booking for this event is required to review it"


class Conflict(ReservationError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    default_detail = "Resource already exists"

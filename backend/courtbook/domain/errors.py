"""Booking error taxonomy.

Every error carries a stable code so HTTP clients can tell a lost race
(SLOT_CONFLICT, refresh and re-pick) apart from everything else.
"""

from enum import Enum


class ErrorCode(Enum):
    SLOT_CONFLICT = "SLOT_CONFLICT"
    INVALID_SLOT = "INVALID_SLOT"
    UNAUTHORIZED = "UNAUTHORIZED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    VENUE_NOT_FOUND = "VENUE_NOT_FOUND"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def as_detail(self) -> dict[str, str]:
        return {"code": self.code.value, "message": self.message}


class SlotConflictError(DomainError):
    """The court-hour already has a confirmed booking."""

    code = ErrorCode.SLOT_CONFLICT


class InvalidSlotError(DomainError):
    """Hour outside operating hours, or a date/hour that has already passed."""

    code = ErrorCode.INVALID_SLOT


class UnauthorizedError(DomainError):
    code = ErrorCode.UNAUTHORIZED


class StoreUnavailableError(DomainError):
    """The booking store failed; nothing may be assumed written."""

    code = ErrorCode.STORE_UNAVAILABLE


class VenueNotFoundError(DomainError):
    code = ErrorCode.VENUE_NOT_FOUND

    def __init__(self, venue_id: int) -> None:
        super().__init__("venue not found")
        self.venue_id = venue_id


class BookingNotFoundError(DomainError):
    code = ErrorCode.BOOKING_NOT_FOUND

    def __init__(self, booking_id: int) -> None:
        super().__init__("booking not found")
        self.booking_id = booking_id

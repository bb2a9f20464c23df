from dataclasses import dataclass
from datetime import date, datetime

from .errors import InvalidSlotError


@dataclass(frozen=True)
class SlotRequest:
    open_hour: int
    close_hour: int
    booking_date: date
    start_hour: int


def validate_slot_request(request: SlotRequest, *, now: datetime, allow_past: bool = False) -> None:
    """
    Pure validation against the venue's current operating hours and the venue-local clock.
    Raises InvalidSlotError otherwise.
    """
    if not request.open_hour <= request.start_hour < request.close_hour:
        raise InvalidSlotError("start_hour is outside operating hours")
    if allow_past:
        return
    today = now.date()
    if request.booking_date < today:
        raise InvalidSlotError("booking date is in the past")
    if request.booking_date == today and request.start_hour <= now.hour:
        raise InvalidSlotError("slot has already started")


def parse_booking_date(raw: str) -> date:
    """Parse a venue-local YYYY-MM-DD date; anything else is an InvalidSlot."""
    try:
        return datetime.strptime(raw, "%Y-%m-%d").date()
    except ValueError:
        raise InvalidSlotError("booking date must be a valid YYYY-MM-DD date") from None

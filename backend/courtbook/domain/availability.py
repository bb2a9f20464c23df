from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from ..models import Booking, BookingStatus
from .calendar import HourSlot


@dataclass(frozen=True)
class SlotState:
    slot: HourSlot
    available: bool
    is_past: bool


def slot_has_started(slot: HourSlot, now: datetime) -> bool:
    """True if `now` (venue-local) is on or after the start of the slot's hour."""
    today = now.date()
    if slot.slot_date != today:
        return slot.slot_date < today
    return slot.start_hour <= now.hour


def resolve_availability(
    slots: Iterable[HourSlot],
    bookings: Iterable[Booking],
    *,
    now: datetime,
) -> list[SlotState]:
    """
    Classify each slot as available (no confirmed booking holds its hour) or taken.
    Read-only projection for display; reserving never consults it.
    """
    taken = {b.start_hour for b in bookings if b.status == BookingStatus.CONFIRMED}
    return [
        SlotState(slot=slot, available=slot.start_hour not in taken, is_past=slot_has_started(slot, now))
        for slot in slots
    ]

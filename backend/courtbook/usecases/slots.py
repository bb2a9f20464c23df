from datetime import date, datetime
from decimal import Decimal

from ..domain.availability import SlotState, resolve_availability
from ..domain.calendar import generate_slots
from ..domain.errors import VenueNotFoundError
from ..domain.pricing import PriceBreakdown, quote_hour
from ..domain.repositories import BookingRepository, VenueRepository


async def list_slots(
    venue_repo: VenueRepository,
    booking_repo: BookingRepository,
    *,
    venue_id: int,
    slot_date: date,
    now: datetime,
) -> list[SlotState]:
    venue = await venue_repo.get(venue_id)
    if venue is None:
        raise VenueNotFoundError(venue_id)
    slots = generate_slots(venue.id, slot_date, open_hour=venue.open_hour, close_hour=venue.close_hour)
    if not slots:
        return []
    # A store failure propagates: availability fails closed, never "all free".
    bookings = await booking_repo.list_confirmed_for_day(venue.id, slot_date)
    return resolve_availability(slots, bookings, now=now)


async def quote_venue(
    venue_repo: VenueRepository,
    *,
    venue_id: int,
    fee_rate: Decimal,
) -> PriceBreakdown:
    venue = await venue_repo.get(venue_id)
    if venue is None:
        raise VenueNotFoundError(venue_id)
    return quote_hour(venue.hourly_price, fee_rate=fee_rate)

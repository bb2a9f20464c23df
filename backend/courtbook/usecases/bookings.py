import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from ..domain.errors import (
    BookingNotFoundError,
    InvalidSlotError,
    SlotConflictError,
    UnauthorizedError,
    VenueNotFoundError,
)
from ..domain.pricing import PriceBreakdown, project_receipt, quote_hour
from ..domain.repositories import BookingRepository, VenueRepository
from ..domain.services import SlotRequest, parse_booking_date, validate_slot_request
from ..models import Booking, BookingStatus, Venue

logger = logging.getLogger(__name__)

UPCOMING_LIMIT = 5


@dataclass(frozen=True)
class Receipt:
    booking: Booking
    venue: Venue
    breakdown: PriceBreakdown


async def reserve_slot(
    venue_repo: VenueRepository,
    booking_repo: BookingRepository,
    *,
    venue_id: int,
    booking_date: date | str,
    start_hour: int,
    requester_id: str,
    fee_rate: Decimal,
    now: datetime,
    allow_past: bool = False,
    notes: str | None = None,
) -> tuple[Booking, Venue]:
    """
    Create exactly one confirmed booking for (venue, date, hour) or raise.

    Existing bookings are never read here: the store's unique constraint on the
    confirmed court-hour decides the winner, and the loser gets SlotConflictError.
    Nothing is retried. A raw YYYY-MM-DD string is accepted for booking_date;
    one that does not parse is an InvalidSlotError like any other bad slot.
    """
    if not requester_id or not requester_id.strip():
        raise UnauthorizedError("requester identity required")

    venue = await venue_repo.get(venue_id)
    if venue is None:
        raise VenueNotFoundError(venue_id)

    try:
        slot_date = parse_booking_date(booking_date) if isinstance(booking_date, str) else booking_date
        request = SlotRequest(
            open_hour=venue.open_hour,
            close_hour=venue.close_hour,
            booking_date=slot_date,
            start_hour=start_hour,
        )
        validate_slot_request(request, now=now, allow_past=allow_past)
    except InvalidSlotError as exc:
        logger.warning(
            "rejected slot venue=%s date=%s hour=%s requester=%s: %s",
            venue.id,
            booking_date,
            start_hour,
            requester_id,
            exc.message,
        )
        raise

    price = quote_hour(venue.hourly_price, fee_rate=fee_rate)
    try:
        booking = await booking_repo.create_confirmed(
            venue_id=venue.id,
            requester_id=requester_id,
            booking_date=slot_date,
            start_hour=start_hour,
            total_price=price.total,
            notes=(notes or "").strip() or None,
        )
    except SlotConflictError:
        logger.info("slot conflict venue=%s date=%s hour=%s", venue.id, slot_date, start_hour)
        raise
    return booking, venue


async def get_receipt(
    booking_repo: BookingRepository,
    *,
    booking_id: int,
    requester_id: str,
    fee_rate: Decimal,
) -> Receipt:
    row = await booking_repo.get_with_venue(booking_id)
    if row is None:
        raise BookingNotFoundError(booking_id)
    booking, venue = row
    if booking.requester_id != requester_id:
        raise BookingNotFoundError(booking_id)
    # Split the stored total; the venue's current rate plays no part.
    breakdown = project_receipt(booking.total_price, fee_rate=fee_rate)
    return Receipt(booking=booking, venue=venue, breakdown=breakdown)


async def cancel_booking(
    booking_repo: BookingRepository,
    *,
    booking_id: int,
    requester_id: str,
) -> tuple[Booking, Venue, BookingStatus]:
    """Cancel the requester's booking, freeing its court-hour. Returns the prior status."""
    row = await booking_repo.get_for_requester_for_update(booking_id, requester_id)
    if row is None:
        raise BookingNotFoundError(booking_id)
    booking, venue = row
    # Idempotent: already cancelled returns as-is
    if booking.status == BookingStatus.CANCELLED:
        return booking, venue, booking.status

    previous = booking.status
    updated = await booking_repo.cancel(booking)
    return updated, venue, previous


async def list_requester_bookings(
    booking_repo: BookingRepository,
    *,
    requester_id: str,
    status: BookingStatus | None = None,
) -> list[tuple[Booking, Venue]]:
    return await booking_repo.list_by_requester(requester_id, status)


async def list_upcoming_bookings(
    booking_repo: BookingRepository,
    *,
    requester_id: str,
    now: datetime,
    limit: int = UPCOMING_LIMIT,
) -> list[tuple[Booking, Venue]]:
    """Confirmed bookings from the venue-local today onward, soonest first."""
    return await booking_repo.list_upcoming_for_requester(requester_id, now.date(), limit)

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Protocol

from ..models import Booking, BookingStatus, Venue


class VenueRepository(Protocol):
    async def get(self, venue_id: int) -> Venue | None: ...


class BookingRepository(Protocol):
    async def list_confirmed_for_day(self, venue_id: int, booking_date: date) -> list[Booking]: ...

    async def create_confirmed(
        self,
        *,
        venue_id: int,
        requester_id: str,
        booking_date: date,
        start_hour: int,
        total_price: Decimal,
        notes: str | None = None,
    ) -> Booking: ...

    async def get_with_venue(self, booking_id: int) -> tuple[Booking, Venue] | None: ...

    async def get_for_requester_for_update(self, booking_id: int, requester_id: str) -> tuple[Booking, Venue] | None: ...

    async def list_by_requester(
        self,
        requester_id: str,
        status: BookingStatus | None = None,
    ) -> list[tuple[Booking, Venue]]: ...

    async def list_upcoming_for_requester(
        self,
        requester_id: str,
        from_date: date,
        limit: int,
    ) -> list[tuple[Booking, Venue]]: ...

    async def cancel(self, booking: Booking) -> Booking: ...

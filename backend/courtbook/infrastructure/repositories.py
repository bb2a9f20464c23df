from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterator, List, Optional, Tuple, cast

from sqlalchemy import Select, select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import SlotConflictError, StoreUnavailableError
from ..domain.repositories import BookingRepository, VenueRepository
from ..models import Booking, BookingStatus, Venue


def _utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@contextmanager
def _store_errors() -> Iterator[None]:
    try:
        yield
    except DBAPIError as exc:
        raise StoreUnavailableError("booking store unavailable") from exc


class SqlAlchemyVenueRepository(VenueRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, venue_id: int) -> Venue | None:
        with _store_errors():
            result = await self.session.scalar(select(Venue).where(Venue.id == venue_id))
        return result if isinstance(result, Venue) else None


class SqlAlchemyBookingRepository(BookingRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_confirmed_for_day(self, venue_id: int, booking_date: date) -> List[Booking]:
        stmt = (
            select(Booking)
            .where(
                Booking.venue_id == venue_id,
                Booking.booking_date == booking_date,
                Booking.status == BookingStatus.CONFIRMED,
            )
            .order_by(Booking.start_hour)
        )
        with _store_errors():
            rows = await self.session.scalars(stmt)
            return list(rows.all())

    async def create_confirmed(
        self,
        *,
        venue_id: int,
        requester_id: str,
        booking_date: date,
        start_hour: int,
        total_price: Decimal,
        notes: str | None = None,
    ) -> Booking:
        """
        Single conditional write: the INSERT succeeds only if no confirmed row
        holds (venue_id, booking_date, start_hour). The unique constraint decides.
        """
        booking = Booking(
            venue_id=venue_id,
            requester_id=requester_id,
            booking_date=booking_date,
            start_hour=start_hour,
            end_hour=start_hour + 1,
            total_price=total_price,
            status=BookingStatus.CONFIRMED,
            slot_claim=True,
            notes=notes,
            created_at=_utc_now_naive(),
        )
        # The savepoint keeps the caller's transaction usable after a failed INSERT.
        try:
            async with self.session.begin_nested():
                self.session.add(booking)
        except IntegrityError as exc:
            raise SlotConflictError("slot already booked") from exc
        except DBAPIError as exc:
            raise StoreUnavailableError("booking store unavailable") from exc
        return booking

    async def get_with_venue(self, booking_id: int) -> Optional[Tuple[Booking, Venue]]:
        stmt: Select[Tuple[Booking, Venue]] = (
            select(Booking, Venue)
            .join(Venue, Booking.venue_id == Venue.id)
            .where(Booking.id == booking_id)
        )
        with _store_errors():
            row = (await self.session.execute(stmt)).first()
        return cast(Optional[Tuple[Booking, Venue]], row)

    async def get_for_requester_for_update(self, booking_id: int, requester_id: str) -> Optional[Tuple[Booking, Venue]]:
        stmt: Select[Tuple[Booking, Venue]] = (
            select(Booking, Venue)
            .join(Venue, Booking.venue_id == Venue.id)
            .where(Booking.id == booking_id, Booking.requester_id == requester_id)
            .with_for_update(of=Booking)
        )
        with _store_errors():
            row = (await self.session.execute(stmt)).first()
        return cast(Optional[Tuple[Booking, Venue]], row)

    async def list_by_requester(
        self,
        requester_id: str,
        status: BookingStatus | None = None,
    ) -> List[Tuple[Booking, Venue]]:
        stmt: Select[Tuple[Booking, Venue]] = (
            select(Booking, Venue)
            .join(Venue, Booking.venue_id == Venue.id)
            .where(Booking.requester_id == requester_id)
            .order_by(Booking.booking_date.desc(), Booking.start_hour.desc())
        )
        if status is not None:
            stmt = stmt.where(Booking.status == status)
        with _store_errors():
            rows = await self.session.execute(stmt)
        return cast(List[Tuple[Booking, Venue]], list(rows.all()))

    async def list_upcoming_for_requester(
        self,
        requester_id: str,
        from_date: date,
        limit: int,
    ) -> List[Tuple[Booking, Venue]]:
        stmt: Select[Tuple[Booking, Venue]] = (
            select(Booking, Venue)
            .join(Venue, Booking.venue_id == Venue.id)
            .where(
                Booking.requester_id == requester_id,
                Booking.booking_date >= from_date,
                Booking.status == BookingStatus.CONFIRMED,
            )
            .order_by(Booking.booking_date, Booking.start_hour)
            .limit(limit)
        )
        with _store_errors():
            rows = await self.session.execute(stmt)
        return cast(List[Tuple[Booking, Venue]], list(rows.all()))

    async def cancel(self, booking: Booking) -> Booking:
        with _store_errors():
            async with self.session.begin_nested():
                booking.status = BookingStatus.CANCELLED
                booking.slot_claim = None
                booking.cancelled_at = _utc_now_naive()
        return booking

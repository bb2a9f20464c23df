from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

import pytest
from courtbook.domain.errors import (
    BookingNotFoundError,
    InvalidSlotError,
    SlotConflictError,
    UnauthorizedError,
    VenueNotFoundError,
)
from courtbook.models import Booking, BookingStatus, Venue
from courtbook.usecases import bookings as uc

DAY = date(2026, 2, 1)


def _venue(hourly_price: str = "500.00", open_hour: int = 6, close_hour: int = 22) -> Venue:
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return Venue(
        id=1,
        name="Riverside Court 1",
        hourly_price=Decimal(hourly_price),
        open_hour=open_hour,
        close_hour=close_hour,
        created_at=now,
        updated_at=now,
    )


class FakeVenueRepo:
    def __init__(self, venue: Optional[Venue]) -> None:
        self.venue = venue

    async def get(self, venue_id: int) -> Optional[Venue]:
        if self.venue is not None and self.venue.id == venue_id:
            return self.venue
        return None


class FakeBookingRepo:
    """In-memory store enforcing one confirmed booking per court-hour, like the unique constraint."""

    def __init__(self, venue: Venue) -> None:
        self.venue = venue
        self.rows: list[Booking] = []
        self.reads = 0

    def _claimed(self, venue_id: int, booking_date: date, start_hour: int) -> bool:
        return any(
            b.venue_id == venue_id
            and b.booking_date == booking_date
            and b.start_hour == start_hour
            and b.status == BookingStatus.CONFIRMED
            for b in self.rows
        )

    async def list_confirmed_for_day(self, venue_id: int, booking_date: date) -> list[Booking]:
        self.reads += 1
        return [b for b in self.rows if b.status == BookingStatus.CONFIRMED]

    async def create_confirmed(
        self,
        *,
        venue_id: int,
        requester_id: str,
        booking_date: date,
        start_hour: int,
        total_price: Decimal,
        notes: Optional[str] = None,
    ) -> Booking:
        if self._claimed(venue_id, booking_date, start_hour):
            raise SlotConflictError("slot already booked")
        booking = Booking(
            id=len(self.rows) + 1,
            venue_id=venue_id,
            requester_id=requester_id,
            booking_date=booking_date,
            start_hour=start_hour,
            end_hour=start_hour + 1,
            total_price=total_price,
            status=BookingStatus.CONFIRMED,
            slot_claim=True,
            notes=notes,
            created_at=datetime.now(timezone.utc).replace(tzinfo=None),
        )
        self.rows.append(booking)
        return booking

    async def get_with_venue(self, booking_id: int) -> Optional[tuple[Booking, Venue]]:
        for b in self.rows:
            if b.id == booking_id:
                return b, self.venue
        return None

    async def get_for_requester_for_update(self, booking_id: int, requester_id: str) -> Optional[tuple[Booking, Venue]]:
        row = await self.get_with_venue(booking_id)
        if row is None or row[0].requester_id != requester_id:
            return None
        return row

    async def list_by_requester(
        self,
        requester_id: str,
        status: Optional[BookingStatus] = None,
    ) -> list[tuple[Booking, Venue]]:
        return [
            (b, self.venue)
            for b in self.rows
            if b.requester_id == requester_id and (status is None or b.status == status)
        ]

    async def list_upcoming_for_requester(
        self,
        requester_id: str,
        from_date: date,
        limit: int,
    ) -> list[tuple[Booking, Venue]]:
        rows = [
            b
            for b in self.rows
            if b.requester_id == requester_id
            and b.booking_date >= from_date
            and b.status == BookingStatus.CONFIRMED
        ]
        rows.sort(key=lambda b: (b.booking_date, b.start_hour))
        return [(b, self.venue) for b in rows[:limit]]

    async def cancel(self, booking: Booking) -> Booking:
        booking.status = BookingStatus.CANCELLED
        booking.slot_claim = None
        return booking


async def _reserve(venue_repo: FakeVenueRepo, booking_repo: FakeBookingRepo, venue_now: datetime, **overrides: object) -> Booking:
    kwargs: dict[str, object] = dict(
        venue_id=1,
        booking_date=DAY,
        start_hour=14,
        requester_id="user-a",
        fee_rate=Decimal("0.10"),
        now=venue_now,
    )
    kwargs.update(overrides)
    booking, _ = await uc.reserve_slot(venue_repo, booking_repo, **kwargs)  # type: ignore[arg-type]
    return booking


@pytest.mark.asyncio
async def test_reserve_persists_confirmed_booking_with_price(venue_now: datetime) -> None:
    venue = _venue()
    repo = FakeBookingRepo(venue)
    booking = await _reserve(FakeVenueRepo(venue), repo, venue_now)
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.total_price == Decimal("550.00")
    assert (booking.start_hour, booking.end_hour) == (14, 15)
    assert len(repo.rows) == 1


@pytest.mark.asyncio
async def test_reserve_never_reads_availability(venue_now: datetime) -> None:
    venue = _venue()
    repo = FakeBookingRepo(venue)
    await _reserve(FakeVenueRepo(venue), repo, venue_now)
    assert repo.reads == 0


@pytest.mark.asyncio
async def test_second_reserve_same_hour_conflicts(venue_now: datetime) -> None:
    venue = _venue()
    repo = FakeBookingRepo(venue)
    venue_repo = FakeVenueRepo(venue)
    await _reserve(venue_repo, repo, venue_now, requester_id="user-a")
    with pytest.raises(SlotConflictError):
        await _reserve(venue_repo, repo, venue_now, requester_id="user-b")
    assert len(repo.rows) == 1


@pytest.mark.asyncio
async def test_reserve_rejects_hour_outside_operating_hours(venue_now: datetime) -> None:
    venue = _venue()
    repo = FakeBookingRepo(venue)
    with pytest.raises(InvalidSlotError):
        await _reserve(FakeVenueRepo(venue), repo, venue_now, start_hour=22)
    assert repo.rows == []


@pytest.mark.asyncio
async def test_reserve_rejects_every_hour_when_closed(venue_now: datetime) -> None:
    venue = _venue(open_hour=9, close_hour=9)
    repo = FakeBookingRepo(venue)
    with pytest.raises(InvalidSlotError):
        await _reserve(FakeVenueRepo(venue), repo, venue_now, start_hour=9)


@pytest.mark.asyncio
async def test_reserve_rejects_past_date_unless_allowed(venue_now: datetime) -> None:
    venue = _venue()
    repo = FakeBookingRepo(venue)
    past = date(2025, 12, 31)
    with pytest.raises(InvalidSlotError):
        await _reserve(FakeVenueRepo(venue), repo, venue_now, booking_date=past)
    booking = await _reserve(FakeVenueRepo(venue), repo, venue_now, booking_date=past, allow_past=True)
    assert booking.booking_date == past


@pytest.mark.asyncio
async def test_reserve_requires_requester(venue_now: datetime) -> None:
    venue = _venue()
    with pytest.raises(UnauthorizedError):
        await _reserve(FakeVenueRepo(venue), FakeBookingRepo(venue), venue_now, requester_id="  ")


@pytest.mark.asyncio
async def test_reserve_unknown_venue(venue_now: datetime) -> None:
    venue = _venue()
    with pytest.raises(VenueNotFoundError):
        await _reserve(FakeVenueRepo(None), FakeBookingRepo(venue), venue_now)


@pytest.mark.asyncio
async def test_receipt_keeps_price_after_rate_change(venue_now: datetime) -> None:
    venue = _venue()
    repo = FakeBookingRepo(venue)
    booking = await _reserve(FakeVenueRepo(venue), repo, venue_now)
    venue.hourly_price = Decimal("800.00")

    receipt = await uc.get_receipt(repo, booking_id=booking.id, requester_id="user-a", fee_rate=Decimal("0.10"))
    assert receipt.breakdown.total == Decimal("550.00")
    assert receipt.breakdown.base_fee == Decimal("500.00")
    assert receipt.breakdown.service_fee == Decimal("50.00")


@pytest.mark.asyncio
async def test_receipt_hidden_from_other_requesters(venue_now: datetime) -> None:
    venue = _venue()
    repo = FakeBookingRepo(venue)
    booking = await _reserve(FakeVenueRepo(venue), repo, venue_now)
    with pytest.raises(BookingNotFoundError):
        await uc.get_receipt(repo, booking_id=booking.id, requester_id="user-b", fee_rate=Decimal("0.10"))


@pytest.mark.asyncio
async def test_cancel_frees_hour_for_new_booking(venue_now: datetime) -> None:
    venue = _venue()
    repo = FakeBookingRepo(venue)
    venue_repo = FakeVenueRepo(venue)
    first = await _reserve(venue_repo, repo, venue_now, requester_id="user-a")

    updated, _, previous = await uc.cancel_booking(repo, booking_id=first.id, requester_id="user-a")
    assert previous == BookingStatus.CONFIRMED
    assert updated.status == BookingStatus.CANCELLED

    second = await _reserve(venue_repo, repo, venue_now, requester_id="user-b")
    assert second.id != first.id
    assert first.status == BookingStatus.CANCELLED


@pytest.mark.asyncio
async def test_cancel_is_idempotent(venue_now: datetime) -> None:
    venue = _venue()
    repo = FakeBookingRepo(venue)
    booking = await _reserve(FakeVenueRepo(venue), repo, venue_now)
    await uc.cancel_booking(repo, booking_id=booking.id, requester_id="user-a")
    again, _, previous = await uc.cancel_booking(repo, booking_id=booking.id, requester_id="user-a")
    assert previous == BookingStatus.CANCELLED
    assert again.status == BookingStatus.CANCELLED


@pytest.mark.asyncio
async def test_cancel_other_requesters_booking_not_found(venue_now: datetime) -> None:
    venue = _venue()
    repo = FakeBookingRepo(venue)
    booking = await _reserve(FakeVenueRepo(venue), repo, venue_now)
    with pytest.raises(BookingNotFoundError):
        await uc.cancel_booking(repo, booking_id=booking.id, requester_id="user-b")
    assert booking.status == BookingStatus.CONFIRMED


@pytest.mark.asyncio
async def test_list_requester_bookings_filters_by_status(venue_now: datetime) -> None:
    venue = _venue()
    repo = FakeBookingRepo(venue)
    venue_repo = FakeVenueRepo(venue)
    kept = await _reserve(venue_repo, repo, venue_now, start_hour=14)
    dropped = await _reserve(venue_repo, repo, venue_now, start_hour=15)
    await _reserve(venue_repo, repo, venue_now, start_hour=16, requester_id="user-b")
    await uc.cancel_booking(repo, booking_id=dropped.id, requester_id="user-a")

    everything = await uc.list_requester_bookings(repo, requester_id="user-a")
    confirmed = await uc.list_requester_bookings(repo, requester_id="user-a", status=BookingStatus.CONFIRMED)
    assert {b.id for b, _ in everything} == {kept.id, dropped.id}
    assert [b.id for b, _ in confirmed] == [kept.id]


@pytest.mark.asyncio
async def test_reserve_parses_raw_date(venue_now: datetime) -> None:
    venue = _venue()
    repo = FakeBookingRepo(venue)
    booking = await _reserve(FakeVenueRepo(venue), repo, venue_now, booking_date="2026-02-01")
    assert booking.booking_date == DAY


@pytest.mark.asyncio
async def test_reserve_rejects_malformed_date(venue_now: datetime) -> None:
    venue = _venue()
    repo = FakeBookingRepo(venue)
    with pytest.raises(InvalidSlotError):
        await _reserve(FakeVenueRepo(venue), repo, venue_now, booking_date="2026-02-30")
    assert repo.rows == []


@pytest.mark.asyncio
async def test_reserve_keeps_trimmed_notes(venue_now: datetime) -> None:
    venue = _venue()
    repo = FakeBookingRepo(venue)
    venue_repo = FakeVenueRepo(venue)
    with_notes = await _reserve(venue_repo, repo, venue_now, start_hour=14, notes="  bring extra paddles ")
    blank = await _reserve(venue_repo, repo, venue_now, start_hour=15, notes="   ")
    assert with_notes.notes == "bring extra paddles"
    assert blank.notes is None


@pytest.mark.asyncio
async def test_upcoming_bookings_are_confirmed_future_and_capped(venue_now: datetime) -> None:
    venue = _venue()
    repo = FakeBookingRepo(venue)
    venue_repo = FakeVenueRepo(venue)
    today = venue_now.date()
    await _reserve(venue_repo, repo, venue_now, booking_date=date(2026, 1, 10), allow_past=True)
    dropped = await _reserve(venue_repo, repo, venue_now, booking_date=date(2026, 1, 21), start_hour=8)
    await uc.cancel_booking(repo, booking_id=dropped.id, requester_id="user-a")
    for offset, hour in [(5, 10), (0, 18), (1, 9), (1, 7), (3, 12), (9, 6)]:
        await _reserve(venue_repo, repo, venue_now, booking_date=date(2026, 1, 20 + offset), start_hour=hour)
    await _reserve(venue_repo, repo, venue_now, booking_date=date(2026, 1, 22), requester_id="user-b")

    upcoming = await uc.list_upcoming_bookings(repo, requester_id="user-a", now=venue_now)

    assert len(upcoming) == uc.UPCOMING_LIMIT
    assert [(b.booking_date, b.start_hour) for b, _ in upcoming] == [
        (today, 18),
        (date(2026, 1, 21), 7),
        (date(2026, 1, 21), 9),
        (date(2026, 1, 23), 12),
        (date(2026, 1, 25), 10),
    ]

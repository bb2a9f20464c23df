from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_serializer

from .domain.availability import SlotState
from .domain.calendar import format_hour_range
from .domain.pricing import PriceBreakdown
from .models import Booking, BookingStatus, Venue


class SlotRead(BaseModel):
    start_hour: int
    end_hour: int
    label: str
    time_range: str
    available: bool
    is_past: bool

    @classmethod
    def from_state(cls, state: SlotState) -> "SlotRead":
        return cls(
            start_hour=state.slot.start_hour,
            end_hour=state.slot.end_hour,
            label=state.slot.label,
            time_range=state.slot.time_range,
            available=state.available,
            is_past=state.is_past,
        )


class QuoteRead(BaseModel):
    venue_id: int
    base_fee: Decimal
    service_fee: Decimal
    total: Decimal

    @classmethod
    def from_breakdown(cls, *, venue_id: int, breakdown: PriceBreakdown) -> "QuoteRead":
        return cls(
            venue_id=venue_id,
            base_fee=breakdown.base_fee,
            service_fee=breakdown.service_fee,
            total=breakdown.total,
        )


class BookingCreate(BaseModel):
    # Date and hour are checked by the booking rules so a bad slot answers INVALID_SLOT.
    venue_id: int = Field(ge=1)
    booking_date: str = Field(description="Venue-local civil date (YYYY-MM-DD)")
    start_hour: int
    notes: Optional[str] = Field(default=None, max_length=500)


class BookingRead(BaseModel):
    booking_id: int
    venue_id: int
    venue_name: Optional[str] = None
    requester_id: str
    booking_date: date
    start_hour: int
    end_hour: int
    time_range: str
    total_price: Decimal
    status: BookingStatus
    notes: Optional[str] = None
    created_at: datetime
    cancelled_at: Optional[datetime] = None

    @field_serializer("created_at", "cancelled_at")
    def _ser_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        if dt is None:
            return None
        return dt.replace(tzinfo=timezone.utc).isoformat()

    @classmethod
    def from_db(cls, *, booking: Booking, venue: Optional[Venue] = None) -> "BookingRead":
        return cls(
            booking_id=booking.id,
            venue_id=booking.venue_id,
            venue_name=venue.name if venue is not None else None,
            requester_id=booking.requester_id,
            booking_date=booking.booking_date,
            start_hour=booking.start_hour,
            end_hour=booking.end_hour,
            time_range=format_hour_range(booking.start_hour),
            total_price=booking.total_price,
            status=booking.status,
            notes=booking.notes,
            created_at=booking.created_at,
            cancelled_at=booking.cancelled_at,
        )


class ReceiptRead(BaseModel):
    booking_id: int
    venue_id: int
    venue_name: str
    booking_date: date
    start_hour: int
    end_hour: int
    time_range: str
    base_fee: Decimal
    service_fee: Decimal
    total: Decimal
    status: BookingStatus

    @classmethod
    def from_parts(cls, *, booking: Booking, venue: Venue, breakdown: PriceBreakdown) -> "ReceiptRead":
        return cls(
            booking_id=booking.id,
            venue_id=venue.id,
            venue_name=venue.name,
            booking_date=booking.booking_date,
            start_hour=booking.start_hour,
            end_hour=booking.end_hour,
            time_range=format_hour_range(booking.start_hour),
            base_fee=breakdown.base_fee,
            service_fee=breakdown.service_fee,
            total=breakdown.total,
            status=booking.status,
        )

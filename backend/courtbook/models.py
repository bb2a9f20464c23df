from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Optional

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql.sqltypes import BigInteger, Boolean, Date, DateTime, Integer, Numeric, String

# SQLite only autoincrements a column declared exactly as INTEGER PRIMARY KEY.
BigIntId = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    pass


class BookingStatus(StrEnum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Venue(Base):
    """Court catalog entry. Owned by the catalog side; bookings only read it."""

    __tablename__ = "venues"
    __table_args__ = (
        CheckConstraint("hourly_price >= 0", name="chk_venues_price"),
        CheckConstraint("open_hour >= 0 AND open_hour <= 23", name="chk_venues_open_hour"),
        CheckConstraint("close_hour >= 0 AND close_hour <= 24", name="chk_venues_close_hour"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    hourly_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    open_hour: Mapped[int] = mapped_column(Integer, nullable=False)
    close_hour: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    bookings: Mapped[list["Booking"]] = relationship(back_populates="venue")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("end_hour = start_hour + 1", name="chk_bookings_one_hour"),
        CheckConstraint("total_price >= 0", name="chk_bookings_price"),
        # slot_claim is TRUE while confirmed and NULL once cancelled; UNIQUE
        # ignores NULLs, so only one confirmed row can hold a court-hour.
        UniqueConstraint("venue_id", "booking_date", "start_hour", "slot_claim", name="uq_bookings_active_slot"),
        Index("idx_bookings_venue_date", "venue_id", "booking_date"),
        Index("idx_bookings_requester", "requester_id"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    venue_id: Mapped[int] = mapped_column(ForeignKey("venues.id"), nullable=False)
    requester_id: Mapped[str] = mapped_column(String(64), nullable=False)
    booking_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_hour: Mapped[int] = mapped_column(Integer, nullable=False)
    end_hour: Mapped[int] = mapped_column(Integer, nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(
            BookingStatus,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            native_enum=False,
        ),
        nullable=False,
        default=BookingStatus.CONFIRMED,
    )
    slot_claim: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True, default=True)
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True)

    venue: Mapped["Venue"] = relationship(back_populates="bookings")

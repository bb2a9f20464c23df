from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class HourSlot:
    """One bookable hour of one venue on one date. Derived, never stored."""

    venue_id: int
    slot_date: date
    start_hour: int
    label: str

    @property
    def end_hour(self) -> int:
        return self.start_hour + 1

    @property
    def time_range(self) -> str:
        return format_hour_range(self.start_hour)


def format_hour_label(hour: int) -> str:
    """Render an hour of the day on the 12-hour clock, e.g. 14 -> '02:00 PM'."""
    hour = hour % 24
    period = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12:02d}:00 {period}"


def format_hour_range(start_hour: int) -> str:
    return f"{format_hour_label(start_hour)} - {format_hour_label(start_hour + 1)}"


def generate_slots(venue_id: int, slot_date: date, *, open_hour: int, close_hour: int) -> list[HourSlot]:
    """
    Hourly inventory for one venue-day: open_hour, open_hour + 1, ..., close_hour - 1.
    A venue with open_hour >= close_hour has no bookable hours; that is not an error.
    """
    if open_hour >= close_hour:
        return []
    return [
        HourSlot(venue_id=venue_id, slot_date=slot_date, start_hour=hour, label=format_hour_label(hour))
        for hour in range(open_hour, close_hour)
    ]

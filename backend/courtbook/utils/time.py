from datetime import datetime, timezone
from zoneinfo import ZoneInfo


def venue_now(tz_name: str) -> datetime:
    """Current civil time at the venues, e.g. 'Asia/Manila'. Dates and hours are judged against it."""
    return datetime.now(timezone.utc).astimezone(ZoneInfo(tz_name))

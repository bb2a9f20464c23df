from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio
from courtbook.database import create_tables, enable_sqlite_savepoints
from courtbook.models import Venue
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

MANILA = ZoneInfo("Asia/Manila")
# Venue-local "now" used across tests; bookings target dates after it.
VENUE_NOW = datetime(2026, 1, 20, 9, 30, tzinfo=MANILA)
FEE_RATE = Decimal("0.10")

MakeVenue = Callable[..., Awaitable[Venue]]


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'courtbook.db'}")
    enable_sqlite_savepoints(engine)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
def make_venue(session_factory: async_sessionmaker[AsyncSession]) -> MakeVenue:
    async def _make_venue(
        *,
        name: str = "Riverside Pickleball Court 1",
        hourly_price: Decimal = Decimal("500.00"),
        open_hour: int = 6,
        close_hour: int = 22,
    ) -> Venue:
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        venue = Venue(
            name=name,
            hourly_price=hourly_price,
            open_hour=open_hour,
            close_hour=close_hour,
            created_at=now,
            updated_at=now,
        )
        async with session_factory() as session, session.begin():
            session.add(venue)
        return venue

    return _make_venue


@pytest.fixture
def venue_now() -> datetime:
    return VENUE_NOW


@pytest.fixture
def fee_rate() -> Decimal:
    return FEE_RATE

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings, get_settings
from ..deps import get_current_requester_id, get_session
from ..domain.errors import StoreUnavailableError, VenueNotFoundError
from ..infrastructure.repositories import SqlAlchemyBookingRepository, SqlAlchemyVenueRepository
from ..schemas import QuoteRead, SlotRead
from ..usecases import slots as slot_usecase
from ..utils.time import venue_now

router = APIRouter(
    prefix="/venues",
    tags=["venues"],
    dependencies=[Depends(get_current_requester_id)],
)


@router.get("/{venue_id}/slots", response_model=List[SlotRead])
async def list_slots(
    venue_id: int = Path(..., ge=1),
    slot_date: date = Query(..., alias="date", description="Venue-local civil date (YYYY-MM-DD)"),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> list[SlotRead]:
    venue_repo = SqlAlchemyVenueRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    try:
        states = await slot_usecase.list_slots(
            venue_repo,
            booking_repo,
            venue_id=venue_id,
            slot_date=slot_date,
            now=venue_now(settings.venue_timezone),
        )
    except VenueNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.as_detail())
    except StoreUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.as_detail())
    return [SlotRead.from_state(state) for state in states]


@router.get("/{venue_id}/quote", response_model=QuoteRead)
async def quote(
    venue_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> QuoteRead:
    venue_repo = SqlAlchemyVenueRepository(session)
    try:
        breakdown = await slot_usecase.quote_venue(
            venue_repo,
            venue_id=venue_id,
            fee_rate=settings.service_fee_rate,
        )
    except VenueNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.as_detail())
    except StoreUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.as_detail())
    return QuoteRead.from_breakdown(venue_id=venue_id, breakdown=breakdown)

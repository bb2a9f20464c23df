from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings, get_settings
from ..deps import get_current_requester_id, get_session
from ..domain.errors import (
    BookingNotFoundError,
    InvalidSlotError,
    SlotConflictError,
    StoreUnavailableError,
    UnauthorizedError,
    VenueNotFoundError,
)
from ..infrastructure.repositories import SqlAlchemyBookingRepository, SqlAlchemyVenueRepository
from ..models import BookingStatus
from ..schemas import BookingCreate, BookingRead, ReceiptRead
from ..usecases import bookings as booking_usecase
from ..utils.audit_log import emit_audit_log
from ..utils.time import venue_now

router = APIRouter(prefix="", tags=["bookings"])

_AUDIT_FAILED = {"code": "AUDIT_FAILED", "message": "failed to record booking change"}
_OUTCOME_UNKNOWN = {
    "code": "STORE_UNAVAILABLE",
    "message": "booking outcome unknown; re-check the slot before retrying",
}


@router.post("/bookings", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    session: AsyncSession = Depends(get_session),
    requester_id: str = Depends(get_current_requester_id),
    settings: Settings = Depends(get_settings),
) -> BookingRead:
    venue_repo = SqlAlchemyVenueRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    try:
        async with session.begin():
            try:
                booking, venue = await booking_usecase.reserve_slot(
                    venue_repo,
                    booking_repo,
                    venue_id=payload.venue_id,
                    booking_date=payload.booking_date,
                    start_hour=payload.start_hour,
                    requester_id=requester_id,
                    fee_rate=settings.service_fee_rate,
                    now=venue_now(settings.venue_timezone),
                    allow_past=settings.allow_past_bookings,
                    notes=payload.notes,
                )
            except SlotConflictError as exc:
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.as_detail())
            except InvalidSlotError as exc:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.as_detail())
            except VenueNotFoundError as exc:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.as_detail())
            except UnauthorizedError as exc:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail=exc.as_detail(),
                    headers={"WWW-Authenticate": "Bearer"},
                )
            except StoreUnavailableError as exc:
                raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.as_detail())

            # Inside the transaction: a booking never commits without its audit record.
            try:
                emit_audit_log(
                    action="booking.created",
                    initiator="requester",
                    booking_id=booking.id,
                    venue_id=booking.venue_id,
                    requester_id=booking.requester_id,
                    booking_date=booking.booking_date,
                    start_hour=booking.start_hour,
                    status_from=None,
                    status_to=booking.status,
                    total_price=booking.total_price,
                )
            except RuntimeError:
                raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=_AUDIT_FAILED)
    except DBAPIError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=_OUTCOME_UNKNOWN)

    return BookingRead.from_db(booking=booking, venue=venue)


@router.get("/bookings/{booking_id}/receipt", response_model=ReceiptRead)
async def get_receipt(
    booking_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    requester_id: str = Depends(get_current_requester_id),
    settings: Settings = Depends(get_settings),
) -> ReceiptRead:
    booking_repo = SqlAlchemyBookingRepository(session)
    try:
        receipt = await booking_usecase.get_receipt(
            booking_repo,
            booking_id=booking_id,
            requester_id=requester_id,
            fee_rate=settings.service_fee_rate,
        )
    except BookingNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.as_detail())
    except StoreUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.as_detail())
    return ReceiptRead.from_parts(booking=receipt.booking, venue=receipt.venue, breakdown=receipt.breakdown)


@router.get("/me/bookings", response_model=List[BookingRead])
async def list_my_bookings(
    booking_status: Optional[BookingStatus] = Query(default=None, alias="status"),
    session: AsyncSession = Depends(get_session),
    requester_id: str = Depends(get_current_requester_id),
) -> list[BookingRead]:
    booking_repo = SqlAlchemyBookingRepository(session)
    try:
        rows = await booking_usecase.list_requester_bookings(
            booking_repo,
            requester_id=requester_id,
            status=booking_status,
        )
    except StoreUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.as_detail())
    return [BookingRead.from_db(booking=booking, venue=venue) for booking, venue in rows]


@router.get("/me/bookings/upcoming", response_model=List[BookingRead])
async def list_my_upcoming_bookings(
    session: AsyncSession = Depends(get_session),
    requester_id: str = Depends(get_current_requester_id),
    settings: Settings = Depends(get_settings),
) -> list[BookingRead]:
    booking_repo = SqlAlchemyBookingRepository(session)
    try:
        rows = await booking_usecase.list_upcoming_bookings(
            booking_repo,
            requester_id=requester_id,
            now=venue_now(settings.venue_timezone),
        )
    except StoreUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.as_detail())
    return [BookingRead.from_db(booking=booking, venue=venue) for booking, venue in rows]


@router.post("/me/bookings/{booking_id}/cancel", response_model=BookingRead)
async def cancel_booking(
    booking_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    requester_id: str = Depends(get_current_requester_id),
) -> BookingRead:
    booking_repo = SqlAlchemyBookingRepository(session)
    try:
        async with session.begin():
            try:
                updated, venue, status_from = await booking_usecase.cancel_booking(
                    booking_repo,
                    booking_id=booking_id,
                    requester_id=requester_id,
                )
            except BookingNotFoundError as exc:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.as_detail())
            except StoreUnavailableError as exc:
                raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.as_detail())

            if status_from != updated.status:
                try:
                    emit_audit_log(
                        action="booking.cancelled",
                        initiator="requester",
                        booking_id=updated.id,
                        venue_id=updated.venue_id,
                        requester_id=updated.requester_id,
                        booking_date=updated.booking_date,
                        start_hour=updated.start_hour,
                        status_from=status_from,
                        status_to=updated.status,
                    )
                except RuntimeError:
                    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=_AUDIT_FAILED)
    except DBAPIError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=_OUTCOME_UNKNOWN)

    return BookingRead.from_db(booking=updated, venue=venue)

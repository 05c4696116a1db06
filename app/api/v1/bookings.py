"""Booking endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import PaymentGatewayDep, VerificationGatewayDep, get_db
from app.domain.booking_state import BookingStatus
from app.models.booking import Booking, BookingStatusLog
from app.schemas.booking import (
    BookingCancelRequest,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingStatusLogResponse,
    BookingUpdate,
    CompleteTripRequest,
    StartTripRequest,
    TransitionRequest,
)
from app.services.booking_service import booking_service

router = APIRouter()


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Create a new booking."""
    return await booking_service.create_booking(db, booking_data)


@router.get("/", response_model=BookingListResponse)
async def list_bookings(
    db: Annotated[AsyncSession, Depends(get_db)],
    vehicle_id: UUID | None = None,
    renter_id: UUID | None = None,
    status_filter: BookingStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> BookingListResponse:
    """List bookings with optional filters."""
    bookings, total = await booking_service.list_bookings(
        db,
        vehicle_id=vehicle_id,
        renter_id=renter_id,
        status=status_filter,
        page=page,
        page_size=page_size,
    )
    return BookingListResponse(
        bookings=[BookingResponse.model_validate(b) for b in bookings],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Get booking details."""
    return await booking_service.get_booking(db, booking_id)


@router.get("/{booking_id}/history", response_model=list[BookingStatusLogResponse])
async def get_booking_history(
    booking_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[BookingStatusLog]:
    """Get the booking's status transitions, oldest first."""
    return await booking_service.get_status_history(db, booking_id)


@router.patch("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: UUID,
    data: BookingUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Edit a DRAFT or PENDING booking."""
    return await booking_service.update_booking(db, booking_id, data)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(
    booking_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Response:
    """Delete a DRAFT or CANCELLED booking."""
    await booking_service.delete_booking(db, booking_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{booking_id}/confirm-reservation", response_model=BookingResponse)
async def confirm_reservation(
    booking_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    data: TransitionRequest | None = None,
) -> Booking:
    """Customer commits to a draft booking (DRAFT → PENDING)."""
    data = data or TransitionRequest(actor="customer")
    return await booking_service.confirm_reservation(
        db, booking_id, expected_version=data.expected_version, actor=data.actor
    )


@router.post("/{booking_id}/verify", response_model=BookingResponse)
async def verify_booking(
    booking_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    gateway: VerificationGatewayDep,
    data: TransitionRequest | None = None,
) -> Booking:
    """Mark the booking verified once documents are approved."""
    data = data or TransitionRequest()
    return await booking_service.verify_booking(
        db, booking_id, gateway, expected_version=data.expected_version, actor=data.actor
    )


@router.post("/{booking_id}/confirm-payment", response_model=BookingResponse)
async def confirm_payment(
    booking_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    gateway: PaymentGatewayDep,
    data: TransitionRequest | None = None,
) -> Booking:
    """Confirm the booking once payment has settled."""
    data = data or TransitionRequest(actor="system")
    return await booking_service.confirm_payment(
        db, booking_id, gateway, expected_version=data.expected_version, actor=data.actor
    )


@router.post("/{booking_id}/start-trip", response_model=BookingResponse)
async def start_trip(
    booking_id: UUID,
    data: StartTripRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Hand the vehicle over (CONFIRMED → ONGOING)."""
    return await booking_service.start_trip(db, booking_id, data)


@router.post("/{booking_id}/complete-trip", response_model=BookingResponse)
async def complete_trip(
    booking_id: UUID,
    data: CompleteTripRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Take the vehicle back and settle fees (ONGOING → COMPLETED)."""
    return await booking_service.complete_trip(db, booking_id, data)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    data: BookingCancelRequest | None = None,
) -> Booking:
    """Cancel a booking that has not finished."""
    return await booking_service.cancel_booking(db, booking_id, data or BookingCancelRequest())

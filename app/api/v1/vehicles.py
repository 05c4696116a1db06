"""Vehicle (fleet) endpoints."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db
from app.core.exceptions import InvalidInput
from app.models.types import as_utc
from app.models.vehicle import Vehicle
from app.schemas.booking import (
    AvailabilityResponse,
    ConflictingBooking,
    PriceQuoteRequest,
    PriceQuoteResponse,
)
from app.schemas.vehicle import (
    VehicleAvailabilityUpdate,
    VehicleCreate,
    VehicleResponse,
    VehicleUpdate,
)
from app.services.availability_service import availability_service
from app.services.booking_service import booking_service
from app.services.vehicle_service import vehicle_service

router = APIRouter()


@router.post("/", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Vehicle:
    """Add a vehicle to the fleet."""
    return await vehicle_service.create_vehicle(db, vehicle_data)


@router.get("/", response_model=list[VehicleResponse])
async def list_vehicles(
    db: Annotated[AsyncSession, Depends(get_db)],
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
) -> list[Vehicle]:
    """List the fleet; with both dates, only vehicles free for that window."""
    return await vehicle_service.list_vehicles(db, start_date, end_date)


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Vehicle:
    """Get vehicle details."""
    return await vehicle_service.get_vehicle(db, vehicle_id)


@router.patch("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_id: UUID,
    vehicle_data: VehicleUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Vehicle:
    """Edit vehicle details and rates."""
    return await vehicle_service.update_vehicle(db, vehicle_id, vehicle_data)


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(
    vehicle_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Response:
    """Remove a vehicle that has no open bookings."""
    await vehicle_service.delete_vehicle(db, vehicle_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{vehicle_id}/availability", response_model=VehicleResponse)
async def set_vehicle_availability(
    vehicle_id: UUID,
    data: VehicleAvailabilityUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Vehicle:
    """Open or close a vehicle to new bookings."""
    return await vehicle_service.set_availability(db, vehicle_id, data.is_available)


@router.post("/{vehicle_id}/finish-maintenance", response_model=VehicleResponse)
async def finish_maintenance(
    vehicle_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Vehicle:
    """Put a returned vehicle back in service."""
    return await vehicle_service.finish_maintenance(db, vehicle_id)


@router.get("/{vehicle_id}/availability", response_model=AvailabilityResponse)
async def check_vehicle_availability(
    vehicle_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    start_date: datetime = Query(...),
    end_date: datetime = Query(...),
) -> AvailabilityResponse:
    """Check whether a vehicle is free for a window."""
    start, end = as_utc(start_date), as_utc(end_date)
    if end <= start:
        raise InvalidInput("end_date must be after start_date")

    vehicle = await vehicle_service.get_vehicle(db, vehicle_id)
    result = await availability_service.check_available(db, vehicle.id, start, end)

    return AvailabilityResponse(
        vehicle_id=vehicle.id,
        start_date=start,
        end_date=end,
        available=result.available and vehicle.is_available,
        conflicts=[ConflictingBooking.model_validate(b) for b in result.conflicts],
    )


@router.post("/{vehicle_id}/quote", response_model=PriceQuoteResponse)
async def quote_rental(
    vehicle_id: UUID,
    request: PriceQuoteRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PriceQuoteResponse:
    """Price a rental without creating a booking."""
    vehicle = await vehicle_service.get_vehicle(db, vehicle_id)
    quote = await booking_service.calculate_quote(
        db,
        vehicle,
        request.start_date,
        request.end_date,
        rental_type=request.rental_type,
        estimated_km=request.estimated_km,
        driver_age=request.driver_age,
    )
    availability = await availability_service.check_available(
        db, vehicle.id, request.start_date, request.end_date
    )

    return PriceQuoteResponse(
        vehicle_id=vehicle.id,
        rental_type=quote.rental_type,
        quantity=quote.quantity,
        rental_cost=quote.rental_cost,
        surcharge_amount=quote.surcharge_amount,
        base_price=quote.breakdown.base_price,
        tax_percentage=quote.tax_percentage,
        tax_amount=quote.breakdown.tax_amount,
        total_price=quote.breakdown.total_price,
        deposit_amount=vehicle.deposit_amount,
        currency=quote.currency,
        available=availability.available and vehicle.is_available,
    )

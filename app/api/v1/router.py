"""Main API router that includes all endpoint routers."""

from fastapi import APIRouter

from app.api.v1 import bookings, platform, vehicles

api_router = APIRouter()

# Fleet
api_router.include_router(vehicles.router, prefix="/vehicles", tags=["Vehicles"])

# Bookings
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])

# Platform administration
api_router.include_router(platform.router, prefix="/platform", tags=["Platform"])

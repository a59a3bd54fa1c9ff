"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from theater.api.routes import admin, auth, bookings, reservations, shows

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(shows.router)
api_router.include_router(reservations.router)
api_router.include_router(bookings.router)
api_router.include_router(admin.router)

"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from event_registration.api.routes import admin, email, registrations

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(registrations.router)
api_router.include_router(admin.router)
api_router.include_router(email.router)

from __future__ import annotations
"""server/reminder_engine/api/v1/router.py
~~~~~~~~~~~~~~~~~~~~~~~~
Router principal API v1.
"""
from fastapi import APIRouter

from reminder_engine.api.v1.endpoints import events, health, notifications

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(events.router, tags=["events"])
api_router.include_router(notifications.router, tags=["notifications"])

from __future__ import annotations
"""server/reminder_engine/api/v1/endpoints/health.py
~~~~~~~~~~~~~~~~~~~~~~~~
Health check (compteurs + connexions actives du process).
"""
from fastapi import APIRouter, Request
from starlette.concurrency import run_in_threadpool

from reminder_engine.application.services.health_service import collect_health
from reminder_engine.application.services.realtime_hub import get_realtime_hub

router = APIRouter()


@router.get("/health")
async def health(request: Request) -> dict:
    hub = get_realtime_hub(request.app)
    return await run_in_threadpool(collect_health, active_connections=hub.active_connections)

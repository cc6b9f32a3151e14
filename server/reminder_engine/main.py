from __future__ import annotations
"""server/reminder_engine/main.py
~~~~~~~~~~~~~~~~~~~~~~~~
Point d'entrée FastAPI (API REST + WebSocket + boucles dispatch/heartbeat).
"""
from typing import List

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from reminder_engine.api.v1.endpoints import realtime
from reminder_engine.api.v1.router import api_router
from reminder_engine.application.services.realtime_hub import get_realtime_hub
from reminder_engine.core.config import settings
from reminder_engine.core.errors import PersistenceError, ValidationError
from reminder_engine.core.logging import setup_logging

app = FastAPI(title="Reminder Engine", version="0.1.0")

allow_origins: List[str] = []
if origins := getattr(settings, "CORS_ALLOW_ORIGINS", None):
    allow_origins = [o.strip() for o in origins.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": "storage_unavailable"})


@app.on_event("startup")
async def startup() -> None:
    setup_logging()
    hub = get_realtime_hub(app)
    if settings.RUN_BACKGROUND_LOOPS:
        hub.start()


@app.on_event("shutdown")
async def shutdown() -> None:
    await get_realtime_hub(app).stop()


app.include_router(api_router, prefix="/api/v1")
app.include_router(realtime.router)

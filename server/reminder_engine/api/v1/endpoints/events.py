from __future__ import annotations
"""server/reminder_engine/api/v1/endpoints/events.py
~~~~~~~~~~~~~~~~~~~~~~~~
POST /events : création d'un évènement + matérialisation de ses rappels.
GET  /events : évènements à venir de l'utilisateur.
"""
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from reminder_engine.api.schemas.event import EventCreated, EventIn, EventOut, NotificationOut
from reminder_engine.application.services.materializer_service import create_event_with_notifications
from reminder_engine.core.security import get_current_user_id
from reminder_engine.core.utils.datetime import utcnow
from reminder_engine.infrastructure.persistence.database.session import get_db
from reminder_engine.infrastructure.persistence.repositories.event_repository import EventRepository

router = APIRouter(prefix="/events", tags=["events"])


@router.post("", response_model=EventCreated, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventIn,
    user_id: uuid.UUID = Depends(get_current_user_id),
) -> EventCreated:
    # ValidationError → 422, PersistenceError → 503 (handlers de l'app)
    result = await run_in_threadpool(
        create_event_with_notifications,
        user_id,
        payload.event_date,
        payload.event_summary,
        payload.category,
        payload.priority,
        payload.notification_schedule,
        description=payload.description,
    )
    return EventCreated(
        event=EventOut.model_validate(result.event),
        notifications=[NotificationOut.model_validate(n) for n in result.notifications],
    )


@router.get("", response_model=list[EventOut])
async def list_upcoming_events(
    limit: int = Query(50, ge=1, le=200),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> list[EventOut]:
    rows = EventRepository(db).list_upcoming(user_id, after=utcnow(), limit=limit)
    return [EventOut.model_validate(ev) for ev in rows]

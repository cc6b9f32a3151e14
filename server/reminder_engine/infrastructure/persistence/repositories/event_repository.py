from __future__ import annotations

"""server/reminder_engine/infrastructure/persistence/repositories/event_repository.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Repository pour la table events.

Principes :
- Le repo **reçoit** une Session gérée par l'appelant et **ne commit pas**.
"""

from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from reminder_engine.infrastructure.persistence.database.models.event import Event


class EventRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def add(
        self,
        *,
        user_id: UUID,
        event_date: datetime,
        event_summary: str,
        event_type: str,
        priority: str,
        notification_schedule: Sequence[str],
        description: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Event:
        ev = Event(
            user_id=user_id,
            event_date=event_date,
            event_summary=event_summary,
            description=description or event_summary,
            event_type=event_type,
            priority=priority,
            notification_schedule=list(notification_schedule),
            notified=False,
        )
        if created_at is not None:
            ev.created_at = created_at
        self.db.add(ev)
        self.db.flush()
        return ev

    def get(self, event_id: UUID) -> Optional[Event]:
        return self.db.get(Event, event_id)

    def list_upcoming(self, user_id: UUID, *, after: datetime, limit: int = 50) -> list[Event]:
        stmt = (
            select(Event)
            .where(Event.user_id == user_id, Event.event_date >= after)
            .order_by(Event.event_date.asc())
            .limit(limit)
        )
        return list(self.db.scalars(stmt))

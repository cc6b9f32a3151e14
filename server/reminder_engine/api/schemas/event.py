from __future__ import annotations
"""
server/reminder_engine/api/schemas/event.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Pydantic schemas pour la création d'évènements (surface collaborateur).

- `category` / `priority` : Enum => rejet automatique d'une valeur inconnue (422).
- `event_date` : datetime ISO-8601 ; une date naïve est lue comme UTC.
- `notification_schedule` : absent → politique par défaut de la catégorie ;
  liste vide → politique adaptative / `same_day`.
"""
import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from reminder_engine.domain.enums import EventCategory, OffsetLabel, Priority


class EventIn(BaseModel):
    event_date: datetime
    event_summary: str = Field(..., min_length=1, max_length=500)
    category: EventCategory = Field(default=EventCategory.REMINDER)
    priority: Priority = Field(default=Priority.MEDIUM)
    description: Optional[str] = Field(default=None, max_length=2000)
    notification_schedule: Optional[list[str]] = None

    @field_validator("category", "priority", mode="before")
    @classmethod
    def _lower(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("event_summary")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("event_summary must not be blank")
        return v


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    notification_type: OffsetLabel
    notification_time: datetime
    sent: bool
    delivery_status: str


class EventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    event_date: datetime
    event_summary: str
    description: Optional[str] = None
    event_type: EventCategory
    priority: Priority
    notification_schedule: list[str]
    notified: bool
    created_at: datetime


class EventCreated(BaseModel):
    event: EventOut
    notifications: list[NotificationOut]

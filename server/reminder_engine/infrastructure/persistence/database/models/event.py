from __future__ import annotations
"""server/reminder_engine/infrastructure/persistence/database/models/event.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table events : occurrence détectée dans le chat et digne d'un rappel.
Immuable après création, sauf le drapeau `notified` (posé par le matérialiseur).
"""
import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reminder_engine.infrastructure.persistence.database.base import Base
from reminder_engine.infrastructure.persistence.database.models.types import (
    JSONPortable,
    TstzPortable,
    UUIDPortable,
    utcnow,
)


class Event(Base):
    __tablename__ = "events"

    id: Mapped[uuid.UUID] = mapped_column(UUIDPortable(), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUIDPortable(), nullable=False, index=True)
    event_date: Mapped[datetime] = mapped_column(TstzPortable(), nullable=False)
    event_summary: Mapped[str] = mapped_column(sa.Text, nullable=False)
    description: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    event_type: Mapped[str] = mapped_column(sa.String(32), nullable=False, default="reminder")
    priority: Mapped[str] = mapped_column(sa.String(16), nullable=False, default="medium")
    notification_schedule: Mapped[list] = mapped_column(JSONPortable(), nullable=False, default=list)
    notified: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(TstzPortable(), nullable=False, default=utcnow)

    notifications = relationship(
        "Notification",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Event id={self.id} type={self.event_type} date={self.event_date} notified={self.notified}>"

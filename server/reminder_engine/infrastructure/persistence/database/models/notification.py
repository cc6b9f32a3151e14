from __future__ import annotations
"""server/reminder_engine/infrastructure/persistence/database/models/notification.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table notifications : un tir planifié (NotificationInstance).

- Au plus une ligne par (event_id, notification_type).
- `sent` passe de False à True une seule fois (update conditionnel).
- summary/type/priority sont une copie dénormalisée ; à l'envoi, la ligne
  `events` reste la source de vérité pour l'affichage.
"""
import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reminder_engine.infrastructure.persistence.database.base import Base
from reminder_engine.infrastructure.persistence.database.models.types import (
    TstzPortable,
    UUIDPortable,
    utcnow,
)


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        sa.UniqueConstraint("event_id", "notification_type", name="uq_notifications_event_type"),
        sa.Index("ix_notifications_due", "sent", "notification_time"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUIDPortable(), primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(
        UUIDPortable(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUIDPortable(), nullable=False, index=True)
    notification_time: Mapped[datetime] = mapped_column(TstzPortable(), nullable=False)
    notification_type: Mapped[str] = mapped_column(sa.String(32), nullable=False)
    sent: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    sent_at: Mapped[datetime | None] = mapped_column(TstzPortable(), nullable=True)
    delivery_status: Mapped[str] = mapped_column(sa.String(16), nullable=False, default="pending")
    event_summary: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    event_type: Mapped[str | None] = mapped_column(sa.String(32), nullable=True)
    priority: Mapped[str | None] = mapped_column(sa.String(16), nullable=True)
    created_at: Mapped[datetime] = mapped_column(TstzPortable(), nullable=False, default=utcnow)

    event = relationship("Event", back_populates="notifications")

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Notification id={self.id} type={self.notification_type} "
            f"time={self.notification_time} sent={self.sent}>"
        )

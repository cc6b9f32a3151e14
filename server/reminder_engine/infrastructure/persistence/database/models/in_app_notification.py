from __future__ import annotations
"""server/reminder_engine/infrastructure/persistence/database/models/in_app_notification.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table in_app_notifications : message rendu pour l'utilisateur (boîte de
réception de l'app), rejoué à la reconnexion tant qu'il n'est pas lu.
"""
import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from reminder_engine.infrastructure.persistence.database.base import Base
from reminder_engine.infrastructure.persistence.database.models.types import (
    JSONPortable,
    TstzPortable,
    UUIDPortable,
    utcnow,
)


class InAppNotification(Base):
    __tablename__ = "in_app_notifications"
    __table_args__ = (
        sa.Index("ix_in_app_user_read_created", "user_id", "is_read", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUIDPortable(), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUIDPortable(), nullable=False)
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    message: Mapped[str] = mapped_column(sa.Text, nullable=False)
    type: Mapped[str] = mapped_column(sa.String(32), nullable=False)
    priority: Mapped[str] = mapped_column(sa.String(16), nullable=False, default="medium")
    event_id: Mapped[uuid.UUID | None] = mapped_column(
        UUIDPortable(), sa.ForeignKey("events.id", ondelete="SET NULL"), nullable=True
    )
    notification_id: Mapped[uuid.UUID | None] = mapped_column(
        UUIDPortable(), sa.ForeignKey("notifications.id", ondelete="SET NULL"), nullable=True, unique=True, index=True
    )
    is_read: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    read_at: Mapped[datetime | None] = mapped_column(TstzPortable(), nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(TstzPortable(), nullable=True)
    delivery_status: Mapped[str] = mapped_column(sa.String(16), nullable=False, default="pending")
    data: Mapped[dict] = mapped_column(JSONPortable(), nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(TstzPortable(), nullable=False, default=utcnow)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<InAppNotification id={self.id} user={self.user_id} read={self.is_read} status={self.delivery_status}>"

# server/reminder_engine/infrastructure/persistence/repositories/in_app_notification_repository.py
from __future__ import annotations
"""
Repository in_app_notifications : opérations CRUD bas niveau.

Points clés :
- Toutes les lectures/écritures "utilisateur" sont scopées par user_id.
- get_or_create_for_notification(...) : un tir ne produit qu'UNE ligne in-app,
  même s'il est retraité après un échec de persistance.
- Pas de commit ici (à la charge de l'appelant).
"""
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.orm import Session

from reminder_engine.domain.enums import DeliveryStatus
from reminder_engine.infrastructure.persistence.database.models.in_app_notification import InAppNotification


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InAppNotificationRepository:
    def __init__(self, session: Session):
        self.s = session

    # --- Create ---------------------------------------------------------------

    def get_or_create_for_notification(
        self,
        *,
        notification_id: UUID,
        user_id: UUID,
        event_id: Optional[UUID],
        title: str,
        message: str,
        type_: str,
        priority: str,
        data: dict[str, Any],
        created_at: Optional[datetime] = None,
    ) -> tuple[InAppNotification, bool]:
        existing = self.s.scalars(
            select(InAppNotification)
            .where(InAppNotification.notification_id == notification_id)
            .limit(1)
        ).first()
        if existing is not None:
            return existing, False

        row = InAppNotification(
            user_id=user_id,
            notification_id=notification_id,
            event_id=event_id,
            title=title,
            message=message,
            type=type_,
            priority=priority,
            data=dict(data),
            is_read=False,
            delivery_status=DeliveryStatus.PENDING.value,
            created_at=created_at or _now(),
        )
        self.s.add(row)
        self.s.flush()
        return row, True

    # --- Read ----------------------------------------------------------------

    def get_for_user(self, notification_id: UUID, user_id: UUID) -> Optional[InAppNotification]:
        return self.s.scalars(
            select(InAppNotification).where(
                InAppNotification.id == notification_id,
                InAppNotification.user_id == user_id,
            )
        ).first()

    def list_for_user(
        self,
        user_id: UUID,
        *,
        page: int = 1,
        limit: int = 20,
        unread_only: bool = False,
    ) -> tuple[list[InAppNotification], int]:
        """Page (déchronologique) + total correspondant au filtre."""
        conds = [InAppNotification.user_id == user_id]
        if unread_only:
            conds.append(InAppNotification.is_read.is_(False))

        total = int(
            self.s.execute(select(func.count()).select_from(InAppNotification).where(*conds)).scalar_one()
        )
        offset = (max(page, 1) - 1) * limit
        rows = self.s.scalars(
            select(InAppNotification)
            .where(*conds)
            .order_by(InAppNotification.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(rows), total

    def unread_for_replay(self, user_id: UUID, *, limit: int = 10) -> list[InAppNotification]:
        """Non lues, plus récentes d'abord (rejeu à la connexion)."""
        rows = self.s.scalars(
            select(InAppNotification)
            .where(InAppNotification.user_id == user_id, InAppNotification.is_read.is_(False))
            .order_by(InAppNotification.created_at.desc())
            .limit(limit)
        )
        return list(rows)

    def count_unread(self, user_id: Optional[UUID] = None) -> int:
        stmt = select(func.count()).select_from(InAppNotification).where(InAppNotification.is_read.is_(False))
        if user_id is not None:
            stmt = stmt.where(InAppNotification.user_id == user_id)
        return int(self.s.execute(stmt).scalar_one())

    # --- Update ---------------------------------------------------------------

    def set_delivery(self, notification_id: UUID, *, delivered: bool, at: Optional[datetime] = None) -> None:
        """Monotone : une ligne `delivered` (retry réussi entre-temps) ne redescend jamais à `pending`."""
        status = DeliveryStatus.DELIVERED if delivered else DeliveryStatus.PENDING
        stmt = update(InAppNotification).where(InAppNotification.id == notification_id)
        if not delivered:
            stmt = stmt.where(InAppNotification.delivery_status != DeliveryStatus.DELIVERED.value)
        self.s.execute(
            stmt.values(delivered_at=at or _now(), delivery_status=status.value)
            .execution_options(synchronize_session=False)
        )

    def mark_read(self, notification_id: UUID, user_id: UUID, *, at: Optional[datetime] = None) -> bool:
        res = self.s.execute(
            update(InAppNotification)
            .where(InAppNotification.id == notification_id, InAppNotification.user_id == user_id)
            .values(is_read=True, read_at=at or _now())
            .execution_options(synchronize_session=False)
        )
        return res.rowcount == 1

    def mark_all_read(self, user_id: UUID, *, at: Optional[datetime] = None) -> int:
        res = self.s.execute(
            update(InAppNotification)
            .where(InAppNotification.user_id == user_id, InAppNotification.is_read.is_(False))
            .values(is_read=True, read_at=at or _now())
            .execution_options(synchronize_session=False)
        )
        return res.rowcount or 0

    # --- Delete ---------------------------------------------------------------

    def delete_for_user(self, notification_id: UUID, user_id: UUID) -> bool:
        res = self.s.execute(
            delete(InAppNotification)
            .where(InAppNotification.id == notification_id, InAppNotification.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount == 1

    def purge(self, *, read_before: datetime, unread_before: datetime) -> int:
        """Lues plus vieilles que read_before OU non lues plus vieilles que unread_before."""
        res = self.s.execute(
            delete(InAppNotification)
            .where(
                or_(
                    and_(InAppNotification.is_read.is_(True), InAppNotification.created_at < read_before),
                    and_(InAppNotification.is_read.is_(False), InAppNotification.created_at < unread_before),
                )
            )
            .execution_options(synchronize_session=False)
        )
        return res.rowcount or 0

# server/reminder_engine/infrastructure/persistence/repositories/notification_repository.py

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from reminder_engine.domain.enums import DeliveryStatus
from reminder_engine.infrastructure.persistence.database.models.event import Event
from reminder_engine.infrastructure.persistence.database.models.notification import Notification


class NotificationRepository:
    """
    Repository pour la table notifications (tirs planifiés).

    Principes :
    - Ne gère PAS les commit/rollback : c'est à la charge de l'appelant.
    - mark_processed(...) est un UPDATE conditionnel (`sent = false`) : c'est
      l'unique garantie "tiré au plus une fois", sans verrou ni lecture préalable.
    - fetch_window(...) joint la ligne events : elle reste la source de vérité
      pour summary/type/priorité au moment de l'envoi.
    """

    def __init__(self, db: Session):
        self.db = db

    # --- Create ---------------------------------------------------------------

    def add_batch(self, rows: Iterable[Notification]) -> list[Notification]:
        """Écriture groupée (un seul flush)."""
        rows = list(rows)
        self.db.add_all(rows)
        self.db.flush()
        return rows

    # --- Read ----------------------------------------------------------------

    def labels_for_event(self, event_id: UUID) -> set[str]:
        stmt = select(Notification.notification_type).where(Notification.event_id == event_id)
        return set(self.db.scalars(stmt))

    def list_for_event(self, event_id: UUID) -> list[Notification]:
        stmt = (
            select(Notification)
            .where(Notification.event_id == event_id)
            .order_by(Notification.notification_time.asc())
        )
        return list(self.db.scalars(stmt))

    def fetch_window(
        self,
        *,
        start: datetime,
        end: datetime,
        limit: Optional[int] = None,
    ) -> list[tuple[Notification, Event]]:
        """
        Retourne les tirs non envoyés dont notification_time ∈ [start, end],
        avec leur évènement parent, triés par notification_time asc.
        """
        stmt = (
            select(Notification, Event)
            .join(Event, Notification.event_id == Event.id)
            .where(
                Notification.sent.is_(False),
                Notification.notification_time >= start,
                Notification.notification_time <= end,
            )
            .order_by(Notification.notification_time.asc())
        )
        if limit:
            stmt = stmt.limit(limit)
        return [(n, ev) for n, ev in self.db.execute(stmt).all()]

    def count_pending(self) -> int:
        stmt = select(func.count()).select_from(Notification).where(Notification.sent.is_(False))
        return int(self.db.execute(stmt).scalar_one())

    # --- Update ---------------------------------------------------------------

    def mark_processed(
        self,
        notification_id: UUID,
        *,
        delivered: bool,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        UPDATE ... SET sent=true, sent_at=now, delivery_status=...
        WHERE id=:id AND sent=false

        Retourne True ssi CET appel a effectué la transition ; un second appel
        (tick concurrent, rejeu) touche 0 ligne et ne modifie pas sent_at.
        """
        status = DeliveryStatus.DELIVERED if delivered else DeliveryStatus.PENDING
        stmt = (
            update(Notification)
            .where(Notification.id == notification_id, Notification.sent.is_(False))
            .values(
                sent=True,
                sent_at=now or datetime.now(timezone.utc),
                delivery_status=status.value,
            )
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount == 1

    # --- Delete ---------------------------------------------------------------

    def purge_sent_before(self, cutoff: datetime) -> int:
        """Supprime les tirs déjà envoyés dont l'heure de tir est < cutoff."""
        stmt = (
            delete(Notification)
            .where(Notification.sent.is_(True), Notification.notification_time < cutoff)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount or 0

    def purge_missed_before(self, cutoff: datetime) -> int:
        """Tirs jamais envoyés (fenêtre d'acceptation manquée) dont l'heure de tir est < cutoff."""
        stmt = (
            delete(Notification)
            .where(Notification.sent.is_(False), Notification.notification_time < cutoff)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount or 0

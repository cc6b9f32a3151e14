from __future__ import annotations
"""server/reminder_engine/application/services/completion_service.py
~~~~~~~~~~~~~~~~~~~~~~~~
Suivi de complétion : passage unique `sent=false → true` d'un tir.

Appelé par la boucle de dispatch après chaque livraison (livrée ou non) ;
met aussi à jour le statut de la ligne in-app associée quand elle est fournie.
"""
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reminder_engine.core.errors import PersistenceError
from reminder_engine.core.utils.datetime import utcnow
from reminder_engine.infrastructure.persistence.database.session import open_session
from reminder_engine.infrastructure.persistence.repositories.in_app_notification_repository import (
    InAppNotificationRepository,
)
from reminder_engine.infrastructure.persistence.repositories.notification_repository import (
    NotificationRepository,
)

logger = logging.getLogger(__name__)


def record_completion(
    session: Session,
    instance_id: UUID,
    delivered: bool,
    *,
    now: datetime,
    in_app_id: Optional[UUID] = None,
) -> bool:
    """Variante sans commit (unité de travail de l'appelant)."""
    changed = NotificationRepository(session).mark_processed(instance_id, delivered=delivered, now=now)
    if in_app_id is not None:
        InAppNotificationRepository(session).set_delivery(in_app_id, delivered=delivered, at=now)
    return changed


def mark_processed(
    instance_id: UUID,
    delivered: bool,
    *,
    now: Optional[datetime] = None,
    in_app_id: Optional[UUID] = None,
) -> bool:
    """
    True ssi cet appel a effectué la transition. Un second appel (tick concurrent)
    est un no-op et ne touche pas à sent_at.
    """
    try:
        with open_session() as s:
            changed = record_completion(s, instance_id, delivered, now=now or utcnow(), in_app_id=in_app_id)
            s.commit()
    except SQLAlchemyError as exc:
        raise PersistenceError(f"mark_processed({instance_id}) failed: {exc}") from exc

    if not changed:
        logger.debug("completion: %s already processed", instance_id)
    return changed

from __future__ import annotations
"""server/reminder_engine/application/services/retention_service.py
~~~~~~~~~~~~~~~~~~~~~~~~
Purge quotidienne :
- tirs envoyés dont l'heure de tir a plus de RETENTION_DAYS jours ;
- in-app lues de plus de RETENTION_READ_DAYS jours ;
- in-app non lues de plus de RETENTION_DAYS jours ;
- tirs jamais envoyés (fenêtre manquée, ex. après une panne) dont l'heure
  de tir a plus de RETENTION_DAYS jours : ils ne peuvent plus partir.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from reminder_engine.core.config import settings
from reminder_engine.core.errors import PersistenceError
from reminder_engine.core.utils.datetime import as_utc, utcnow
from reminder_engine.infrastructure.persistence.database.session import open_session
from reminder_engine.infrastructure.persistence.repositories.in_app_notification_repository import (
    InAppNotificationRepository,
)
from reminder_engine.infrastructure.persistence.repositories.notification_repository import (
    NotificationRepository,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetentionReport:
    notifications: int
    in_app: int
    missed: int = 0


def sweep_expired(
    *,
    now: Optional[datetime] = None,
    retention_days: Optional[int] = None,
    read_days: Optional[int] = None,
) -> RetentionReport:
    now = as_utc(now or utcnow())
    keep = timedelta(days=retention_days if retention_days is not None else settings.RETENTION_DAYS)
    keep_read = timedelta(days=read_days if read_days is not None else settings.RETENTION_READ_DAYS)

    try:
        with open_session() as s:
            nrepo = NotificationRepository(s)
            n_sent = nrepo.purge_sent_before(now - keep)
            n_missed = nrepo.purge_missed_before(now - keep)
            n_in_app = InAppNotificationRepository(s).purge(
                read_before=now - keep_read,
                unread_before=now - keep,
            )
            s.commit()
    except SQLAlchemyError as exc:
        raise PersistenceError(f"retention sweep failed: {exc}") from exc

    if n_missed:
        logger.warning("retention: purged %d never-sent notifications", n_missed)
    logger.info("retention: purged notifications=%d in_app=%d", n_sent, n_in_app)
    return RetentionReport(notifications=n_sent, in_app=n_in_app, missed=n_missed)

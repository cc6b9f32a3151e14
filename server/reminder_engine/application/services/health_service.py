from __future__ import annotations
"""server/reminder_engine/application/services/health_service.py
~~~~~~~~~~~~~~~~~~~~~~~~
Rapport de santé : tirs en attente, in-app non lues, connexions actives.
"""
import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from reminder_engine.core.utils.datetime import utcnow
from reminder_engine.infrastructure.persistence.database.session import open_session
from reminder_engine.infrastructure.persistence.repositories.in_app_notification_repository import (
    InAppNotificationRepository,
)
from reminder_engine.infrastructure.persistence.repositories.notification_repository import (
    NotificationRepository,
)

logger = logging.getLogger(__name__)


def collect_health(*, active_connections: Optional[int] = None) -> dict[str, Any]:
    """`active_connections` n'est connu que dans le process temps réel (None ailleurs)."""
    report: dict[str, Any] = {
        "status": "ok",
        "timestamp": utcnow().isoformat(),
        "database": "ok",
        "pending_notifications": None,
        "unread_in_app": None,
        "active_connections": active_connections,
    }
    try:
        with open_session() as s:
            report["pending_notifications"] = NotificationRepository(s).count_pending()
            report["unread_in_app"] = InAppNotificationRepository(s).count_unread()
    except SQLAlchemyError as exc:
        logger.error("health: database check failed: %s", exc)
        report["status"] = "degraded"
        report["database"] = "error"
    return report


def log_health(*, active_connections: Optional[int] = None) -> dict[str, Any]:
    report = collect_health(active_connections=active_connections)
    logger.info(
        "health: status=%s pending=%s unread=%s connections=%s",
        report["status"],
        report["pending_notifications"],
        report["unread_in_app"],
        report["active_connections"],
    )
    return report

from __future__ import annotations
"""server/reminder_engine/application/services/replay_service.py
~~~~~~~~~~~~~~~~~~~~~~~~
Rattrapage à la connexion + lecture des notifications in-app côté WebSocket.
"""
import logging
from typing import Any
from uuid import UUID

from starlette.concurrency import run_in_threadpool

from reminder_engine.core.config import settings
from reminder_engine.infrastructure.notifications.payloads import in_app_payload
from reminder_engine.infrastructure.persistence.database.session import open_session
from reminder_engine.infrastructure.persistence.repositories.in_app_notification_repository import (
    InAppNotificationRepository,
)
from reminder_engine.infrastructure.realtime import protocol
from reminder_engine.infrastructure.realtime.registry import Connection

logger = logging.getLogger(__name__)


def load_unread(user_id: UUID, limit: int) -> list[dict[str, Any]]:
    with open_session() as s:
        rows = InAppNotificationRepository(s).unread_for_replay(user_id, limit=limit)
        return [in_app_payload(r) for r in rows]


def mark_read(user_id: UUID, notification_id: UUID) -> bool:
    with open_session() as s:
        ok = InAppNotificationRepository(s).mark_read(notification_id, user_id)
        s.commit()
        return ok


async def replay_unread(conn: Connection, *, limit: int | None = None) -> int:
    """Envoie jusqu'à `limit` non lues (plus récentes d'abord) ; rien si aucune."""
    items = await run_in_threadpool(load_unread, conn.user_id, limit or settings.REPLAY_LIMIT)
    if not items:
        return 0
    await conn.transport.send_json(protocol.pending_notifications(items))
    logger.info("replay: pending notifications sent", extra={"user_id": str(conn.user_id), "count": len(items)})
    return len(items)

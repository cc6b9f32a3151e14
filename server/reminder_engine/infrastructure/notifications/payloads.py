from __future__ import annotations
"""server/reminder_engine/infrastructure/notifications/payloads.py
~~~~~~~~~~~~~~~~~~~~~~~~
Sérialisation JSON des lignes in-app (WebSocket + API REST).
"""
from typing import Any

from reminder_engine.core.utils.datetime import isoformat
from reminder_engine.infrastructure.persistence.database.models.in_app_notification import InAppNotification


def in_app_payload(n: InAppNotification) -> dict[str, Any]:
    return {
        "id": str(n.id),
        "user_id": str(n.user_id),
        "title": n.title,
        "message": n.message,
        "type": n.type,
        "priority": n.priority,
        "event_id": str(n.event_id) if n.event_id else None,
        "notification_id": str(n.notification_id) if n.notification_id else None,
        "is_read": bool(n.is_read),
        "read_at": isoformat(n.read_at),
        "delivered_at": isoformat(n.delivered_at),
        "delivery_status": n.delivery_status,
        "data": dict(n.data or {}),
        "created_at": isoformat(n.created_at),
    }

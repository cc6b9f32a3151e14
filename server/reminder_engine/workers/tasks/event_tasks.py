from __future__ import annotations
"""server/reminder_engine/workers/tasks/event_tasks.py
~~~~~~~~~~~~~~~~~~~~~~~~
Création asynchrone d'un évènement + de ses rappels (collaborateur : détecteur
d'évènements du chat). Les arguments sont JSON-sérialisables.
"""
from datetime import datetime
from typing import Optional

from celery.utils.log import get_task_logger

from reminder_engine.application.services.materializer_service import create_event_with_notifications
from reminder_engine.core.errors import ValidationError
from reminder_engine.workers.celery_app import celery

logger = get_task_logger(__name__)


@celery.task(name="tasks.materialize_event")
def materialize_event(
    user_id: str,
    event_date: str,
    event_summary: str,
    category: str,
    priority: Optional[str] = None,
    policy_labels: Optional[list[str]] = None,
    description: Optional[str] = None,
) -> dict:
    try:
        when = datetime.fromisoformat(event_date)
    except (TypeError, ValueError):
        raise ValidationError(f"invalid event_date: {event_date!r}") from None

    result = create_event_with_notifications(
        user_id,
        when,
        event_summary,
        category,
        priority,
        policy_labels,
        description=description,
    )
    logger.info(
        "materialize_event: event_id=%s notifications=%d",
        result.event.id,
        len(result.notifications),
    )
    return {
        "event_id": str(result.event.id),
        "notifications": [
            {
                "id": str(n.id),
                "notification_type": n.notification_type,
                "notification_time": n.notification_time.isoformat(),
            }
            for n in result.notifications
        ],
    }

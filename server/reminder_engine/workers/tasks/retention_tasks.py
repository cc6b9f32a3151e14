# server/reminder_engine/workers/tasks/retention_tasks.py
from __future__ import annotations

from celery.utils.log import get_task_logger

from reminder_engine.application.services.retention_service import sweep_expired
from reminder_engine.workers.celery_app import celery

logger = get_task_logger(__name__)


@celery.task(name="tasks.retention_sweep")
def retention_sweep() -> dict[str, int]:
    """Tâche quotidienne : purge des tirs envoyés et des in-app expirées."""
    report = sweep_expired()
    logger.info(
        "retention_sweep: notifications=%d in_app=%d missed=%d",
        report.notifications,
        report.in_app,
        report.missed,
    )
    return {"notifications": report.notifications, "in_app": report.in_app, "missed": report.missed}

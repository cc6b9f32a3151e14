from __future__ import annotations
"""server/reminder_engine/workers/scheduler/beat_schedule.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Planification périodique des tâches Celery (Beat).
"""
from celery.schedules import crontab

from reminder_engine.core.config import settings

beat_schedule = {
    "retention-sweep-daily": {
        "task": "tasks.retention_sweep",
        "schedule": crontab(hour=settings.RETENTION_HOUR, minute=0),
    },
    "health-report": {
        "task": "tasks.health_report",
        "schedule": float(settings.HEALTH_LOG_MINUTES * 60),
    },
}

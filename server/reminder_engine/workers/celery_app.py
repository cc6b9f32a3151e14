from __future__ import annotations
"""reminder_engine/workers/celery_app.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Celery app + routage + auto-import des modules de tâches + beat schedule.

La boucle de dispatch et le heartbeat ne sont PAS ici : ils ont besoin du
registre de connexions en mémoire du process API (voir realtime_hub).
"""
from celery import Celery

from reminder_engine.core.config import settings
from reminder_engine.workers.scheduler.beat_schedule import beat_schedule

celery = Celery("reminders", broker=settings.REDIS_URL, backend=settings.REDIS_URL)

# Routage par files
celery.conf.task_routes = {
    "tasks.materialize_event": {"queue": "events"},
    "tasks.retention_sweep": {"queue": "maintenance"},
    "tasks.health_report": {"queue": "maintenance"},
}

# crontab évalué dans le fuseau "local" des rappels
celery.conf.timezone = settings.REMINDER_TIMEZONE
celery.conf.enable_utc = True

celery.conf.update(
    imports=[
        "reminder_engine.workers.tasks.event_tasks",
        "reminder_engine.workers.tasks.retention_tasks",
        "reminder_engine.workers.tasks.health_tasks",
    ],
)

celery.conf.beat_schedule = beat_schedule

from __future__ import annotations
"""server/reminder_engine/workers/tasks/health_tasks.py
~~~~~~~~~~~~~~~~~~~~~~~~
Rapport de santé périodique (compteurs en base).
"""
from reminder_engine.application.services.health_service import log_health
from reminder_engine.workers.celery_app import celery


@celery.task(name="tasks.health_report")
def health_report() -> dict:
    return log_health()

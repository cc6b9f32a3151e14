# server/tests/unit/test_celery_tasks.py
from datetime import datetime, timedelta, timezone

import pytest
from celery.schedules import crontab

from reminder_engine.core.errors import ValidationError
from reminder_engine.infrastructure.persistence.database.models import Event, Notification
from reminder_engine.workers.celery_app import celery
from reminder_engine.workers.tasks.event_tasks import materialize_event

pytestmark = pytest.mark.unit


def test_materialize_event_task(Session, user_id):
    when = datetime.now(timezone.utc) + timedelta(days=3)
    result = materialize_event.run(
        str(user_id), when.isoformat(), "Standup", "work", "low", ["one_day_before", "one_hour_before"],
    )
    assert {n["notification_type"] for n in result["notifications"]} == {"one_day_before", "one_hour_before"}

    with Session() as s:
        ev = s.query(Event).one()
        assert str(ev.id) == result["event_id"]
        assert ev.event_type == "work"
        assert s.query(Notification).filter_by(event_id=ev.id).count() == 2


def test_materialize_event_task_through_delay(Session, user_id):
    when = datetime.now(timezone.utc) + timedelta(days=1)
    res = materialize_event.delay(str(user_id), when.isoformat(), "Pills", "medication")
    assert len(res.get()["notifications"]) >= 1


def test_materialize_event_task_rejects_bad_date(user_id):
    with pytest.raises(ValidationError):
        materialize_event.run(str(user_id), "next tuesday", "x", "reminder")


def test_task_routes_and_beat_schedule():
    assert celery.conf.task_routes["tasks.materialize_event"] == {"queue": "events"}
    schedule = celery.conf.beat_schedule
    assert schedule["retention-sweep-daily"]["task"] == "tasks.retention_sweep"
    assert isinstance(schedule["retention-sweep-daily"]["schedule"], crontab)
    assert schedule["health-report"]["task"] == "tasks.health_report"
    assert schedule["health-report"]["schedule"] == 15 * 60.0

# server/tests/unit/test_completion.py
from datetime import timedelta

import pytest

from reminder_engine.application.services.completion_service import mark_processed
from reminder_engine.application.services.materializer_service import create_event_with_notifications
from reminder_engine.infrastructure.persistence.database.models import Notification
from reminder_engine.infrastructure.persistence.repositories.notification_repository import (
    NotificationRepository,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def instance_id(Session, now, user_id):
    res = create_event_with_notifications(
        user_id, now + timedelta(hours=3), "Gym", "workout", "low", ["thirty_minutes_before"], now=now,
    )
    return res.notifications[0].id


def test_first_call_flips_sent(Session, now, instance_id):
    assert mark_processed(instance_id, True, now=now) is True
    with Session() as s:
        n = s.get(Notification, instance_id)
        assert n.sent is True
        assert n.sent_at == now
        assert n.delivery_status == "delivered"


def test_unreachable_is_recorded_as_pending(Session, now, instance_id):
    assert mark_processed(instance_id, False, now=now) is True
    with Session() as s:
        n = s.get(Notification, instance_id)
        assert n.sent is True
        assert n.delivery_status == "pending"


def test_second_call_is_a_noop(Session, now, instance_id):
    assert mark_processed(instance_id, False, now=now) is True
    assert mark_processed(instance_id, True, now=now + timedelta(minutes=1)) is False
    with Session() as s:
        n = s.get(Notification, instance_id)
        assert n.sent_at == now
        assert n.delivery_status == "pending"


def test_simulated_race_only_one_transition(Session, now, instance_id):
    """Deux ticks ont lu la même ligne : un seul UPDATE conditionnel touche une ligne."""
    with Session() as s1:
        assert NotificationRepository(s1).fetch_window(start=now, end=now + timedelta(days=1))
    with Session() as s2:
        assert NotificationRepository(s2).fetch_window(start=now, end=now + timedelta(days=1))

    results = []
    for delivered in (True, False):
        with Session() as s:
            results.append(NotificationRepository(s).mark_processed(instance_id, delivered=delivered, now=now))
            s.commit()
    assert sorted(results) == [False, True]


def test_unknown_id_is_a_noop(Session):
    import uuid

    assert mark_processed(uuid.uuid4(), True) is False


def test_completion_updates_in_app_row_without_downgrade(Session, now, user_id, instance_id):
    from reminder_engine.infrastructure.persistence.database.models import InAppNotification
    from reminder_engine.infrastructure.persistence.repositories.in_app_notification_repository import (
        InAppNotificationRepository,
    )

    with Session() as s:
        row, _ = InAppNotificationRepository(s).get_or_create_for_notification(
            notification_id=instance_id, user_id=user_id, event_id=None, title="t", message="m",
            type_="workout", priority="low", data={},
        )
        # retry réussi avant l'écriture de complétion
        row.delivery_status = "delivered"
        s.commit()
        in_app_id = row.id

    assert mark_processed(instance_id, False, now=now, in_app_id=in_app_id) is True
    with Session() as s:
        assert s.get(Notification, instance_id).delivery_status == "pending"
        assert s.get(InAppNotification, in_app_id).delivery_status == "delivered"

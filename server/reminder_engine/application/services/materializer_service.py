from __future__ import annotations
"""server/reminder_engine/application/services/materializer_service.py
~~~~~~~~~~~~~~~~~~~~~~~~
Matérialisation des rappels d'un évènement :
- résout la politique (explicite, adaptative si vide et imminent, sinon `same_day`)
- calcule un instant de tir par libellé (les libellés invalides sont ignorés)
- garantit au moins un tir (`fallback` du palier d'urgence)
- écrit les lignes en un seul lot et pose `events.notified`

Aucune livraison ici : la boucle de dispatch s'en charge.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional, Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reminder_engine.core.config import settings
from reminder_engine.core.errors import ComputationError, PersistenceError, ValidationError
from reminder_engine.core.security import parse_user_id
from reminder_engine.core.utils.datetime import as_utc, utcnow
from reminder_engine.domain.enums import EventCategory, OffsetLabel, Priority
from reminder_engine.domain.policies import default_policy_for, normalize_policy, resolve_policy
from reminder_engine.domain.schedule import ScheduleRules, compute_fire_time, emergency_fire_time
from reminder_engine.infrastructure.persistence.database.models.event import Event
from reminder_engine.infrastructure.persistence.database.models.notification import Notification
from reminder_engine.infrastructure.persistence.database.session import open_session
from reminder_engine.infrastructure.persistence.repositories.event_repository import EventRepository
from reminder_engine.infrastructure.persistence.repositories.notification_repository import (
    NotificationRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class MaterializedEvent:
    event: Event
    notifications: list[Notification] = field(default_factory=list)


def _rules() -> ScheduleRules:
    return ScheduleRules.from_settings(settings)


def plan_fire_times(
    event_time: datetime,
    labels: Optional[Sequence[str]],
    *,
    now: datetime,
    rules: Optional[ScheduleRules] = None,
) -> list[tuple[OffsetLabel, datetime]]:
    """
    Calcul pur (sans I/O) des couples (libellé, instant de tir).
    Jamais vide tant que l'évènement est futur.
    """
    rules = rules or _rules()
    event_time, now = as_utc(event_time), as_utc(now)
    policy = resolve_policy(
        labels, event_time, now, imminent_window=timedelta(minutes=settings.IMMINENT_MINUTES)
    )

    planned: list[tuple[OffsetLabel, datetime]] = []
    for label in policy:
        try:
            planned.append((label, compute_fire_time(event_time, now, label, rules)))
        except ComputationError as exc:
            logger.debug("materializer: label skipped: %s", exc)

    if not planned:
        planned.append((OffsetLabel.FALLBACK, emergency_fire_time(event_time, now, rules)))
    return planned


def materialize(
    session: Session,
    event: Event,
    *,
    now: Optional[datetime] = None,
    rules: Optional[ScheduleRules] = None,
) -> list[Notification]:
    """
    Crée les tirs de `event` (ne commit pas).

    Idempotent : un évènement déjà `notified` renvoie ses tirs existants, et un
    libellé déjà persisté pour cet évènement n'est jamais réécrit.
    """
    nrepo = NotificationRepository(session)
    if event.notified:
        return nrepo.list_for_event(event.id)

    now = as_utc(now or utcnow())
    if as_utc(event.event_date) <= now:
        raise ValidationError(f"event {event.id} is in the past ({as_utc(event.event_date).isoformat()})")

    existing = nrepo.labels_for_event(event.id)
    rows = [
        Notification(
            event_id=event.id,
            user_id=event.user_id,
            notification_time=fire_at,
            notification_type=label.value,
            sent=False,
            delivery_status="pending",
            event_summary=event.event_summary,
            event_type=event.event_type,
            priority=event.priority,
        )
        for label, fire_at in plan_fire_times(event.event_date, event.notification_schedule, now=now, rules=rules)
        if label.value not in existing
    ]
    if rows:
        nrepo.add_batch(rows)
    event.notified = True
    session.flush()

    logger.info(
        "materializer: event materialized",
        extra={"event_id": str(event.id), "count": len(rows), "labels": [r.notification_type for r in rows]},
    )
    return nrepo.list_for_event(event.id)


def _category(value: Any) -> EventCategory:
    if isinstance(value, EventCategory):
        return value
    try:
        return EventCategory(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"unknown category: {value!r}") from None


def _priority(value: Any) -> Priority:
    if value is None:
        return Priority.MEDIUM
    if isinstance(value, Priority):
        return value
    try:
        return Priority(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"unknown priority: {value!r}") from None


def create_event_with_notifications(
    user_id: UUID | str,
    event_date: datetime,
    event_summary: str,
    category: EventCategory | str,
    priority: Priority | str | None = None,
    policy_labels: Optional[Sequence[str]] = None,
    *,
    description: Optional[str] = None,
    now: Optional[datetime] = None,
    session: Optional[Session] = None,
) -> MaterializedEvent:
    """
    Interface collaborateur : valide, persiste l'évènement, matérialise ses tirs,
    commit. Toute erreur de validation est levée AVANT la moindre écriture.

    `policy_labels=None` → politique par défaut de la catégorie ;
    `policy_labels=[]` (ou que des inconnus) → politique résolue (adaptative / `same_day`), persistée telle quelle.
    """
    uid = parse_user_id(user_id)
    cat = _category(category)
    prio = _priority(priority)
    summary = (event_summary or "").strip()
    if not summary:
        raise ValidationError("event_summary must not be empty")
    if not isinstance(event_date, datetime):
        raise ValidationError(f"event_date must be a datetime, got {type(event_date).__name__}")

    now = as_utc(now or utcnow())
    event_date = as_utc(event_date)
    if event_date <= now:
        raise ValidationError(f"event_date {event_date.isoformat()} is not in the future")

    if policy_labels is None:
        labels = [label.value for label in default_policy_for(cat)]
    else:
        accepted, rejected = normalize_policy(policy_labels)
        if rejected:
            logger.warning("materializer: unknown policy labels dropped: %s", rejected)
        # politique vide après normalisation : on persiste la politique résolue
        resolved = resolve_policy(
            accepted, event_date, now, imminent_window=timedelta(minutes=settings.IMMINENT_MINUTES)
        )
        labels = [label.value for label in resolved]

    def _run(s: Session) -> MaterializedEvent:
        ev = EventRepository(s).add(
            user_id=uid,
            event_date=event_date,
            event_summary=summary,
            description=description,
            event_type=cat.value,
            priority=prio.value,
            notification_schedule=labels,
        )
        notifications = materialize(s, ev, now=now)
        s.commit()
        return MaterializedEvent(event=ev, notifications=notifications)

    try:
        if session is not None:
            try:
                return _run(session)
            except Exception:
                session.rollback()
                raise
        with open_session() as s:
            return _run(s)
    except SQLAlchemyError as exc:
        logger.error("materializer: persistence failure: %s", exc)
        raise PersistenceError(f"event creation failed: {exc}") from exc

from __future__ import annotations
"""server/reminder_engine/application/services/dispatch_service.py
~~~~~~~~~~~~~~~~~~~~~~~~
Un tick de la boucle de dispatch :

1) fenêtre de requête [now - buffer, now + lookahead] sur les tirs `sent=false`,
   jointe à l'évènement parent (source de vérité summary/type/priorité) ;
2) re-filtrage sur la fenêtre d'acceptation [now - buffer, now] :
   pas encore dus → laissés au tick suivant ; trop vieux → journalisés, ignorés ;
3) traitement séquentiel par lots de `DISPATCH_BATCH_SIZE` :
   ligne in-app (idempotente) → livraison → complétion inconditionnelle.

Les accès base passent par le threadpool (Session synchrone) ; la livraison
reste sur la boucle asyncio (registre en mémoire du process).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from reminder_engine.application.services.completion_service import mark_processed
from reminder_engine.core.config import settings
from reminder_engine.core.errors import PersistenceError
from reminder_engine.core.utils.datetime import as_utc, utcnow
from reminder_engine.infrastructure.notifications.payloads import in_app_payload
from reminder_engine.infrastructure.notifications.templates.messages import build_in_app_content
from reminder_engine.infrastructure.persistence.database.session import open_session
from reminder_engine.infrastructure.persistence.repositories.in_app_notification_repository import (
    InAppNotificationRepository,
)
from reminder_engine.infrastructure.persistence.repositories.notification_repository import (
    NotificationRepository,
)
from reminder_engine.infrastructure.realtime.delivery import DeliveryChannel, DeliveryOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DueNotification:
    """Instantané détaché d'un tir + de son évènement (lu dans le threadpool)."""
    id: UUID
    event_id: UUID
    user_id: UUID
    label: str
    fire_at: datetime
    event_date: datetime
    summary: str
    category: str
    priority: str


@dataclass
class DispatchReport:
    fetched: int = 0
    not_due: int = 0
    stale: int = 0
    processed: int = 0
    delivered: int = 0
    unreachable: int = 0
    failed: int = 0
    already_processed: int = 0
    stale_ids: list[UUID] = field(default_factory=list)


# --------------------------------------------------------------------------- DB (sync)

def _fetch_window(start: datetime, end: datetime) -> list[DueNotification]:
    with open_session() as s:
        rows = NotificationRepository(s).fetch_window(start=start, end=end)
        return [
            DueNotification(
                id=n.id,
                event_id=ev.id,
                user_id=n.user_id,
                label=n.notification_type,
                fire_at=as_utc(n.notification_time),
                event_date=as_utc(ev.event_date),
                summary=ev.event_summary,
                category=ev.event_type,
                priority=ev.priority,
            )
            for n, ev in rows
        ]


def _prepare_in_app(item: DueNotification) -> tuple[UUID, dict[str, Any]]:
    content = build_in_app_content(
        category=item.category,
        priority=item.priority,
        label=item.label,
        summary=item.summary,
        event_date=item.event_date,
    )
    try:
        return _store_in_app(item, content)
    except IntegrityError:
        # tick concurrent : la ligne a été insérée entre notre lecture et notre insert
        logger.info("dispatch: in-app insert raced, reusing row", extra={"notification_id": str(item.id)})
        return _store_in_app(item, content)


def _store_in_app(item: DueNotification, content: dict[str, Any]) -> tuple[UUID, dict[str, Any]]:
    with open_session() as s:
        row, created = InAppNotificationRepository(s).get_or_create_for_notification(
            notification_id=item.id,
            user_id=item.user_id,
            event_id=item.event_id,
            title=content["title"],
            message=content["message"],
            type_=content["type"],
            priority=content["priority"],
            data=content["data"],
        )
        s.commit()
        if not created:
            logger.info("dispatch: in-app row reused", extra={"notification_id": str(item.id)})
        return row.id, in_app_payload(row)


def _confirm_late_delivery(in_app_id: UUID) -> None:
    with open_session() as s:
        InAppNotificationRepository(s).set_delivery(in_app_id, delivered=True)
        s.commit()


# --------------------------------------------------------------------------- tick

def partition_window(
    items: list[DueNotification], *, now: datetime, buffer: timedelta
) -> tuple[list[DueNotification], list[DueNotification], list[DueNotification]]:
    """(dus, pas encore dus, trop vieux) selon [now - buffer, now]."""
    due, not_due, stale = [], [], []
    for item in items:
        if item.fire_at > now:
            not_due.append(item)
        elif item.fire_at < now - buffer:
            stale.append(item)
        else:
            due.append(item)
    return due, not_due, stale


async def _process_one(
    channel: DeliveryChannel, item: DueNotification, now: datetime, report: DispatchReport
) -> None:
    try:
        in_app_id, payload = await run_in_threadpool(_prepare_in_app, item)
    except SQLAlchemyError as exc:
        # reste sent=false : retenté au tick suivant s'il est encore dans la fenêtre
        report.failed += 1
        logger.error("dispatch: in-app persistence failed for %s: %s", item.id, exc)
        return

    async def _on_delivered() -> None:
        await run_in_threadpool(_confirm_late_delivery, in_app_id)

    outcome = await channel.deliver(item.user_id, payload, on_delivered=_on_delivered)
    delivered = outcome is DeliveryOutcome.DELIVERED

    try:
        changed = await run_in_threadpool(
            mark_processed, item.id, delivered, now=now, in_app_id=in_app_id
        )
    except PersistenceError as exc:
        report.failed += 1
        logger.error("dispatch: completion failed for %s: %s", item.id, exc)
        return

    report.processed += 1
    if delivered:
        report.delivered += 1
    else:
        report.unreachable += 1
    if not changed:
        report.already_processed += 1


async def run_dispatch_tick(
    channel: DeliveryChannel,
    *,
    now: Optional[datetime] = None,
    buffer_seconds: Optional[int] = None,
    lookahead_seconds: Optional[int] = None,
    batch_size: Optional[int] = None,
) -> DispatchReport:
    now = as_utc(now or utcnow())
    buffer = timedelta(seconds=buffer_seconds if buffer_seconds is not None else settings.DISPATCH_ACCEPTANCE_BUFFER_SECONDS)
    lookahead = timedelta(seconds=lookahead_seconds if lookahead_seconds is not None else settings.DISPATCH_LOOKAHEAD_SECONDS)
    size = max(1, int(batch_size or settings.DISPATCH_BATCH_SIZE))

    report = DispatchReport()
    try:
        items = await run_in_threadpool(_fetch_window, now - buffer, now + lookahead)
    except SQLAlchemyError as exc:
        raise PersistenceError(f"dispatch window query failed: {exc}") from exc

    due, not_due, stale = partition_window(items, now=now, buffer=buffer)
    report.fetched, report.not_due, report.stale = len(items), len(not_due), len(stale)
    for item in stale:
        report.stale_ids.append(item.id)
        logger.warning(
            "dispatch: overdue notification dropped for this tick",
            extra={"notification_id": str(item.id), "fire_at": item.fire_at.isoformat()},
        )

    for start in range(0, len(due), size):
        for item in due[start:start + size]:
            await _process_one(channel, item, now, report)

    if items:
        logger.info(
            "dispatch: tick done fetched=%d processed=%d delivered=%d unreachable=%d not_due=%d stale=%d failed=%d",
            report.fetched, report.processed, report.delivered, report.unreachable,
            report.not_due, report.stale, report.failed,
        )
    return report

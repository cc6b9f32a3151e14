# server/reminder_engine/domain/policies.py

from __future__ import annotations
"""
Règles métier de politique de notification.

Fonctions principales :
    normalize_policy(labels) -> (libellés valides dédoublonnés, libellés rejetés)
    resolve_policy(labels, event_time, now) -> politique non vide
Une politique vide devient une politique adaptative si l'évènement est
imminent (<= 30 min), sinon le libellé par défaut `same_day`.
"""

from datetime import datetime, timedelta
from typing import Iterable, Optional

from reminder_engine.core.utils.datetime import as_utc
from reminder_engine.domain.enums import EventCategory, OffsetLabel

DEFAULT_LABEL = OffsetLabel.SAME_DAY
IMMINENT_WINDOW = timedelta(minutes=30)

# (temps restant max, politique) évalués de haut en bas
ADAPTIVE_POLICIES: tuple[tuple[timedelta, tuple[OffsetLabel, ...]], ...] = (
    (timedelta(minutes=2), (OffsetLabel.FIVE_MINUTES_BEFORE,)),
    (timedelta(minutes=15), (OffsetLabel.FIFTEEN_MINUTES_BEFORE, OffsetLabel.FIVE_MINUTES_BEFORE)),
    (timedelta(minutes=30), (OffsetLabel.FIFTEEN_MINUTES_BEFORE,)),
)

CATEGORY_DEFAULT_POLICIES: dict[EventCategory, tuple[OffsetLabel, ...]] = {
    EventCategory.BIRTHDAY: (OffsetLabel.ONE_DAY_BEFORE, OffsetLabel.SAME_DAY_MORNING),
    EventCategory.EXAM: (OffsetLabel.THREE_DAYS_BEFORE, OffsetLabel.ONE_DAY_BEFORE, OffsetLabel.SAME_DAY_MORNING),
    EventCategory.APPOINTMENT: (OffsetLabel.ONE_DAY_BEFORE, OffsetLabel.ONE_HOUR_BEFORE),
    EventCategory.DEADLINE: (OffsetLabel.ONE_WEEK_BEFORE, OffsetLabel.THREE_DAYS_BEFORE, OffsetLabel.ONE_DAY_BEFORE),
    EventCategory.WORKOUT: (OffsetLabel.SAME_DAY_MORNING, OffsetLabel.THIRTY_MINUTES_BEFORE),
    EventCategory.MEDICATION: (OffsetLabel.SAME_DAY, OffsetLabel.ONE_HOUR_BEFORE),
    EventCategory.SOCIAL: (OffsetLabel.ONE_DAY_BEFORE, OffsetLabel.SAME_DAY),
    EventCategory.TRAVEL: (OffsetLabel.ONE_DAY_BEFORE, OffsetLabel.SAME_DAY_MORNING),
    EventCategory.WORK: (OffsetLabel.ONE_DAY_BEFORE, OffsetLabel.SAME_DAY_MORNING),
    EventCategory.PERSONAL: (OffsetLabel.SAME_DAY_MORNING,),
    EventCategory.REMINDER: (OffsetLabel.SAME_DAY,),
}


def default_policy_for(category: EventCategory) -> list[OffsetLabel]:
    return list(CATEGORY_DEFAULT_POLICIES.get(category, (DEFAULT_LABEL,)))


def normalize_policy(labels: Optional[Iterable[str]]) -> tuple[list[OffsetLabel], list[str]]:
    """Dédoublonne en gardant l'ordre ; `fallback` et les inconnus sont rejetés."""
    accepted: list[OffsetLabel] = []
    rejected: list[str] = []
    for raw in labels or ():
        try:
            label = raw if isinstance(raw, OffsetLabel) else OffsetLabel(str(raw).strip().lower())
        except ValueError:
            rejected.append(str(raw))
            continue
        if label is OffsetLabel.FALLBACK:
            rejected.append(str(raw))
            continue
        if label not in accepted:
            accepted.append(label)
    return accepted, rejected


def adaptive_policy(remaining: timedelta) -> list[OffsetLabel]:
    for up_to, policy in ADAPTIVE_POLICIES:
        if remaining <= up_to:
            return list(policy)
    return [DEFAULT_LABEL]


def resolve_policy(
    labels: Optional[Iterable[str]],
    event_time: datetime,
    now: datetime,
    *,
    imminent_window: timedelta = IMMINENT_WINDOW,
) -> list[OffsetLabel]:
    accepted, _ = normalize_policy(labels)
    if accepted:
        return accepted
    remaining = as_utc(event_time) - as_utc(now)
    if remaining <= imminent_window:
        return adaptive_policy(remaining)
    return [DEFAULT_LABEL]

# server/reminder_engine/domain/schedule.py
from __future__ import annotations
"""
Calcul des instants de tir des rappels (fonctions pures, sans I/O).

Fonction principale :
    compute_fire_time(event_time, now, label, rules=DEFAULT_RULES) -> datetime
Lève ComputationError si le libellé ne peut pas donner un instant futur.

Les paliers (same_day, urgence) sont des listes ordonnées (seuil, règle)
évaluées de haut en bas.

Garanties :
- offsets lointains : `event - offset` exact, refusé s'il n'est pas > now ;
- offsets proches / same_day / fallback : résultat dans (now, event].
"""

import math
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Optional

from reminder_engine.core.errors import ComputationError
from reminder_engine.core.utils.datetime import as_utc, local_zone
from reminder_engine.domain.enums import OffsetLabel


@dataclass(frozen=True)
class NearOffset:
    nominal: timedelta
    floor: timedelta


@dataclass(frozen=True)
class LeadRule:
    """Si temps restant > `above` : tir `lead` avant l'évènement (None = fraction du restant)."""
    above: timedelta
    lead: Optional[timedelta]


@dataclass(frozen=True)
class EmergencyRule:
    """Si temps restant <= `up_to` (None = sans borne) : tir `lead` avant l'évènement (None = now + grâce)."""
    up_to: Optional[timedelta]
    lead: Optional[timedelta]


FAR_OFFSETS: dict[OffsetLabel, timedelta] = {
    OffsetLabel.ONE_WEEK_BEFORE: timedelta(days=7),
    OffsetLabel.THREE_DAYS_BEFORE: timedelta(days=3),
    OffsetLabel.ONE_DAY_BEFORE: timedelta(days=1),
}

NEAR_OFFSETS: dict[OffsetLabel, NearOffset] = {
    OffsetLabel.ONE_HOUR_BEFORE: NearOffset(timedelta(minutes=60), timedelta(minutes=5)),
    OffsetLabel.THIRTY_MINUTES_BEFORE: NearOffset(timedelta(minutes=30), timedelta(minutes=3)),
    OffsetLabel.FIFTEEN_MINUTES_BEFORE: NearOffset(timedelta(minutes=15), timedelta(minutes=2)),
    OffsetLabel.FIVE_MINUTES_BEFORE: NearOffset(timedelta(minutes=5), timedelta(minutes=1)),
}

SAME_DAY_TIERS: tuple[LeadRule, ...] = (
    LeadRule(above=timedelta(minutes=240), lead=timedelta(hours=2)),
    LeadRule(above=timedelta(minutes=120), lead=timedelta(hours=1)),
    LeadRule(above=timedelta(minutes=60), lead=timedelta(minutes=30)),
    LeadRule(above=timedelta(minutes=30), lead=timedelta(minutes=15)),
    LeadRule(above=timedelta(minutes=15), lead=timedelta(minutes=10)),
    LeadRule(above=timedelta(minutes=10), lead=timedelta(minutes=5)),
    LeadRule(above=timedelta(minutes=5), lead=timedelta(minutes=3)),
    LeadRule(above=timedelta(0), lead=None),
)

EMERGENCY_TIERS: tuple[EmergencyRule, ...] = (
    EmergencyRule(up_to=timedelta(minutes=1), lead=None),
    EmergencyRule(up_to=timedelta(minutes=5), lead=timedelta(minutes=1)),
    EmergencyRule(up_to=timedelta(minutes=10), lead=timedelta(minutes=2)),
    EmergencyRule(up_to=None, lead=timedelta(minutes=5)),
)


@dataclass(frozen=True)
class ScheduleRules:
    morning_hour: int = 9
    timezone: str = "UTC"
    near_fraction: float = 0.5
    emergency_grace: timedelta = timedelta(seconds=10)
    same_day_tiers: tuple[LeadRule, ...] = SAME_DAY_TIERS
    emergency_tiers: tuple[EmergencyRule, ...] = EMERGENCY_TIERS

    @classmethod
    def from_settings(cls, s) -> "ScheduleRules":
        return cls(
            morning_hour=int(s.SAME_DAY_MORNING_HOUR),
            timezone=s.REMINDER_TIMEZONE,
            near_fraction=float(s.NEAR_OFFSET_FRACTION),
            emergency_grace=timedelta(seconds=int(s.EMERGENCY_GRACE_SECONDS)),
        )


DEFAULT_RULES = ScheduleRules()


def _fraction_of(remaining: timedelta, fraction: float) -> timedelta:
    """floor(restant × fraction), à la seconde."""
    return timedelta(seconds=math.floor(remaining.total_seconds() * fraction))


def morning_anchor(event_time: datetime, rules: ScheduleRules = DEFAULT_RULES) -> datetime:
    """Heure fixe (locale) du jour calendaire de l'évènement, en UTC."""
    tz = local_zone(rules.timezone)
    local_day = as_utc(event_time).astimezone(tz).date()
    return as_utc(datetime.combine(local_day, time(hour=rules.morning_hour), tzinfo=tz))


def near_fire_time(
    event_time: datetime, now: datetime, offset: NearOffset, rules: ScheduleRules = DEFAULT_RULES
) -> datetime:
    remaining = event_time - now
    if remaining > offset.nominal:
        return event_time - offset.nominal
    lead = _fraction_of(remaining, rules.near_fraction)
    # le plancher ne s'applique que s'il laisse le tir après `now`
    if offset.floor < remaining:
        lead = max(lead, offset.floor)
    return event_time - lead


def same_day_fire_time(event_time: datetime, now: datetime, rules: ScheduleRules = DEFAULT_RULES) -> datetime:
    remaining = event_time - now
    for rule in rules.same_day_tiers:
        if remaining > rule.above:
            lead = rule.lead if rule.lead is not None else _fraction_of(remaining, rules.near_fraction)
            return event_time - lead
    return event_time - _fraction_of(remaining, rules.near_fraction)


def emergency_fire_time(event_time: datetime, now: datetime, rules: ScheduleRules = DEFAULT_RULES) -> datetime:
    """
    Palier d'urgence (aussi utilisé comme fallback par le matérialiseur).
    Résultat toujours dans (now, event] tant que l'évènement est futur.
    """
    event_time, now = as_utc(event_time), as_utc(now)
    remaining = event_time - now
    if remaining <= timedelta(0):
        raise ComputationError(f"event already passed ({event_time.isoformat()})")

    for rule in rules.emergency_tiers:
        if rule.up_to is None or remaining <= rule.up_to:
            if rule.lead is None:
                return min(now + rules.emergency_grace, event_time)
            return event_time - rule.lead
    raise ComputationError("no emergency tier matched")


def compute_fire_time(
    event_time: datetime,
    now: datetime,
    label: OffsetLabel | str,
    rules: ScheduleRules = DEFAULT_RULES,
) -> datetime:
    try:
        label = OffsetLabel(label)
    except ValueError:
        raise ComputationError(f"unknown offset label: {label!r}") from None

    event_time, now = as_utc(event_time), as_utc(now)
    if event_time <= now:
        raise ComputationError(f"{label.value}: event already passed")

    if label in FAR_OFFSETS:
        candidate = event_time - FAR_OFFSETS[label]
        if candidate <= now:
            raise ComputationError(f"{label.value}: {candidate.isoformat()} is not in the future")
        return candidate

    if label is OffsetLabel.SAME_DAY_MORNING:
        candidate = morning_anchor(event_time, rules)
        if candidate >= event_time or candidate <= now:
            raise ComputationError(f"{label.value}: anchor {candidate.isoformat()} outside (now, event)")
        return candidate

    if label in NEAR_OFFSETS:
        candidate = near_fire_time(event_time, now, NEAR_OFFSETS[label], rules)
    elif label is OffsetLabel.SAME_DAY:
        candidate = same_day_fire_time(event_time, now, rules)
    else:  # FALLBACK
        return emergency_fire_time(event_time, now, rules)

    # post-condition : skew / arrondis → palier d'urgence
    if candidate <= now:
        return emergency_fire_time(event_time, now, rules)
    return candidate

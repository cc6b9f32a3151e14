# coding: utf-8
# server/reminder_engine/core/utils/datetime.py
"""server/reminder_engine/core/utils/datetime.py
~~~~~~~~~~~~~~~~~~~~~~~~
Utilitaires pour la gestion des dates et heures.
"""

from datetime import datetime, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime, *, assume: Optional[tzinfo] = None) -> datetime:
    """
    Normalise un datetime en UTC timezone-aware.
    - si naïf : on suppose `assume` (UTC par défaut)
    - sinon : conversion UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=assume or timezone.utc).astimezone(timezone.utc)
    return dt.astimezone(timezone.utc)


def local_zone(name: str | None) -> tzinfo:
    if not name or name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def isoformat(dt: Optional[datetime]) -> Optional[str]:
    return as_utc(dt).isoformat() if dt else None

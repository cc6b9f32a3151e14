# server/reminder_engine/domain/enums.py
from __future__ import annotations
"""
Énumérations fermées du domaine (catégories, priorités, libellés d'offset,
statuts de livraison). Les tables de correspondance (templates, politiques
par défaut) sont indexées par ces enums, jamais par des chaînes libres.
"""

import enum


class EventCategory(str, enum.Enum):
    BIRTHDAY = "birthday"
    EXAM = "exam"
    APPOINTMENT = "appointment"
    DEADLINE = "deadline"
    WORKOUT = "workout"
    MEDICATION = "medication"
    SOCIAL = "social"
    TRAVEL = "travel"
    WORK = "work"
    PERSONAL = "personal"
    REMINDER = "reminder"


class Priority(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class OffsetLabel(str, enum.Enum):
    # offsets "lointains"
    ONE_WEEK_BEFORE = "one_week_before"
    THREE_DAYS_BEFORE = "three_days_before"
    ONE_DAY_BEFORE = "one_day_before"
    SAME_DAY_MORNING = "same_day_morning"
    # offsets "proches"
    ONE_HOUR_BEFORE = "one_hour_before"
    THIRTY_MINUTES_BEFORE = "thirty_minutes_before"
    FIFTEEN_MINUTES_BEFORE = "fifteen_minutes_before"
    FIVE_MINUTES_BEFORE = "five_minutes_before"
    # paliers adaptatifs
    SAME_DAY = "same_day"
    # synthétique : jamais fourni par l'appelant
    FALLBACK = "fallback"


class DeliveryStatus(str, enum.Enum):
    DELIVERED = "delivered"
    PENDING = "pending"
    FAILED = "failed"

# server/reminder_engine/infrastructure/notifications/templates/messages.py
from __future__ import annotations
"""
Templates des messages de rappel (catégorie × libellé d'offset).

Chaîne de repli : template de la catégorie → `same_day` de la catégorie →
message générique. Les tables sont indexées par enums (exhaustivité testée).
"""

from datetime import datetime
from typing import Any, Optional

from reminder_engine.core.utils.datetime import isoformat
from reminder_engine.domain.enums import EventCategory, OffsetLabel, Priority

L = OffsetLabel

MESSAGE_TEMPLATES: dict[EventCategory, dict[OffsetLabel, str]] = {
    EventCategory.BIRTHDAY: {
        L.ONE_DAY_BEFORE: "🎂 Tomorrow is {summary}! Don't forget to prepare something special.",
        L.SAME_DAY_MORNING: "🎉 Happy {summary}! Make sure to wish them well today.",
        L.SAME_DAY: "🎈 It's {summary} today! Time to celebrate!",
    },
    EventCategory.EXAM: {
        L.THREE_DAYS_BEFORE: "📚 Your {summary} is in 3 days. Time to start intensive preparation!",
        L.ONE_DAY_BEFORE: "⏰ Your {summary} is tomorrow! Final review time.",
        L.SAME_DAY_MORNING: "📖 Good morning! Today is your {summary}. You've got this!",
    },
    EventCategory.APPOINTMENT: {
        L.ONE_DAY_BEFORE: "📅 Reminder: You have {summary} tomorrow. Make sure to prepare any documents needed.",
        L.ONE_HOUR_BEFORE: "⏰ Your {summary} is in 1 hour. Time to head out!",
    },
    EventCategory.DEADLINE: {
        L.ONE_WEEK_BEFORE: "📋 One week left for {summary}. Start planning your approach!",
        L.THREE_DAYS_BEFORE: "⚠️ Only 3 days left for {summary}. Time to focus!",
        L.ONE_DAY_BEFORE: "🚨 Tomorrow is the deadline for {summary}. Final push!",
    },
    EventCategory.WORKOUT: {
        L.SAME_DAY_MORNING: "💪 Good morning! Time for your {summary}. Let's get moving!",
        L.THIRTY_MINUTES_BEFORE: "🏃 Your {summary} starts in 30 minutes. Get ready!",
    },
    EventCategory.MEDICATION: {
        L.SAME_DAY: "💊 Time to take your {summary}. Stay healthy!",
        L.ONE_HOUR_BEFORE: "⏰ Reminder: Take your {summary} in 1 hour.",
    },
    EventCategory.SOCIAL: {
        L.ONE_DAY_BEFORE: "🎉 Don't forget about {summary} tomorrow! It's going to be fun.",
        L.SAME_DAY: "🥳 {summary} is starting soon! Time to get ready.",
    },
    EventCategory.TRAVEL: {
        L.ONE_DAY_BEFORE: "✈️ Your {summary} is tomorrow! Check your bookings and pack your bags.",
        L.SAME_DAY_MORNING: "🧳 Travel day! Your {summary} is today. Safe travels!",
    },
    EventCategory.WORK: {
        L.ONE_DAY_BEFORE: "💼 Tomorrow you have {summary}. Prepare any materials you need.",
        L.SAME_DAY_MORNING: "☕ Good morning! You have {summary} today. Have a productive day!",
    },
    EventCategory.PERSONAL: {
        L.SAME_DAY_MORNING: "✅ Don't forget: {summary} is on your agenda for today.",
    },
    EventCategory.REMINDER: {
        L.SAME_DAY: "🔔 Reminder: {summary}",
        L.ONE_HOUR_BEFORE: "⏰ In 1 hour: {summary}",
        L.THIRTY_MINUTES_BEFORE: "⏰ In 30 minutes: {summary}",
    },
}

GENERIC_TEMPLATE = "🔔 Reminder: {summary}"

PRIORITY_EMOJIS: dict[Priority, str] = {
    Priority.HIGH: "🔴",
    Priority.MEDIUM: "🟡",
    Priority.LOW: "🟢",
}

CATEGORY_EMOJIS: dict[EventCategory, str] = {
    EventCategory.BIRTHDAY: "🎂",
    EventCategory.EXAM: "📚",
    EventCategory.APPOINTMENT: "📅",
    EventCategory.DEADLINE: "🚨",
    EventCategory.WORKOUT: "💪",
    EventCategory.MEDICATION: "💊",
    EventCategory.SOCIAL: "🎉",
    EventCategory.TRAVEL: "✈️",
    EventCategory.WORK: "💼",
    EventCategory.PERSONAL: "✅",
    EventCategory.REMINDER: "🔔",
}


def _category(value: Any) -> EventCategory:
    try:
        return EventCategory(value)
    except ValueError:
        return EventCategory.REMINDER


def _priority(value: Any) -> Priority:
    try:
        return Priority(value)
    except ValueError:
        return Priority.MEDIUM


def render_message(category: EventCategory | str, label: OffsetLabel | str, summary: str) -> str:
    templates = MESSAGE_TEMPLATES[_category(category)]
    try:
        template = templates.get(OffsetLabel(label))
    except ValueError:
        template = None
    template = template or templates.get(OffsetLabel.SAME_DAY) or GENERIC_TEMPLATE
    return template.format(summary=summary)


def render_title(category: EventCategory | str) -> str:
    cat = _category(category)
    return f"{CATEGORY_EMOJIS[cat]} {cat.value.capitalize()} Reminder"


def build_in_app_content(
    *,
    category: EventCategory | str,
    priority: Priority | str,
    label: OffsetLabel | str,
    summary: str,
    event_date: Optional[datetime],
) -> dict[str, Any]:
    """Titre, message et bloc `data` d'une notification in-app."""
    cat, prio = _category(category), _priority(priority)
    label_value = label.value if isinstance(label, OffsetLabel) else str(label)
    return {
        "title": render_title(cat),
        "message": render_message(cat, label_value, summary),
        "type": cat.value,
        "priority": prio.value,
        "data": {
            "event_summary": summary,
            "event_date": isoformat(event_date),
            "notification_type": label_value,
            "priority_emoji": PRIORITY_EMOJIS[prio],
            "category_emoji": CATEGORY_EMOJIS[cat],
        },
    }

from __future__ import annotations
"""server/reminder_engine/infrastructure/persistence/database/models/__init__.py
~~~~~~~~~~~~~~~~~~~~~~~~
Modèles ORM (register for Alembic).
"""

from .event import Event
from .notification import Notification
from .in_app_notification import InAppNotification

__all__ = ["Event", "Notification", "InAppNotification"]

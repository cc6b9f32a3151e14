from __future__ import annotations
"""
server/reminder_engine/api/schemas/notification.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Réponses de la boîte in-app (liste paginée, compteur).
"""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Pagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int
    has_more: bool = Field(alias="hasMore")


class NotificationPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data: list[dict[str, Any]]
    pagination: Pagination


class UnreadCount(BaseModel):
    count: int

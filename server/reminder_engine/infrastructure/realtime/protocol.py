from __future__ import annotations
"""
server/reminder_engine/infrastructure/realtime/protocol.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Enveloppes JSON du canal temps réel.

client → serveur : auth {userId} | ping | pong | mark_read {notificationId, userId}
serveur → client : connection_confirmed | pending_notifications {data, count}
                   | notification {data, retry_count} | ping | pong | error {message}
Toutes les enveloppes serveur portent un `timestamp` ISO-8601 UTC.

Vivacité : chaque sweep de heartbeat envoie `ping` ; tout message client reçu
avant le sweep suivant (typiquement `pong` en réponse, ou un `ping` périodique
à un intervalle < HEARTBEAT_INTERVAL_SECONDS) garde la connexion. Un client
muet pendant deux sweeps est fermé (4001). Les ping/pong de la couche transport
ne sont pas visibles de l'application ASGI.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from reminder_engine.core.utils.datetime import utcnow


class ClientMessage(BaseModel):
    """
    Message entrant ; les champs camelCase suivent le client mobile/web.
    Tout message (y compris `pong`) compte comme signe de vie pour le heartbeat.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: Literal["auth", "ping", "pong", "mark_read"]
    user_id: Optional[str] = Field(default=None, alias="userId")
    notification_id: Optional[str] = Field(default=None, alias="notificationId")


def _ts() -> str:
    return utcnow().isoformat()


def connection_confirmed() -> dict[str, Any]:
    return {"type": "connection_confirmed", "timestamp": _ts()}


def pending_notifications(items: list[dict[str, Any]]) -> dict[str, Any]:
    return {"type": "pending_notifications", "data": items, "count": len(items), "timestamp": _ts()}


def notification(data: dict[str, Any], *, retry_count: int = 0) -> dict[str, Any]:
    return {"type": "notification", "data": data, "timestamp": _ts(), "retry_count": retry_count}


def ping() -> dict[str, Any]:
    return {"type": "ping", "timestamp": _ts()}


def pong() -> dict[str, Any]:
    return {"type": "pong", "timestamp": _ts()}


def error(message: str) -> dict[str, Any]:
    return {"type": "error", "message": message, "timestamp": _ts()}

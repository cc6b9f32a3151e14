from __future__ import annotations
"""
server/reminder_engine/infrastructure/realtime/registry.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Registre des connexions temps réel : au plus UNE connexion vivante par utilisateur.

Règles :
- register() termine l'ancienne connexion de l'utilisateur AVANT d'enregistrer
  la nouvelle, puis déclenche le rejeu des notifications non lues.
- Seul register() écrit l'entrée d'un utilisateur ; unregister()/evict()/sweep()
  ne font que retirer, et uniquement la connexion exacte qu'ils ont observée
  (une reconnexion gagne toujours).
- sweep() (heartbeat) : une connexion non vue vivante depuis le sweep précédent
  est terminée et retirée ; les autres repassent "non vivantes" et sont pingées.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Protocol
from uuid import UUID

from reminder_engine.core.utils.datetime import utcnow
from reminder_engine.infrastructure.realtime import protocol

logger = logging.getLogger(__name__)

CLOSE_REPLACED = 4000
CLOSE_STALE = 4001
CLOSE_EVICTED = 4002


class Transport(Protocol):
    async def send_json(self, message: dict[str, Any]) -> None: ...

    async def close(self, code: int = 1000, reason: str = "") -> None: ...


@dataclass(eq=False)
class Connection:
    user_id: UUID
    transport: Transport
    is_alive: bool = True
    last_heartbeat: datetime = field(default_factory=utcnow)

    def touch(self) -> None:
        self.is_alive = True
        self.last_heartbeat = utcnow()


ReplayHook = Callable[[Connection], Awaitable[Any]]


class ConnectionRegistry:
    def __init__(self, *, replay: Optional[ReplayHook] = None):
        self._connections: dict[UUID, Connection] = {}
        self._replay = replay

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, user_id: UUID) -> bool:
        return user_id in self._connections

    def get(self, user_id: UUID) -> Optional[Connection]:
        return self._connections.get(user_id)

    def is_current(self, connection: Connection) -> bool:
        return self._connections.get(connection.user_id) is connection

    async def register(self, user_id: UUID, transport: Transport) -> Connection:
        previous = self._connections.get(user_id)
        if previous is not None and previous.transport is not transport:
            logger.info("realtime: replacing connection", extra={"user_id": str(user_id)})
            await self._terminate(previous, code=CLOSE_REPLACED, reason="replaced")

        conn = Connection(user_id=user_id, transport=transport)
        self._connections[user_id] = conn
        logger.info("realtime: user connected", extra={"user_id": str(user_id), "active": len(self)})

        if self._replay is not None:
            try:
                await self._replay(conn)
            except Exception:
                # le rejeu est du rattrapage : son échec ne doit pas refuser la connexion
                logger.exception("realtime: replay failed for user_id=%s", user_id)
        return conn

    def mark_alive(self, user_id: UUID, transport: Transport) -> bool:
        conn = self._connections.get(user_id)
        if conn is None or conn.transport is not transport:
            return False
        conn.touch()
        return True

    def unregister(self, user_id: UUID, transport: Transport) -> bool:
        """Retrait sur fermeture côté client (sans re-fermer le transport)."""
        conn = self._connections.get(user_id)
        if conn is None or conn.transport is not transport:
            return False
        del self._connections[user_id]
        logger.info("realtime: user disconnected", extra={"user_id": str(user_id), "active": len(self)})
        return True

    async def evict(self, connection: Connection, *, code: int = CLOSE_EVICTED, reason: str = "evicted") -> bool:
        if not self.is_current(connection):
            return False
        del self._connections[connection.user_id]
        await self._terminate(connection, code=code, reason=reason)
        logger.info("realtime: connection evicted", extra={"user_id": str(connection.user_id), "reason": reason})
        return True

    async def sweep(self) -> list[UUID]:
        """Passe de heartbeat ; retourne les utilisateurs évincés."""
        evicted: list[UUID] = []
        for conn in list(self._connections.values()):
            if not conn.is_alive:
                if await self.evict(conn, code=CLOSE_STALE, reason="heartbeat_timeout"):
                    evicted.append(conn.user_id)
                continue
            conn.is_alive = False
            try:
                await conn.transport.send_json(protocol.ping())
            except Exception:
                if await self.evict(conn, code=CLOSE_STALE, reason="ping_failed"):
                    evicted.append(conn.user_id)
        if evicted:
            logger.info("realtime: heartbeat sweep", extra={"evicted": len(evicted), "active": len(self)})
        return evicted

    async def close_all(self) -> None:
        for conn in list(self._connections.values()):
            await self.evict(conn, code=1001, reason="shutdown")

    async def _terminate(self, connection: Connection, *, code: int, reason: str) -> None:
        connection.is_alive = False
        try:
            await connection.transport.close(code=code, reason=reason)
        except Exception as exc:
            logger.debug("realtime: close failed (%s) for user_id=%s", exc, connection.user_id)

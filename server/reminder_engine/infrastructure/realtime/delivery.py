from __future__ import annotations
"""
server/reminder_engine/infrastructure/realtime/delivery.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Canal de livraison : pousse une notification sur la connexion de l'utilisateur.

deliver(user_id, payload) -> DeliveryOutcome
- pas de connexion enregistrée → UNREACHABLE immédiatement (rien à retenter) ;
- 1ère tentative OK → DELIVERED ;
- échec transport → UNREACHABLE tout de suite + retries planifiés en tâche de
  fond (backoff exponentiel, plafond d'essais), puis éviction de la connexion.
  Un retry qui trouve la connexion remplacée/évincée s'arrête.

Les retries ne bloquent jamais l'appelant (boucle de dispatch) ; ils sont
best-effort (pas de file durable), le rattrapage passe par le rejeu à la reconnexion.
"""

import asyncio
import enum
import logging
from typing import Any, Awaitable, Callable, Optional
from uuid import UUID

from reminder_engine.core.errors import DeliveryError
from reminder_engine.infrastructure.realtime import protocol
from reminder_engine.infrastructure.realtime.registry import Connection, ConnectionRegistry

logger = logging.getLogger(__name__)

OnDelivered = Callable[[], Awaitable[Any]]


class DeliveryOutcome(str, enum.Enum):
    DELIVERED = "delivered"
    UNREACHABLE = "unreachable"


class DeliveryChannel:
    def __init__(
        self,
        registry: ConnectionRegistry,
        *,
        max_attempts: int = 3,
        backoff_base: float = 1.0,
    ):
        self.registry = registry
        self.max_attempts = max(1, int(max_attempts))
        self.backoff_base = max(0.0, float(backoff_base))
        self._retries: set[asyncio.Task] = set()

    @property
    def pending_retries(self) -> int:
        return len(self._retries)

    async def deliver(
        self,
        user_id: UUID,
        payload: dict[str, Any],
        *,
        on_delivered: Optional[OnDelivered] = None,
    ) -> DeliveryOutcome:
        conn = self.registry.get(user_id)
        if conn is None:
            logger.info("delivery: user not connected", extra={"user_id": str(user_id)})
            return DeliveryOutcome.UNREACHABLE

        try:
            await self._push(conn, payload, attempt=1)
        except DeliveryError as exc:
            logger.warning("delivery: push failed (attempt 1/%d): %s", self.max_attempts, exc)
            if self.max_attempts > 1:
                self._schedule_retry(conn, payload, on_delivered)
            else:
                await self.registry.evict(conn, reason="delivery_failed")
            return DeliveryOutcome.UNREACHABLE

        return DeliveryOutcome.DELIVERED

    def backoff(self, attempt: int) -> float:
        """Délai avant la tentative `attempt` (>= 2) : base, 2×base, 4×base…"""
        return self.backoff_base * (2 ** max(attempt - 2, 0))

    async def drain(self) -> None:
        """Attend la fin des retries en cours (arrêt propre, tests)."""
        while self._retries:
            await asyncio.gather(*list(self._retries), return_exceptions=True)

    async def cancel_all(self) -> None:
        for task in list(self._retries):
            task.cancel()
        await asyncio.gather(*list(self._retries), return_exceptions=True)

    # ------------------------------------------------------------------ internals

    async def _push(self, conn: Connection, payload: dict[str, Any], *, attempt: int) -> None:
        envelope = protocol.notification(payload, retry_count=attempt - 1)
        try:
            await conn.transport.send_json(envelope)
        except Exception as exc:
            raise DeliveryError(f"push to user_id={conn.user_id} failed: {exc}") from exc

    def _schedule_retry(
        self, conn: Connection, payload: dict[str, Any], on_delivered: Optional[OnDelivered]
    ) -> None:
        task = asyncio.create_task(self._retry(conn, payload, on_delivered))
        self._retries.add(task)
        task.add_done_callback(self._retries.discard)

    async def _retry(
        self, conn: Connection, payload: dict[str, Any], on_delivered: Optional[OnDelivered]
    ) -> bool:
        for attempt in range(2, self.max_attempts + 1):
            await asyncio.sleep(self.backoff(attempt))
            if not self.registry.is_current(conn):
                logger.info("delivery: connection gone, retry abandoned", extra={"user_id": str(conn.user_id)})
                return False
            try:
                await self._push(conn, payload, attempt=attempt)
            except DeliveryError as exc:
                logger.warning("delivery: push failed (attempt %d/%d): %s", attempt, self.max_attempts, exc)
                continue

            logger.info("delivery: delivered on retry", extra={"user_id": str(conn.user_id), "attempt": attempt})
            if on_delivered is not None:
                try:
                    await on_delivered()
                except Exception:
                    logger.exception("delivery: on_delivered callback failed")
            return True

        await self.registry.evict(conn, reason="delivery_failed")
        return False

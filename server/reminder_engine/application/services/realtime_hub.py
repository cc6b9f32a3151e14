from __future__ import annotations
"""server/reminder_engine/application/services/realtime_hub.py
~~~~~~~~~~~~~~~~~~~~~~~~
Assemblage du process temps réel : registre de connexions, canal de livraison,
boucle de dispatch (60 s) et heartbeat (30 s).

Un seul hub par application FastAPI (`app.state.realtime_hub`).
"""
import logging
from typing import Optional

from fastapi import FastAPI

from reminder_engine.application.services.dispatch_service import DispatchReport, run_dispatch_tick
from reminder_engine.application.services.replay_service import replay_unread
from reminder_engine.core.config import Settings, settings as default_settings
from reminder_engine.infrastructure.realtime.delivery import DeliveryChannel
from reminder_engine.infrastructure.realtime.registry import ConnectionRegistry
from reminder_engine.workers.scheduler.periodic import PeriodicTask

logger = logging.getLogger(__name__)


class RealtimeHub:
    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings
        self.registry = ConnectionRegistry(replay=replay_unread)
        self.channel = DeliveryChannel(
            self.registry,
            max_attempts=self.config.DELIVERY_MAX_ATTEMPTS,
            backoff_base=self.config.DELIVERY_BACKOFF_BASE_SECONDS,
        )
        self._dispatch = PeriodicTask("dispatch", self.config.DISPATCH_INTERVAL_SECONDS, self.dispatch_once)
        self._heartbeat = PeriodicTask("heartbeat", self.config.HEARTBEAT_INTERVAL_SECONDS, self.registry.sweep)

    @property
    def active_connections(self) -> int:
        return len(self.registry)

    async def dispatch_once(self) -> DispatchReport:
        return await run_dispatch_tick(self.channel)

    def start(self) -> None:
        self._dispatch.start()
        self._heartbeat.start()

    async def stop(self) -> None:
        await self._dispatch.stop()
        await self._heartbeat.stop()
        await self.channel.cancel_all()
        await self.registry.close_all()
        logger.info("realtime hub stopped")


def get_realtime_hub(app: FastAPI) -> RealtimeHub:
    """Hub de l'application, créé à la demande si le startup ne l'a pas fait."""
    hub = getattr(app.state, "realtime_hub", None)
    if hub is None:
        hub = RealtimeHub()
        app.state.realtime_hub = hub
    return hub

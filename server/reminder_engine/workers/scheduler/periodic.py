from __future__ import annotations
"""server/reminder_engine/workers/scheduler/periodic.py
~~~~~~~~~~~~~~~~~~~~~~~~
Tâches périodiques asyncio (dans le process API) : dispatch et heartbeat.

Chaque tick est lancé dans sa propre tâche : un tick lent ne retarde pas le
suivant (les ticks peuvent se chevaucher). Une exception dans un tick est
journalisée, la boucle continue.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    def __init__(self, name: str, interval: float, fn: Callable[[], Awaitable[Any]]):
        self.name = name
        self.interval = max(0.01, float(interval))
        self._fn = fn
        self._runner: Optional[asyncio.Task] = None
        self._inflight: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    def start(self) -> None:
        if self.running:
            return
        self._runner = asyncio.create_task(self._loop(), name=f"periodic:{self.name}")
        logger.info("periodic: %s started (every %.1fs)", self.name, self.interval)

    async def stop(self) -> None:
        if self._runner is not None:
            self._runner.cancel()
            await asyncio.gather(self._runner, return_exceptions=True)
            self._runner = None
        for task in list(self._inflight):
            task.cancel()
        await asyncio.gather(*list(self._inflight), return_exceptions=True)
        logger.info("periodic: %s stopped", self.name)

    async def _loop(self) -> None:
        while True:
            task = asyncio.create_task(self._tick())
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            await asyncio.sleep(self.interval)

    async def _tick(self) -> None:
        try:
            await self._fn()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("periodic: %s tick failed", self.name)

"""Periodic eviction of inactive agents."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from ota_server.fleet.registry import FleetRegistry
from ota_server.metrics.collector import metrics

logger = logging.getLogger(__name__)


class EvictionSweeper:
    """Runs ``FleetRegistry.evict_stale`` on a fixed interval."""

    def __init__(
        self,
        registry: FleetRegistry,
        interval_seconds: float,
        window: timedelta,
    ) -> None:
        self.registry = registry
        self.interval = interval_seconds
        self.window = window
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            logger.warning("Eviction sweeper is already running")
            return
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "Eviction sweeper started (interval=%ss, window=%ss)",
            self.interval,
            int(self.window.total_seconds()),
        )

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Eviction sweeper stopped")

    def sweep_once(self) -> int:
        try:
            evicted = self.registry.evict_stale(window=self.window)
        except Exception:
            logger.exception("Eviction sweep failed")
            return 0
        if evicted:
            metrics.agents_evicted.inc(evicted)
        remaining = self.registry.total_agents()
        metrics.agents_tracked.set(remaining)
        logger.debug("Eviction sweep done: %d evicted, %d tracked", evicted, remaining)
        return evicted

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.sweep_once()

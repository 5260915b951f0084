"""Trigger entry point and background execution of reconciliation passes."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Callable
from typing import Any

from sensorsync._constants import (
    DEFAULT_CHARGING_SETTLE_DELAY,
    DEFAULT_LOCATION_INTERVAL,
    DEFAULT_MAX_CONCURRENT_PASSES,
    DEFAULT_UPDATE_INTERVAL,
)
from sensorsync.config import SensorSyncConfig
from sensorsync.engine import PassResult, ReconciliationEngine
from sensorsync.gate import GateDecision, TriggerCategory, TriggerGate
from sensorsync.models.device import DeviceContext

_logger = logging.getLogger(__name__)

ContextFactory = Callable[[], DeviceContext]

_RESULT_HISTORY = 50


class SensorReporter:
    """Accept triggers and run reconciliation passes in the background.

    The gate is evaluated inline, so a skipped trigger never schedules
    work.  Accepted passes run as tasks limited by a semaphore of
    ``max_concurrent_passes``; passes over different sensors interleave
    freely and the store's per-id locks keep shared records consistent.

    Usage::

        reporter = SensorReporter(engine, max_concurrent_passes=2)
        await reporter.trigger(TriggerCategory.POWER_CONNECTED, context)
        ...
        await reporter.drain()
    """

    def __init__(
        self,
        engine: ReconciliationEngine,
        *,
        gate: TriggerGate | None = None,
        max_concurrent_passes: int = DEFAULT_MAX_CONCURRENT_PASSES,
        charging_settle_delay: float = DEFAULT_CHARGING_SETTLE_DELAY,
        update_interval: float = DEFAULT_UPDATE_INTERVAL,
        location_interval: float = DEFAULT_LOCATION_INTERVAL,
    ) -> None:
        self._engine = engine
        self._gate = gate or TriggerGate(engine.store, charging_settle_delay=charging_settle_delay)
        self._semaphore = asyncio.Semaphore(max_concurrent_passes)
        self._update_interval = update_interval
        self._location_interval = location_interval
        self._tasks: set[asyncio.Task[Any]] = set()
        self._results: deque[PassResult] = deque(maxlen=_RESULT_HISTORY)

    @classmethod
    def from_config(cls, engine: ReconciliationEngine, config: SensorSyncConfig) -> SensorReporter:
        return cls(
            engine,
            max_concurrent_passes=config.max_concurrent_passes,
            charging_settle_delay=config.charging_settle_delay,
            update_interval=config.update_interval,
            location_interval=config.location_interval,
        )

    @property
    def pending(self) -> int:
        """Number of background tasks not finished yet."""
        return sum(1 for task in self._tasks if not task.done())

    @property
    def results(self) -> list[PassResult]:
        """Results of the most recent completed passes, oldest first."""
        return list(self._results)

    # ------------------------------------------------------------------
    # Trigger entry points
    # ------------------------------------------------------------------

    async def trigger(self, category: TriggerCategory, context: DeviceContext) -> GateDecision:
        """Gate *category* and, if it proceeds, schedule its pass(es).

        Returns as soon as the work is scheduled.
        """
        decision = await self._gate.evaluate(category)
        if not decision.proceed:
            return decision
        self._spawn(self._run_triggered(decision, context), name=f"sensorsync-{category}")
        return decision

    async def handle_action(self, action: str, context: DeviceContext) -> GateDecision | None:
        """Trigger from a raw platform broadcast action; unknown actions are ignored."""
        category = TriggerCategory.from_action(action)
        if category is None:
            _logger.debug("Ignoring unknown broadcast action %s", action)
            return None
        return await self.trigger(category, context)

    async def refresh_location(self, context: DeviceContext) -> bool:
        """Refresh the location provider only; returns ``False`` if it failed or is absent."""
        provider = self._engine.registry.location_provider
        if provider is None:
            _logger.debug("No location provider configured")
            return False
        async with self._semaphore:
            return await self._engine.refresh_provider(provider, context)

    # ------------------------------------------------------------------
    # Periodic loops
    # ------------------------------------------------------------------

    async def run_periodic(self, context_factory: ContextFactory) -> None:
        """Fire a periodic tick every ``update_interval`` seconds until cancelled."""
        while True:
            await self.trigger(TriggerCategory.PERIODIC_TICK, context_factory())
            await asyncio.sleep(self._update_interval)

    async def run_location_loop(self, context_factory: ContextFactory) -> None:
        """Refresh the location provider every ``location_interval`` seconds until cancelled."""
        while True:
            _logger.debug("Updating location sensor")
            await self.refresh_location(context_factory())
            await asyncio.sleep(self._location_interval)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def drain(self) -> None:
        """Wait until every scheduled pass, including delayed ones, has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel outstanding passes and wait for them to unwind."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        # Failures are already logged by _task_done.
        await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _spawn(self, coro: Any, *, name: str) -> None:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("Background sensor task %s failed", task.get_name(), exc_info=exc)

    async def _run_triggered(self, decision: GateDecision, context: DeviceContext) -> None:
        await self._run_pass(decision.category, context)
        if decision.refresh_location:
            await self.refresh_location(context)
        if decision.settle_delay is not None:
            # The charger state is only reliable a few seconds after the event.
            await asyncio.sleep(decision.settle_delay)
            await self._run_pass(decision.category, context)

    async def _run_pass(self, category: TriggerCategory, context: DeviceContext) -> PassResult:
        async with self._semaphore:
            _logger.debug("Running sensor pass for %s", category)
            result = await self._engine.run_pass(context)
        self._results.append(result)
        return result

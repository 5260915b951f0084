"""Overlapping reconciliation passes sharing one store."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import pytest
from fakes import FakeIntegration, StaticProvider, record, store_with

from sensorsync.engine import ReconciliationEngine
from sensorsync.models.device import DeviceContext
from sensorsync.models.registration import SensorRegistration
from sensorsync.providers.registry import ProviderRegistry


class BlockingIntegration(FakeIntegration):
    """The first batch push waits for ``release`` and then fails."""

    def __init__(self) -> None:
        super().__init__()
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def update_sensors(self, batch: Sequence[SensorRegistration]) -> bool:
        self.update_calls.append(list(batch))
        if len(self.update_calls) == 1:
            self.entered.set()
            await self.release.wait()
            return False
        return True


@pytest.mark.asyncio
async def test_overlapping_passes_register_each_sensor_once() -> None:
    store = store_with(record("a"), record("b"), record("c"))
    integration = FakeIntegration(register_delay=0.01)
    engine = ReconciliationEngine(ProviderRegistry([StaticProvider("p", ["a", "b", "c"])]), store, integration)

    results = await asyncio.gather(*(engine.run_pass(DeviceContext()) for _ in range(4)))

    assert sorted(integration.registered_ids) == ["a", "b", "c"]
    assert sorted(sensor_id for result in results for sensor_id in result.registered) == ["a", "b", "c"]
    for result in results:
        assert result.batch == ["a", "b", "c"]
    for sensor_id in ("a", "b", "c"):
        stored = await store.get(sensor_id)
        assert stored is not None and stored.registered


@pytest.mark.asyncio
async def test_stale_invalidation_keeps_newer_registration() -> None:
    store = store_with(record("x", registered=True), record("y", registered=True))
    integration = BlockingIntegration()
    engine = ReconciliationEngine(ProviderRegistry([StaticProvider("p", ["x", "y"])]), store, integration)

    first = asyncio.create_task(engine.run_pass(DeviceContext()))
    await integration.entered.wait()

    # While the first push is in flight, x loses and regains its registration.
    async with store.lock("x"):
        stale = await store.get("x")
        assert stale is not None
        await store.update(stale.model_copy(update={"registered": False}))
    second = await engine.run_pass(DeviceContext())

    assert second.registered == ["x"]
    assert second.pushed is True

    integration.release.set()
    first_result = await first

    assert first_result.pushed is False
    assert first_result.invalidated == ["y"]
    x = await store.get("x")
    assert x is not None and x.registered
    y = await store.get("y")
    assert y is not None and not y.registered


@pytest.mark.asyncio
async def test_provider_write_and_pass_do_not_lose_flags() -> None:
    store = store_with(record("steps", registered=True, state="0"))
    integration = FakeIntegration()
    provider = StaticProvider("p", ["steps"], readings={"steps": "42"})
    engine = ReconciliationEngine(ProviderRegistry([provider]), store, integration)

    await asyncio.gather(engine.run_pass(DeviceContext()), engine.run_pass(DeviceContext()))

    stored = await store.get("steps")
    assert stored is not None
    assert stored.enabled and stored.registered
    assert stored.state == "42"
    assert integration.register_calls == []

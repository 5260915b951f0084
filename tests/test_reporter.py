from __future__ import annotations

import asyncio

import pytest
from fakes import FakeIntegration, StaticProvider, record, store_with

from sensorsync._constants import BATTERY_LEVEL, WIFI_CONNECTION
from sensorsync.config import SensorSyncConfig
from sensorsync.engine import PassResult, ReconciliationEngine
from sensorsync.gate import GATING_SENSORS, TriggerCategory
from sensorsync.models.device import DeviceContext
from sensorsync.providers.registry import ProviderRegistry
from sensorsync.reporter import SensorReporter
from sensorsync.state.store import MemorySensorStore


def _reporter(
    store: MemorySensorStore,
    provider: StaticProvider,
    *,
    location: StaticProvider | None = None,
    **kwargs: float,
) -> SensorReporter:
    registry = ProviderRegistry([provider], location_provider=location)
    engine = ReconciliationEngine(registry, store, FakeIntegration())
    return SensorReporter(engine, **kwargs)  # type: ignore[arg-type]


async def _wait_for_results(reporter: SensorReporter, count: int) -> None:
    async def _poll() -> None:
        while len(reporter.results) < count:
            await asyncio.sleep(0.001)

    await asyncio.wait_for(_poll(), timeout=2)


@pytest.mark.asyncio
async def test_skipped_trigger_schedules_nothing() -> None:
    provider = StaticProvider("wifi", [WIFI_CONNECTION])
    reporter = _reporter(store_with(record(WIFI_CONNECTION, enabled=False)), provider)

    decision = await reporter.trigger(TriggerCategory.WIFI_STATE, DeviceContext())

    assert not decision.proceed
    assert reporter.pending == 0
    await reporter.drain()
    assert provider.calls == 0
    assert reporter.results == []


@pytest.mark.asyncio
async def test_charging_trigger_runs_a_second_pass_after_settle_delay() -> None:
    provider = StaticProvider("battery", [BATTERY_LEVEL])
    reporter = _reporter(store_with(record(BATTERY_LEVEL)), provider, charging_settle_delay=0.01)

    decision = await reporter.trigger(TriggerCategory.POWER_CONNECTED, DeviceContext())
    assert decision.settle_delay == 0.01
    await reporter.drain()

    assert provider.calls == 2
    assert len(reporter.results) == 2
    assert reporter.pending == 0


@pytest.mark.asyncio
async def test_non_charging_trigger_runs_a_single_pass() -> None:
    provider = StaticProvider("wifi", [WIFI_CONNECTION])
    reporter = _reporter(store_with(record(WIFI_CONNECTION)), provider)

    await reporter.trigger(TriggerCategory.WIFI_STATE, DeviceContext())
    await reporter.drain()

    assert provider.calls == 1


@pytest.mark.asyncio
async def test_boot_refreshes_location_after_the_pass() -> None:
    provider = StaticProvider("battery", [BATTERY_LEVEL])
    location = StaticProvider("location", ["location"])
    reporter = _reporter(store_with(), provider, location=location)

    decision = await reporter.trigger(TriggerCategory.BOOT_COMPLETED, DeviceContext())
    await reporter.drain()

    assert decision.refresh_location
    assert provider.calls == 1
    assert location.calls == 1


@pytest.mark.asyncio
async def test_periodic_pass_does_not_touch_location_provider() -> None:
    location = StaticProvider("location", ["location"])
    reporter = _reporter(store_with(), StaticProvider("p", ["a"]), location=location)

    await reporter.trigger(TriggerCategory.PERIODIC_TICK, DeviceContext())
    await reporter.drain()

    assert location.calls == 0


@pytest.mark.asyncio
async def test_refresh_location_reports_failure() -> None:
    broken = StaticProvider("location", ["location"], fail=True)

    without = _reporter(store_with(), StaticProvider("p", ["a"]))
    failing = _reporter(store_with(), StaticProvider("p", ["a"]), location=broken)

    assert await without.refresh_location(DeviceContext()) is False
    assert await failing.refresh_location(DeviceContext()) is False
    assert broken.calls == 1


@pytest.mark.asyncio
async def test_handle_action_maps_known_actions_and_ignores_others() -> None:
    provider = StaticProvider("battery", [BATTERY_LEVEL])
    reporter = _reporter(store_with(record(BATTERY_LEVEL)), provider, charging_settle_delay=0)

    assert await reporter.handle_action("com.example.UNKNOWN", DeviceContext()) is None
    assert reporter.pending == 0

    decision = await reporter.handle_action("android.intent.action.BATTERY_LOW", DeviceContext())
    await reporter.drain()

    assert decision is not None
    assert decision.category is TriggerCategory.BATTERY_LOW
    assert provider.calls == 2


@pytest.mark.asyncio
async def test_concurrent_passes_are_bounded() -> None:
    provider = StaticProvider("p", ["a"])
    reporter = _reporter(store_with(record("a")), provider, max_concurrent_passes=1)

    for _ in range(5):
        await reporter.trigger(TriggerCategory.PERIODIC_TICK, DeviceContext())
    await reporter.drain()

    assert provider.calls == 5
    assert provider.max_active == 1
    assert len(reporter.results) == 5


@pytest.mark.asyncio
async def test_close_cancels_pending_settle_pass() -> None:
    provider = StaticProvider("battery", [BATTERY_LEVEL])
    reporter = _reporter(store_with(record(BATTERY_LEVEL)), provider, charging_settle_delay=30)

    await reporter.trigger(TriggerCategory.POWER_DISCONNECTED, DeviceContext())
    await _wait_for_results(reporter, 1)
    await reporter.close()

    assert provider.calls == 1
    assert reporter.pending == 0


@pytest.mark.asyncio
async def test_run_periodic_fires_ticks_until_cancelled() -> None:
    provider = StaticProvider("p", ["a"])
    reporter = _reporter(store_with(record("a")), provider, update_interval=0.001)

    loop_task = asyncio.create_task(reporter.run_periodic(DeviceContext))
    try:
        await _wait_for_results(reporter, 3)
    finally:
        loop_task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await loop_task
        await reporter.close()

    assert provider.calls >= 3


def test_from_config_uses_config_tuning() -> None:
    config = SensorSyncConfig(
        base_url="http://ha.local:8123",
        webhook_id="abc",
        charging_settle_delay=1.5,
        max_concurrent_passes=3,
    )
    engine = ReconciliationEngine(ProviderRegistry([]), MemorySensorStore(), FakeIntegration())

    reporter = SensorReporter.from_config(engine, config)

    assert reporter._gate._charging_settle_delay == 1.5
    assert reporter._semaphore._value == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("category", [c for c in TriggerCategory if GATING_SENSORS[c] is not None])
@pytest.mark.parametrize("owner", ["disabled", "absent"])
async def test_gated_trigger_never_wakes_providers(category: TriggerCategory, owner: str) -> None:
    sensor_id = GATING_SENSORS[category]
    assert sensor_id is not None
    records = [record(sensor_id, enabled=False)] if owner == "disabled" else []
    provider = StaticProvider("all", [sensor_id])
    reporter = _reporter(store_with(*records), provider)

    decision = await reporter.trigger(category, DeviceContext())
    await reporter.drain()

    assert not decision.proceed
    assert provider.calls == 0
    assert reporter.results == []


class _CleanupFailsEngine(ReconciliationEngine):
    """Pass that blocks until cancelled, then fails while unwinding."""

    def __init__(self) -> None:
        super().__init__(ProviderRegistry([]), MemorySensorStore(), FakeIntegration())
        self.started = asyncio.Event()

    async def run_pass(self, context: DeviceContext) -> PassResult:
        self.started.set()
        try:
            await asyncio.sleep(30)
        except asyncio.CancelledError:
            raise RuntimeError("cleanup failed") from None
        return PassResult()


@pytest.mark.asyncio
async def test_close_does_not_raise_for_failed_tasks() -> None:
    engine = _CleanupFailsEngine()
    reporter = SensorReporter(engine)

    await reporter.trigger(TriggerCategory.PERIODIC_TICK, DeviceContext())
    await asyncio.wait_for(engine.started.wait(), timeout=2)
    await reporter.close()

    assert reporter.pending == 0

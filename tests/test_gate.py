from __future__ import annotations

import pytest
from fakes import record, store_with

from sensorsync._constants import BATTERY_LEVEL, INTERACTIVE_DEVICE, WIFI_CONNECTION
from sensorsync.gate import CHARGING_CATEGORIES, GATING_SENSORS, TriggerCategory, TriggerGate


def test_every_category_has_a_gating_entry() -> None:
    assert set(GATING_SENSORS) == set(TriggerCategory)


def test_charging_categories_are_gated_by_battery_level() -> None:
    assert {GATING_SENSORS[c] for c in CHARGING_CATEGORIES} == {BATTERY_LEVEL}
    assert TriggerCategory.POWER_CONNECTED.is_charging
    assert not TriggerCategory.WIFI_STATE.is_charging


@pytest.mark.parametrize(
    ("action", "expected"),
    [
        ("android.intent.action.ACTION_POWER_CONNECTED", TriggerCategory.POWER_CONNECTED),
        ("android.intent.action.SCREEN_OFF", TriggerCategory.SCREEN_STATE),
        ("android.intent.action.QUICKBOOT_POWERON", TriggerCategory.BOOT_COMPLETED),
        ("io.homeassistant.companion.android.background.REQUEST_SENSORS_UPDATE", TriggerCategory.PERIODIC_TICK),
        ("android.intent.action.AIRPLANE_MODE", None),
        ("", None),
    ],
)
def test_from_action(action: str, expected: TriggerCategory | None) -> None:
    assert TriggerCategory.from_action(action) is expected


@pytest.mark.asyncio
async def test_skips_when_gating_sensor_disabled() -> None:
    gate = TriggerGate(store_with(record(WIFI_CONNECTION, enabled=False)))

    decision = await gate.evaluate(TriggerCategory.WIFI_STATE)

    assert not decision.proceed
    assert decision.reason == f"{WIFI_CONNECTION} disabled"


@pytest.mark.asyncio
async def test_skips_when_gating_sensor_has_no_record() -> None:
    gate = TriggerGate(store_with())

    decision = await gate.evaluate(TriggerCategory.SCREEN_STATE)

    assert not decision.proceed
    assert INTERACTIVE_DEVICE in decision.reason


@pytest.mark.asyncio
async def test_proceeds_when_gating_sensor_enabled() -> None:
    gate = TriggerGate(store_with(record(WIFI_CONNECTION)))

    decision = await gate.evaluate(TriggerCategory.WIFI_STATE)

    assert decision.proceed
    assert decision.settle_delay is None
    assert not decision.refresh_location


@pytest.mark.asyncio
@pytest.mark.parametrize("category", [TriggerCategory.PERIODIC_TICK, TriggerCategory.BOOT_COMPLETED])
async def test_ungated_categories_always_proceed(category: TriggerCategory) -> None:
    gate = TriggerGate(store_with())

    decision = await gate.evaluate(category)

    assert decision.proceed
    assert decision.refresh_location is (category is TriggerCategory.BOOT_COMPLETED)


@pytest.mark.asyncio
@pytest.mark.parametrize("category", sorted(CHARGING_CATEGORIES))
async def test_charging_triggers_request_settle_pass(category: TriggerCategory) -> None:
    gate = TriggerGate(store_with(record(BATTERY_LEVEL)), charging_settle_delay=2.5)

    decision = await gate.evaluate(category)

    assert decision.proceed
    assert decision.settle_delay == 2.5


@pytest.mark.asyncio
async def test_charging_trigger_skipped_without_battery_sensor() -> None:
    gate = TriggerGate(store_with(record(BATTERY_LEVEL, enabled=False)))

    decision = await gate.evaluate(TriggerCategory.POWER_DISCONNECTED)

    assert not decision.proceed
    assert decision.settle_delay is None


_GATED = [c for c in TriggerCategory if GATING_SENSORS[c] is not None]


@pytest.mark.asyncio
@pytest.mark.parametrize("category", _GATED)
async def test_every_device_state_category_skips_when_owner_disabled_or_absent(category: TriggerCategory) -> None:
    owner = GATING_SENSORS[category]
    assert owner is not None

    disabled = await TriggerGate(store_with(record(owner, enabled=False))).evaluate(category)
    absent = await TriggerGate(store_with()).evaluate(category)
    enabled = await TriggerGate(store_with(record(owner))).evaluate(category)

    assert not disabled.proceed
    assert not absent.proceed
    assert enabled.proceed

"""Trigger categories and the pre-pass gate.

A device-state broadcast only justifies waking providers and the network
if the sensor it concerns is enabled.  The gate answers that question
before any work is scheduled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from sensorsync._constants import (
    AUDIO_SENSOR,
    BATTERY_LEVEL,
    BLUETOOTH_CONNECTION,
    DEFAULT_CHARGING_SETTLE_DELAY,
    DND_SENSOR,
    DOZE_MODE,
    INTERACTIVE_DEVICE,
    NEXT_ALARM,
    PHONE_STATE,
    POWER_SAVE,
    WIFI_CONNECTION,
)
from sensorsync.state.store import SensorStore

_logger = logging.getLogger(__name__)


class TriggerCategory(StrEnum):
    PERIODIC_TICK = "periodic_tick"
    BOOT_COMPLETED = "boot_completed"
    ALARM_CHANGED = "alarm_changed"
    BLUETOOTH_STATE = "bluetooth_state"
    BATTERY_LOW = "battery_low"
    BATTERY_OKAY = "battery_okay"
    POWER_CONNECTED = "power_connected"
    POWER_DISCONNECTED = "power_disconnected"
    WIFI_STATE = "wifi_state"
    SCREEN_STATE = "screen_state"
    DOZE_STATE = "doze_state"
    POWER_SAVE_STATE = "power_save_state"
    PHONE_STATE = "phone_state"
    AUDIO_STATE = "audio_state"
    DND_STATE = "dnd_state"

    @classmethod
    def from_action(cls, action: str) -> TriggerCategory | None:
        """Map a platform broadcast action string to its category.

        Returns ``None`` for actions outside the known set.
        """
        return _ACTIONS.get(action)

    @property
    def is_charging(self) -> bool:
        return self in CHARGING_CATEGORIES


CHARGING_CATEGORIES: frozenset[TriggerCategory] = frozenset(
    {
        TriggerCategory.BATTERY_LOW,
        TriggerCategory.BATTERY_OKAY,
        TriggerCategory.POWER_CONNECTED,
        TriggerCategory.POWER_DISCONNECTED,
    }
)

#: Sensor whose ``enabled`` flag gates each category; ``None`` never gates.
GATING_SENSORS: dict[TriggerCategory, str | None] = {
    TriggerCategory.PERIODIC_TICK: None,
    TriggerCategory.BOOT_COMPLETED: None,
    TriggerCategory.ALARM_CHANGED: NEXT_ALARM,
    TriggerCategory.BLUETOOTH_STATE: BLUETOOTH_CONNECTION,
    TriggerCategory.BATTERY_LOW: BATTERY_LEVEL,
    TriggerCategory.BATTERY_OKAY: BATTERY_LEVEL,
    TriggerCategory.POWER_CONNECTED: BATTERY_LEVEL,
    TriggerCategory.POWER_DISCONNECTED: BATTERY_LEVEL,
    TriggerCategory.WIFI_STATE: WIFI_CONNECTION,
    TriggerCategory.SCREEN_STATE: INTERACTIVE_DEVICE,
    TriggerCategory.DOZE_STATE: DOZE_MODE,
    TriggerCategory.POWER_SAVE_STATE: POWER_SAVE,
    TriggerCategory.PHONE_STATE: PHONE_STATE,
    TriggerCategory.AUDIO_STATE: AUDIO_SENSOR,
    TriggerCategory.DND_STATE: DND_SENSOR,
}

# Android broadcast actions delivered to the original receiver.
_ACTIONS: dict[str, TriggerCategory] = {
    "io.homeassistant.companion.android.background.REQUEST_SENSORS_UPDATE": TriggerCategory.PERIODIC_TICK,
    "android.intent.action.BOOT_COMPLETED": TriggerCategory.BOOT_COMPLETED,
    "android.intent.action.QUICKBOOT_POWERON": TriggerCategory.BOOT_COMPLETED,
    "com.htc.intent.action.QUICKBOOT_POWERON": TriggerCategory.BOOT_COMPLETED,
    "android.app.action.NEXT_ALARM_CLOCK_CHANGED": TriggerCategory.ALARM_CHANGED,
    "android.bluetooth.device.action.ACL_CONNECTED": TriggerCategory.BLUETOOTH_STATE,
    "android.bluetooth.device.action.ACL_DISCONNECTED": TriggerCategory.BLUETOOTH_STATE,
    "android.bluetooth.adapter.action.STATE_CHANGED": TriggerCategory.BLUETOOTH_STATE,
    "android.intent.action.BATTERY_LOW": TriggerCategory.BATTERY_LOW,
    "android.intent.action.BATTERY_OKAY": TriggerCategory.BATTERY_OKAY,
    "android.intent.action.ACTION_POWER_CONNECTED": TriggerCategory.POWER_CONNECTED,
    "android.intent.action.ACTION_POWER_DISCONNECTED": TriggerCategory.POWER_DISCONNECTED,
    "android.net.wifi.STATE_CHANGE": TriggerCategory.WIFI_STATE,
    "android.intent.action.SCREEN_OFF": TriggerCategory.SCREEN_STATE,
    "android.intent.action.SCREEN_ON": TriggerCategory.SCREEN_STATE,
    "android.os.action.DEVICE_IDLE_MODE_CHANGED": TriggerCategory.DOZE_STATE,
    "android.os.action.POWER_SAVE_MODE_CHANGED": TriggerCategory.POWER_SAVE_STATE,
    "android.intent.action.PHONE_STATE": TriggerCategory.PHONE_STATE,
    "android.media.AUDIO_BECOMING_NOISY": TriggerCategory.AUDIO_STATE,
    "android.intent.action.HEADSET_PLUG": TriggerCategory.AUDIO_STATE,
    "android.media.RINGER_MODE_CHANGED": TriggerCategory.AUDIO_STATE,
    "android.media.action.MICROPHONE_MUTE_CHANGED": TriggerCategory.AUDIO_STATE,
    "android.media.action.SPEAKERPHONE_STATE_CHANGED": TriggerCategory.AUDIO_STATE,
    "android.app.action.INTERRUPTION_FILTER_CHANGED": TriggerCategory.DND_STATE,
}


@dataclass(frozen=True, slots=True)
class GateDecision:
    """Outcome of :meth:`TriggerGate.evaluate`.

    ``settle_delay`` is set for charging triggers: a second pass runs that
    many seconds after the first one completes.  ``refresh_location`` asks
    for an immediate location-only refresh.
    """

    category: TriggerCategory
    proceed: bool
    settle_delay: float | None = None
    refresh_location: bool = False
    reason: str = ""


class TriggerGate:
    """Decide whether a trigger warrants a reconciliation pass."""

    def __init__(
        self,
        store: SensorStore,
        *,
        charging_settle_delay: float = DEFAULT_CHARGING_SETTLE_DELAY,
    ) -> None:
        self._store = store
        self._charging_settle_delay = charging_settle_delay

    async def evaluate(self, category: TriggerCategory) -> GateDecision:
        sensor_id = GATING_SENSORS[category]
        if sensor_id is not None:
            record = await self._store.get(sensor_id)
            if record is None or not record.enabled:
                _logger.debug("Sensor %s disabled, skipping %s update", sensor_id, category)
                return GateDecision(category=category, proceed=False, reason=f"{sensor_id} disabled")

        return GateDecision(
            category=category,
            proceed=True,
            settle_delay=self._charging_settle_delay if category.is_charging else None,
            refresh_location=category is TriggerCategory.BOOT_COMPLETED,
        )

"""Reference providers backed by psutil.

These read what a Linux single-board computer or laptop can report
without extra hardware: battery, internal storage and the last boot.
psutil calls block, so they run in a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

import psutil

from sensorsync._constants import (
    BATTERY_LEVEL,
    BATTERY_STATE,
    LAST_REBOOT,
    SENSOR_TYPE_SENSOR,
    STORAGE_SENSOR,
)
from sensorsync.exceptions import SensorProviderError
from sensorsync.models.device import DeviceContext
from sensorsync.models.sensor import SensorDescriptor
from sensorsync.providers.base import SensorProvider
from sensorsync.state.store import SensorStore

_logger = logging.getLogger(__name__)

_GB = 1024**3


def battery_icon(percent: float, *, charging: bool) -> str:
    """Material Design icon for a battery level, in 10% steps."""
    step = int(round(percent / 10.0)) * 10
    if charging:
        if step >= 100:
            return "mdi:battery-charging"
        return f"mdi:battery-charging-{max(step, 10)}"
    if step >= 100:
        return "mdi:battery"
    if step <= 0:
        return "mdi:battery-outline"
    return f"mdi:battery-{step}"


def charging_state(percent: float, plugged: bool | None) -> str:
    if plugged is None:
        return "unknown"
    if plugged:
        return "full" if percent >= 100 else "charging"
    return "discharging"


class BatterySensorProvider(SensorProvider):
    """Battery level and charging state."""

    name = "battery_sensors"
    battery_level = SensorDescriptor(id=BATTERY_LEVEL, name="Battery Level")
    battery_state = SensorDescriptor(id=BATTERY_STATE, name="Battery State")
    available_sensors = (battery_level, battery_state)

    async def request_update(self, context: DeviceContext, store: SensorStore) -> None:
        battery = await asyncio.to_thread(psutil.sensors_battery)
        if battery is None:
            _logger.debug("No battery reported by the system, skipping battery sensors")
            return

        percent = round(float(battery.percent))
        plugged = battery.power_plugged
        state = charging_state(percent, plugged)

        await self.on_sensor_updated(
            store,
            self.battery_level,
            context,
            percent,
            type=SENSOR_TYPE_SENSOR,
            icon=battery_icon(percent, charging=state == "charging"),
            unit_of_measurement="%",
            device_class="battery",
        )

        attributes: dict[str, Any] = {"is_charging": state == "charging"}
        if battery.secsleft not in (psutil.POWER_TIME_UNKNOWN, psutil.POWER_TIME_UNLIMITED):
            attributes["seconds_left"] = int(battery.secsleft)
        await self.on_sensor_updated(
            store,
            self.battery_state,
            context,
            state,
            type=SENSOR_TYPE_SENSOR,
            icon="mdi:battery-charging" if state == "charging" else "mdi:battery",
            attributes=attributes,
        )


class StorageSensorProvider(SensorProvider):
    """Free space of the internal storage.

    The mount point defaults to ``/`` and can be overridden through
    ``DeviceContext.extras["storage_path"]``.
    """

    name = "storage_sensors"
    storage = SensorDescriptor(id=STORAGE_SENSOR, name="Internal Storage")
    available_sensors = (storage,)

    async def request_update(self, context: DeviceContext, store: SensorStore) -> None:
        path = str(context.extras.get("storage_path", "/"))
        try:
            usage = await asyncio.to_thread(psutil.disk_usage, path)
        except OSError as exc:
            raise SensorProviderError(f"Cannot read storage usage of {path}: {exc}", provider=self.name) from exc

        free_percent = round(usage.free / usage.total * 100) if usage.total else 0
        await self.on_sensor_updated(
            store,
            self.storage,
            context,
            free_percent,
            type=SENSOR_TYPE_SENSOR,
            icon="mdi:harddisk",
            unit_of_measurement="%",
            attributes={
                "free_internal_storage": f"{usage.free / _GB:.2f} GB",
                "total_internal_storage": f"{usage.total / _GB:.2f} GB",
            },
        )


class LastRebootSensorProvider(SensorProvider):
    """Timestamp of the last boot."""

    name = "last_reboot_sensors"
    last_reboot = SensorDescriptor(id=LAST_REBOOT, name="Last Reboot")
    available_sensors = (last_reboot,)

    async def request_update(self, context: DeviceContext, store: SensorStore) -> None:
        boot_ts = await asyncio.to_thread(psutil.boot_time)
        booted_at = datetime.fromtimestamp(boot_ts, tz=UTC)
        await self.on_sensor_updated(
            store,
            self.last_reboot,
            context,
            booted_at.isoformat(timespec="seconds"),
            type=SENSOR_TYPE_SENSOR,
            icon="mdi:restart",
            device_class="timestamp",
            attributes={
                "local_time": booted_at.astimezone().strftime("%Y-%m-%d %H:%M:%S %Z"),
                "time_in_milliseconds": int(boot_ts * 1000),
            },
        )

"""User-facing sensor settings: enabling sensors and inspecting their state."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sensorsync.models.device import DeviceContext
from sensorsync.models.sensor import SensorRecord
from sensorsync.providers.base import SensorProvider
from sensorsync.state.store import SensorStore

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SensorDetail:
    """Read-only view of one sensor for a settings screen.

    Attributes:
        sensor_id:    Sensor id.
        enabled:      Stored enabled flag.
        registered:   Whether the endpoint has accepted the sensor.
        summary:      ``"Disabled"``, the state, or ``"<state> <unit>"``.
        device_class: Optional device class.
        icon:         Optional icon.
        attributes:   Attribute name to stored string value, in order.
    """

    sensor_id: str
    enabled: bool
    registered: bool
    summary: str
    device_class: str | None = None
    icon: str | None = None
    attributes: dict[str, str] = field(default_factory=dict)


def state_summary(record: SensorRecord) -> str:
    if not record.enabled:
        return "Disabled"
    if not record.unit_of_measurement:
        return record.state
    return f"{record.state} {record.unit_of_measurement}"


class SensorSettings:
    """Enable or disable sensors, honouring their required permissions.

    Disabling a sensor leaves ``registered`` untouched: re-enabling it
    resumes batching without a new registration.
    """

    def __init__(self, store: SensorStore) -> None:
        self._store = store

    async def is_enabled(self, provider: SensorProvider, sensor_id: str, context: DeviceContext) -> bool:
        """Effective switch position: stored flag and granted permissions."""
        permitted = provider.check_permission(context, sensor_id)
        record = await self._store.get(sensor_id)
        if record is None:
            return permitted
        return record.enabled and permitted

    async def set_enabled(
        self,
        provider: SensorProvider,
        sensor_id: str,
        enabled: bool,
        context: DeviceContext,
    ) -> bool:
        """Persist the enabled flag of *sensor_id*.

        Enabling is refused (``False``) while the sensor's permissions are
        missing; the caller should request them and retry.  A sensor that
        has no record yet is left alone until its provider first reports it.
        """
        if enabled and not provider.check_permission(context, sensor_id):
            missing = sorted(provider.required_permissions(sensor_id) - context.granted_permissions)
            _logger.info("Cannot enable %s, missing permissions: %s", sensor_id, ", ".join(missing))
            return False

        async with self._store.lock(sensor_id):
            record = await self._store.get(sensor_id)
            if record is None:
                _logger.debug("No record for %s yet, nothing to update", sensor_id)
                return True
            if record.enabled != enabled:
                await self._store.update(record.model_copy(update={"enabled": enabled}))
        return True

    async def apply_permission_result(
        self,
        provider: SensorProvider,
        sensor_id: str,
        context: DeviceContext,
    ) -> bool:
        """Sync the enabled flag after a permission prompt; returns the new state."""
        granted = provider.check_permission(context, sensor_id)
        await self.set_enabled(provider, sensor_id, granted, context)
        return granted

    async def detail(self, sensor_id: str) -> SensorDetail | None:
        full = await self._store.get_full(sensor_id)
        if full is None:
            return None
        record = full.sensor
        return SensorDetail(
            sensor_id=record.id,
            enabled=record.enabled,
            registered=record.registered,
            summary=state_summary(record),
            device_class=record.device_class,
            icon=record.icon,
            attributes={attr.name: attr.value for attr in full.attributes},
        )

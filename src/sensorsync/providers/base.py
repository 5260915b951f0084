"""Base class for sensor providers.

A provider knows how to read one family of sensors (battery, storage,
connectivity, ...).  The reconciliation engine only relies on the
capability surface defined here: a name, the declared descriptors and
:meth:`SensorProvider.request_update`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar

from sensorsync.models.device import DeviceContext
from sensorsync.models.sensor import SensorAttribute, SensorDescriptor, SensorRecord
from sensorsync.state.store import SensorStore


class SensorProvider(ABC):
    """One family of sensors.

    Subclasses declare ``name`` and ``available_sensors`` and implement
    :meth:`request_update`, which reads the device and writes each
    sensor's state through :meth:`on_sensor_updated`.
    """

    name: ClassVar[str]
    available_sensors: ClassVar[tuple[SensorDescriptor, ...]]

    @abstractmethod
    async def request_update(self, context: DeviceContext, store: SensorStore) -> None:
        """Read the device and write the current state of every sensor."""

    def descriptor(self, sensor_id: str) -> SensorDescriptor | None:
        for descriptor in self.available_sensors:
            if descriptor.id == sensor_id:
                return descriptor
        return None

    def required_permissions(self, sensor_id: str) -> frozenset[str]:
        descriptor = self.descriptor(sensor_id)
        if descriptor is None:
            return frozenset()
        return descriptor.required_permissions

    def check_permission(self, context: DeviceContext, sensor_id: str) -> bool:
        return context.has_permissions(self.required_permissions(sensor_id))

    async def on_sensor_updated(
        self,
        store: SensorStore,
        descriptor: SensorDescriptor,
        context: DeviceContext,
        state: Any,
        *,
        type: str,
        icon: str | None = None,
        unit_of_measurement: str | None = None,
        device_class: str | None = None,
        attributes: Mapping[str, Any] | None = None,
    ) -> None:
        """Write a fresh reading for *descriptor*.

        The first reading of an unknown id creates its record, enabled only
        if the sensor's permissions are granted and never registered.  Later
        readings refresh state and metadata; ``enabled`` and ``registered``
        belong to the settings layer and the engine and are left untouched.
        """
        converted = tuple(SensorAttribute.from_value(k, v) for k, v in (attributes or {}).items())
        fields: dict[str, Any] = {
            "type": type,
            "state": _format_state(state),
            "icon": icon,
            "unit_of_measurement": unit_of_measurement,
            "device_class": device_class,
        }

        async with store.lock(descriptor.id):
            record = await store.get(descriptor.id)
            if record is None:
                enabled = context.has_permissions(descriptor.required_permissions)
                await store.add(SensorRecord(id=descriptor.id, enabled=enabled, **fields), converted)
                return
            await store.update(record.model_copy(update=fields))
            await store.replace_attributes(descriptor.id, converted)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} sensors={len(self.available_sensors)}>"


def _format_state(value: Any) -> str:
    if value is None:
        return "unavailable"
    if isinstance(value, bool):
        return "on" if value else "off"
    return str(value)

"""Sensor descriptors and persisted sensor records."""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import Field, field_validator

from sensorsync.models._base import SensorSyncModel
from sensorsync.models.registration import SensorRegistration

AttributeValueType = Literal["string", "int", "float", "boolean", "liststring"]


class SensorDescriptor(SensorSyncModel):
    """Static, provider-owned description of one sensor.

    Parameters
    ----------
    id : str
        Globally unique sensor id; also the record key in the store and
        the ``unique_id`` sent to the integration endpoint.
    name : str
        Display name attached to the registration call.
    required_permissions : frozenset[str]
        Permissions the device must grant before the sensor may be enabled.
    """

    id: str
    name: str
    required_permissions: frozenset[str] = frozenset()

    @field_validator("id")
    @classmethod
    def _non_empty_id(cls, value: str) -> str:
        if not value:
            raise ValueError("sensor id must be non-empty")
        return value


class SensorRecord(SensorSyncModel):
    """Persisted per-sensor state.

    ``registered`` is the only evidence that the endpoint accepted a
    registration for this id.  A record with an empty ``type`` is never
    registered.
    """

    id: str
    enabled: bool = False
    registered: bool = False
    type: str = ""
    state: str = ""
    unit_of_measurement: str | None = None
    icon: str | None = None
    device_class: str | None = None


class SensorAttribute(SensorSyncModel):
    """One ``(name, value)`` attribute pair; values are stored as strings."""

    name: str
    value: str
    value_type: AttributeValueType = "string"

    @classmethod
    def from_value(cls, name: str, value: Any) -> SensorAttribute:
        """Store *value* as a string while remembering its Python type."""
        if isinstance(value, bool):
            return cls(name=name, value=str(value).lower(), value_type="boolean")
        if isinstance(value, int):
            return cls(name=name, value=str(value), value_type="int")
        if isinstance(value, float):
            return cls(name=name, value=repr(value), value_type="float")
        if isinstance(value, (list, tuple)):
            return cls(name=name, value=json.dumps([str(v) for v in value]), value_type="liststring")
        return cls(name=name, value="" if value is None else str(value), value_type="string")

    def typed_value(self) -> Any:
        """Convert the stored string back into its declared type."""
        try:
            if self.value_type == "boolean":
                return self.value.lower() == "true"
            if self.value_type == "int":
                return int(self.value)
            if self.value_type == "float":
                return float(self.value)
            if self.value_type == "liststring":
                decoded = json.loads(self.value)
                return [str(v) for v in decoded] if isinstance(decoded, list) else [self.value]
        except (ValueError, json.JSONDecodeError):
            return self.value
        return self.value


class FullSensor(SensorSyncModel):
    """A record together with its ordered attributes."""

    sensor: SensorRecord
    attributes: tuple[SensorAttribute, ...] = Field(default_factory=tuple)

    def to_registration(self, name: str | None = None) -> SensorRegistration:
        """Build the transient wire view of this sensor.

        *name* is only needed for the registration call; batch entries
        leave it unset.
        """
        record = self.sensor
        return SensorRegistration(
            unique_id=record.id,
            name=name,
            state=record.state,
            type=record.type,
            unit_of_measurement=record.unit_of_measurement,
            icon=record.icon,
            device_class=record.device_class,
            attributes={attr.name: attr.typed_value() for attr in self.attributes},
        )

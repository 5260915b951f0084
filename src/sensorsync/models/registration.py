"""Wire view of a sensor sent to the integration endpoint."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from sensorsync.models._base import SensorSyncModel


class SensorRegistration(SensorSyncModel):
    """Transient registration/update entry, rebuilt on every pass.

    Parameters
    ----------
    unique_id : str
        Sensor id.
    name : str or None
        Display name; only sent with ``register_sensor``.
    state : str
        Current state as last written by the provider.
    type : str
        Entity type understood by the endpoint (``sensor``, ``binary_sensor``).
    unit_of_measurement : str or None
        Optional unit.
    icon : str or None
        Optional icon name (``mdi:battery``).
    device_class : str or None
        Optional device class (``battery``, ``timestamp``).
    attributes : dict
        Attribute values converted back to their native types.
    """

    unique_id: str
    name: str | None = None
    state: str = ""
    type: str = ""
    unit_of_measurement: str | None = None
    icon: str | None = None
    device_class: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)

    def to_register_payload(self) -> dict[str, Any]:
        """``data`` object of a ``register_sensor`` webhook call."""
        return self.model_dump(exclude_none=True)

    def to_update_payload(self) -> dict[str, Any]:
        """One entry of an ``update_sensor_states`` webhook call."""
        return self.model_dump(
            include={"unique_id", "state", "type", "icon", "attributes"},
            exclude_none=True,
        )

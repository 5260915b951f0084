"""Sensor record stores.

All reads and writes of persisted sensor records go through a
:class:`SensorStore`; the reconciliation engine, the providers and the
settings layer share one instance.
"""

from sensorsync.state.json_store import JsonFileSensorStore
from sensorsync.state.store import MemorySensorStore, SensorStore

__all__ = ["JsonFileSensorStore", "MemorySensorStore", "SensorStore"]

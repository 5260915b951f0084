"""Sensor providers and the registry the engine iterates."""

from sensorsync.providers.base import SensorProvider
from sensorsync.providers.registry import ProviderRegistry
from sensorsync.providers.system import (
    BatterySensorProvider,
    LastRebootSensorProvider,
    StorageSensorProvider,
)

__all__ = [
    "BatterySensorProvider",
    "LastRebootSensorProvider",
    "ProviderRegistry",
    "SensorProvider",
    "StorageSensorProvider",
]

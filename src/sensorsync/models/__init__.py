"""Typed models for sensorsync."""

from sensorsync.models.device import DeviceContext
from sensorsync.models.registration import SensorRegistration
from sensorsync.models.sensor import (
    AttributeValueType,
    FullSensor,
    SensorAttribute,
    SensorDescriptor,
    SensorRecord,
)

__all__ = [
    "AttributeValueType",
    "DeviceContext",
    "FullSensor",
    "SensorAttribute",
    "SensorDescriptor",
    "SensorRecord",
    "SensorRegistration",
]

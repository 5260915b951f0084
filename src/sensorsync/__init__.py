"""sensorsync - Async sensor registration and state reporting for device integrations."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("sensorsync")
except PackageNotFoundError:
    __version__ = "0+local"
from sensorsync.config import SensorSyncConfig
from sensorsync.engine import PassResult, ReconciliationEngine
from sensorsync.exceptions import (
    SensorProviderError,
    SensorSyncApiError,
    SensorSyncConfigError,
    SensorSyncError,
    SensorSyncTransportError,
)
from sensorsync.gate import GateDecision, TriggerCategory, TriggerGate
from sensorsync.integration import Integration, IntegrationClient
from sensorsync.models import (
    DeviceContext,
    FullSensor,
    SensorAttribute,
    SensorDescriptor,
    SensorRecord,
    SensorRegistration,
)
from sensorsync.providers import ProviderRegistry, SensorProvider
from sensorsync.reporter import SensorReporter
from sensorsync.settings import SensorDetail, SensorSettings
from sensorsync.state import JsonFileSensorStore, MemorySensorStore, SensorStore

__all__ = [
    "__version__",
    "DeviceContext",
    "FullSensor",
    "GateDecision",
    "Integration",
    "IntegrationClient",
    "JsonFileSensorStore",
    "MemorySensorStore",
    "PassResult",
    "ProviderRegistry",
    "ReconciliationEngine",
    "SensorAttribute",
    "SensorDescriptor",
    "SensorDetail",
    "SensorProvider",
    "SensorProviderError",
    "SensorRecord",
    "SensorRegistration",
    "SensorReporter",
    "SensorSettings",
    "SensorStore",
    "SensorSyncApiError",
    "SensorSyncConfig",
    "SensorSyncConfigError",
    "SensorSyncError",
    "SensorSyncTransportError",
    "TriggerCategory",
    "TriggerGate",
]

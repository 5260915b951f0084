"""Test doubles shared by the engine, concurrency and reporter tests."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from sensorsync.models.device import DeviceContext
from sensorsync.models.registration import SensorRegistration
from sensorsync.models.sensor import SensorDescriptor, SensorRecord
from sensorsync.providers.base import SensorProvider
from sensorsync.state.json_store import JsonFileSensorStore
from sensorsync.state.store import MemorySensorStore, SensorStore


@dataclass
class FakeIntegration:
    """Records every call; results are configurable per sensor id."""

    register_results: dict[str, bool | Exception] = field(default_factory=dict)
    update_result: bool | Exception = True
    register_delay: float = 0.0
    register_calls: list[SensorRegistration] = field(default_factory=list)
    update_calls: list[list[SensorRegistration]] = field(default_factory=list)

    @property
    def registered_ids(self) -> list[str]:
        return [r.unique_id for r in self.register_calls]

    @property
    def batches(self) -> list[list[str]]:
        return [[r.unique_id for r in batch] for batch in self.update_calls]

    async def register_sensor(self, registration: SensorRegistration) -> bool:
        self.register_calls.append(registration)
        if self.register_delay:
            await asyncio.sleep(self.register_delay)
        result = self.register_results.get(registration.unique_id, True)
        if isinstance(result, Exception):
            raise result
        return result

    async def update_sensors(self, batch: Sequence[SensorRegistration]) -> bool:
        self.update_calls.append(list(batch))
        if isinstance(self.update_result, Exception):
            raise self.update_result
        return self.update_result


class StaticProvider(SensorProvider):
    """Provider that writes fixed readings, or raises when ``fail`` is set."""

    def __init__(
        self,
        name: str,
        sensor_ids: Iterable[str],
        *,
        readings: dict[str, str] | None = None,
        fail: bool = False,
    ) -> None:
        self.name = name  # type: ignore[misc]
        self.available_sensors = tuple(  # type: ignore[misc]
            SensorDescriptor(id=i, name=i.replace("_", " ").title()) for i in sensor_ids
        )
        self.readings = readings or {}
        self.fail = fail
        self.calls = 0
        self.active = 0
        self.max_active = 0

    async def request_update(self, context: DeviceContext, store: SensorStore) -> None:
        self.calls += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0)
            if self.fail:
                raise RuntimeError(f"{self.name} exploded")
            for descriptor in self.available_sensors:
                if descriptor.id in self.readings:
                    await self.on_sensor_updated(
                        store, descriptor, context, self.readings[descriptor.id], type="sensor"
                    )
        finally:
            self.active -= 1


def record(
    sensor_id: str,
    *,
    enabled: bool = True,
    registered: bool = False,
    type: str = "sensor",
    state: str = "1",
) -> SensorRecord:
    return SensorRecord(id=sensor_id, enabled=enabled, registered=registered, type=type, state=state)


def store_with(*records: SensorRecord) -> MemorySensorStore:
    return MemorySensorStore(records)


async def unwritable_json_store(tmp_path: Path, *records: SensorRecord) -> JsonFileSensorStore:
    """A JSON store loaded with *records* whose every later write fails.

    The temporary file the store writes through is taken by a directory.
    """
    path = tmp_path / "sensors.json"
    path.write_text(
        json.dumps(
            {
                "version": 1,
                "sensors": {r.id: {"record": r.model_dump(), "attributes": []} for r in records},
            }
        ),
        encoding="utf-8",
    )
    store = await JsonFileSensorStore.open(path)
    path.with_name(f"{path.name}.tmp").mkdir()
    return store

"""JSON-file backed sensor store.

The whole store is small (tens of sensors), so every write rewrites the
file.  Writes go through a temporary file and ``os.replace`` so a power
loss mid-write leaves the previous snapshot intact.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from pydantic import Field, ValidationError

from sensorsync.exceptions import SensorSyncError
from sensorsync.models._base import SensorSyncModel
from sensorsync.models.sensor import SensorAttribute, SensorRecord
from sensorsync.state.store import MemorySensorStore

_logger = logging.getLogger(__name__)

STORE_FILE_VERSION = 1


class _StoredSensor(SensorSyncModel):
    record: SensorRecord
    attributes: tuple[SensorAttribute, ...] = ()


class _StoreFile(SensorSyncModel):
    version: int = STORE_FILE_VERSION
    sensors: dict[str, _StoredSensor] = Field(default_factory=dict)


class JsonFileSensorStore(MemorySensorStore):
    """Store that mirrors the in-memory records to a JSON file.

    Use :meth:`open` to construct it from an existing file::

        store = await JsonFileSensorStore.open("~/.local/state/sensorsync.json")
    """

    def __init__(self, path: str | Path, contents: _StoreFile | None = None) -> None:
        contents = contents or _StoreFile()
        super().__init__(
            records=[entry.record for entry in contents.sensors.values()],
            attributes={sensor_id: entry.attributes for sensor_id, entry in contents.sensors.items()},
        )
        self._path = Path(path).expanduser()
        self._file_lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    @classmethod
    async def open(cls, path: str | Path) -> JsonFileSensorStore:
        """Load the store at *path*; a missing file yields an empty store."""
        resolved = Path(path).expanduser()
        raw = await asyncio.to_thread(_read_text, resolved)
        if raw is None:
            _logger.debug("No sensor store at %s, starting empty", resolved)
            return cls(resolved)
        try:
            contents = _StoreFile.model_validate_json(raw)
        except ValidationError as exc:
            raise SensorSyncError(f"Corrupt sensor store {resolved}: {exc}") from exc
        if contents.version != STORE_FILE_VERSION:
            raise SensorSyncError(f"Unsupported sensor store version {contents.version} in {resolved}")
        _logger.debug("Loaded %d sensor records from %s", len(contents.sensors), resolved)
        return cls(resolved, contents)

    async def _save_record(self, record: SensorRecord) -> None:
        async with self._file_lock:
            await self._flush({**self._records, record.id: record}, self._attributes)
            await super()._save_record(record)

    async def _save_attributes(self, sensor_id: str, attributes: tuple[SensorAttribute, ...]) -> None:
        async with self._file_lock:
            await self._flush(self._records, {**self._attributes, sensor_id: attributes})
            await super()._save_attributes(sensor_id, attributes)

    async def _flush(
        self,
        records: dict[str, SensorRecord],
        attributes: dict[str, tuple[SensorAttribute, ...]],
    ) -> None:
        """Write a snapshot of *records*; memory is only updated once this returns.

        Raises
        ------
        SensorSyncError
            If the file cannot be written.  The previous snapshot, on disk
            and in memory, stays in place.
        """
        snapshot = _StoreFile(
            sensors={
                sensor_id: _StoredSensor(record=record, attributes=attributes.get(sensor_id, ()))
                for sensor_id, record in records.items()
            }
        )
        payload = snapshot.model_dump_json(indent=2)
        try:
            await asyncio.to_thread(_write_atomic, self._path, payload)
        except OSError as exc:
            raise SensorSyncError(f"Cannot write sensor store {self._path}: {exc}") from exc


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


def _write_atomic(path: Path, payload: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f"{path.name}.tmp")
    tmp.write_text(payload, encoding="utf-8")
    os.replace(tmp, path)

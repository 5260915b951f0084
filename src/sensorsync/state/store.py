"""Sensor record store with per-id serialization.

The store is the only resource shared between overlapping reconciliation
passes.  Every read-modify-write of a record must happen while holding
:meth:`SensorStore.lock` for that id; the store itself never takes the
lock, so callers can compose several reads and writes (and a network
call) inside one critical section.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable

from sensorsync.models.sensor import FullSensor, SensorAttribute, SensorRecord

_logger = logging.getLogger(__name__)


class SensorStore(ABC):
    """Async key/value store of :class:`SensorRecord` keyed by sensor id.

    Besides persistence, the base class tracks a per-id *registration
    revision*: a counter bumped whenever a write flips ``registered``.
    A pass that captured the revision while assembling its batch can
    detect that another pass changed the registration in the meantime.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._revisions: dict[str, int] = {}

    # ------------------------------------------------------------------
    # Per-id serialization
    # ------------------------------------------------------------------

    def lock(self, sensor_id: str) -> asyncio.Lock:
        """Return the lock guarding read-modify-write of *sensor_id*."""
        lock = self._locks.get(sensor_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[sensor_id] = lock
        return lock

    def registration_revision(self, sensor_id: str) -> int:
        return self._revisions.get(sensor_id, 0)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get(self, sensor_id: str) -> SensorRecord | None:
        return await self._load_record(sensor_id)

    async def get_full(self, sensor_id: str) -> FullSensor | None:
        record = await self._load_record(sensor_id)
        if record is None:
            return None
        attributes = await self._load_attributes(sensor_id)
        return FullSensor(sensor=record, attributes=tuple(attributes))

    async def add(self, record: SensorRecord, attributes: Iterable[SensorAttribute] = ()) -> bool:
        """Insert *record* unless its id already exists.

        Returns ``True`` when the record was created.
        """
        if await self._load_record(record.id) is not None:
            return False
        await self._save_record(record)
        await self._save_attributes(record.id, tuple(attributes))
        if record.registered:
            self._bump(record.id)
        _logger.debug("Created sensor record %s (enabled=%s)", record.id, record.enabled)
        return True

    async def update(self, record: SensorRecord) -> None:
        """Persist *record*, replacing the stored record with the same id."""
        previous = await self._load_record(record.id)
        await self._save_record(record)
        previous_registered = previous.registered if previous is not None else False
        if previous_registered != record.registered:
            self._bump(record.id)

    async def replace_attributes(self, sensor_id: str, attributes: Iterable[SensorAttribute]) -> None:
        await self._save_attributes(sensor_id, tuple(attributes))

    async def sensor_ids(self) -> list[str]:
        return sorted(await self._list_ids())

    # ------------------------------------------------------------------
    # Storage engine hooks
    # ------------------------------------------------------------------

    @abstractmethod
    async def _load_record(self, sensor_id: str) -> SensorRecord | None: ...

    @abstractmethod
    async def _load_attributes(self, sensor_id: str) -> tuple[SensorAttribute, ...]: ...

    @abstractmethod
    async def _save_record(self, record: SensorRecord) -> None: ...

    @abstractmethod
    async def _save_attributes(self, sensor_id: str, attributes: tuple[SensorAttribute, ...]) -> None: ...

    @abstractmethod
    async def _list_ids(self) -> Iterable[str]: ...

    def _bump(self, sensor_id: str) -> None:
        self._revisions[sensor_id] = self._revisions.get(sensor_id, 0) + 1


class MemorySensorStore(SensorStore):
    """In-memory store; records live for the lifetime of the process."""

    def __init__(
        self,
        records: Iterable[SensorRecord] = (),
        attributes: dict[str, Iterable[SensorAttribute]] | None = None,
    ) -> None:
        super().__init__()
        self._records: dict[str, SensorRecord] = {r.id: r for r in records}
        self._attributes: dict[str, tuple[SensorAttribute, ...]] = {
            sensor_id: tuple(attrs) for sensor_id, attrs in (attributes or {}).items()
        }

    async def _load_record(self, sensor_id: str) -> SensorRecord | None:
        return self._records.get(sensor_id)

    async def _load_attributes(self, sensor_id: str) -> tuple[SensorAttribute, ...]:
        return self._attributes.get(sensor_id, ())

    async def _save_record(self, record: SensorRecord) -> None:
        self._records[record.id] = record

    async def _save_attributes(self, sensor_id: str, attributes: tuple[SensorAttribute, ...]) -> None:
        self._attributes[sensor_id] = attributes

    async def _list_ids(self) -> Iterable[str]:
        return list(self._records)

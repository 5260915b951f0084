"""Sensor state reconciliation engine.

One pass:

1. ask every provider to refresh its sensors (failures are isolated),
2. register enabled sensors the endpoint has not accepted yet,
3. push every enabled, registered sensor in a single batch,
4. if the batch fails, mark every sensor in it unregistered so it is
   registered again before it is batched again.

Registration and invalidation of a sensor happen while holding that
sensor's store lock, so overlapping passes never issue two registrations
for the same id and a stale invalidation never undoes a newer
registration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sensorsync.integration import Integration
from sensorsync.models.device import DeviceContext
from sensorsync.models.registration import SensorRegistration
from sensorsync.models.sensor import SensorDescriptor
from sensorsync.providers.base import SensorProvider
from sensorsync.providers.registry import ProviderRegistry
from sensorsync.state.store import SensorStore

_logger = logging.getLogger(__name__)


@dataclass
class PassResult:
    """What one reconciliation pass did.

    Attributes:
        failed_providers: Names of providers whose update raised.
        registered:       Ids registered successfully during this pass.
        registration_failures: Ids whose registration was refused or raised.
        batch:            Ids included in the update batch, in order.
        pushed:           ``True`` if the batch was accepted, ``False`` if it
                          failed, ``None`` if there was nothing to push.
        invalidated:      Ids marked unregistered after a failed push.
        store_failures:   Ids skipped because reading or writing their record
                          failed; they are retried on the next pass.
    """

    failed_providers: list[str] = field(default_factory=list)
    registered: list[str] = field(default_factory=list)
    registration_failures: list[str] = field(default_factory=list)
    batch: list[str] = field(default_factory=list)
    pushed: bool | None = None
    invalidated: list[str] = field(default_factory=list)
    store_failures: list[str] = field(default_factory=list)


@dataclass(slots=True)
class _BatchEntry:
    registration: SensorRegistration
    revision: int


class ReconciliationEngine:
    """Drive providers, reconcile registrations and push state batches.

    Usage::

        engine = ReconciliationEngine(registry, store, client)
        result = await engine.run_pass(DeviceContext())
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        store: SensorStore,
        integration: Integration,
    ) -> None:
        self._registry = registry
        self._store = store
        self._integration = integration

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    @property
    def store(self) -> SensorStore:
        return self._store

    async def run_pass(self, context: DeviceContext) -> PassResult:
        """Run one complete pass; never raises for provider, network or store failures."""
        result = PassResult()

        for provider in self._registry:
            if not await self.refresh_provider(provider, context):
                result.failed_providers.append(provider.name)

        entries: list[_BatchEntry] = []
        for _provider, descriptor in self._registry.descriptors():
            try:
                entry = await self._reconcile(descriptor, result)
            except Exception:
                _logger.error("Store access failed for sensor %s, skipping it", descriptor.id, exc_info=True)
                result.store_failures.append(descriptor.id)
                continue
            if entry is not None:
                entries.append(entry)
                result.batch.append(descriptor.id)

        if not entries:
            _logger.debug("Nothing to update")
            return result

        result.pushed = await self._push([entry.registration for entry in entries])
        if not result.pushed:
            result.invalidated = await self._invalidate(entries, result)
        return result

    async def refresh_provider(self, provider: SensorProvider, context: DeviceContext) -> bool:
        """Ask *provider* for fresh readings; returns ``False`` if it raised."""
        try:
            await provider.request_update(context, self._store)
        except Exception:
            _logger.error("Issue requesting updates for %s", provider.name, exc_info=True)
            return False
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _reconcile(self, descriptor: SensorDescriptor, result: PassResult) -> _BatchEntry | None:
        async with self._store.lock(descriptor.id):
            full = await self._store.get_full(descriptor.id)
            if full is None:
                return None
            sensor = full.sensor

            if sensor.enabled and not sensor.registered:
                if not sensor.type:
                    _logger.debug("Sensor %s has no type yet, not registering", sensor.id)
                elif await self._register(full.to_registration(name=descriptor.name)):
                    sensor = sensor.model_copy(update={"registered": True})
                    await self._store.update(sensor)
                    result.registered.append(sensor.id)
                else:
                    result.registration_failures.append(sensor.id)

            if not (sensor.enabled and sensor.registered):
                return None
            return _BatchEntry(
                registration=full.model_copy(update={"sensor": sensor}).to_registration(),
                revision=self._store.registration_revision(sensor.id),
            )

    async def _register(self, registration: SensorRegistration) -> bool:
        try:
            success = await self._integration.register_sensor(registration)
        except Exception:
            _logger.error("Issue registering sensor: %s", registration.unique_id, exc_info=True)
            return False
        if not success:
            _logger.error("Issue registering sensor: %s (rejected)", registration.unique_id)
        return success

    async def _push(self, batch: list[SensorRegistration]) -> bool:
        try:
            success = await self._integration.update_sensors(batch)
        except Exception:
            _logger.error("Exception while updating %d sensors", len(batch), exc_info=True)
            return False
        if not success:
            _logger.warning("Updating %d sensors failed, they will be registered again", len(batch))
        return success

    async def _invalidate(self, entries: list[_BatchEntry], result: PassResult) -> list[str]:
        invalidated: list[str] = []
        for entry in entries:
            sensor_id = entry.registration.unique_id
            async with self._store.lock(sensor_id):
                if self._store.registration_revision(sensor_id) != entry.revision:
                    _logger.debug("Registration of %s changed since batching, keeping it", sensor_id)
                    continue
                sensor = await self._store.get(sensor_id)
                if sensor is None or not sensor.registered:
                    continue
                try:
                    await self._store.update(sensor.model_copy(update={"registered": False}))
                except Exception:
                    _logger.error("Could not mark %s unregistered", sensor_id, exc_info=True)
                    result.store_failures.append(sensor_id)
                    continue
                invalidated.append(sensor_id)
        return invalidated

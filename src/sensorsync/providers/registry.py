"""Explicit, constructed list of sensor providers."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from sensorsync.exceptions import SensorSyncConfigError
from sensorsync.models.sensor import SensorDescriptor
from sensorsync.providers.base import SensorProvider


class ProviderRegistry:
    """Ordered providers queried on every pass.

    Provider order is the query order within a pass.  Sensor ids must be
    unique across all providers (including the location provider);
    duplicates raise :class:`SensorSyncConfigError` at construction.

    Parameters
    ----------
    providers : iterable of SensorProvider
        Providers queried on every pass, in order.
    location_provider : SensorProvider or None
        Provider refreshed on its own cadence and after boot, outside
        the regular pass.
    """

    def __init__(
        self,
        providers: Iterable[SensorProvider],
        *,
        location_provider: SensorProvider | None = None,
    ) -> None:
        self._providers: tuple[SensorProvider, ...] = tuple(providers)
        self._location_provider = location_provider
        self._owners: dict[str, SensorProvider] = {}

        candidates = [*self._providers]
        if location_provider is not None:
            candidates.append(location_provider)
        for provider in candidates:
            for descriptor in provider.available_sensors:
                owner = self._owners.get(descriptor.id)
                if owner is not None:
                    raise SensorSyncConfigError(
                        f"Sensor id {descriptor.id!r} declared by both {owner.name!r} and {provider.name!r}"
                    )
                self._owners[descriptor.id] = provider

    def __iter__(self) -> Iterator[SensorProvider]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    @property
    def providers(self) -> tuple[SensorProvider, ...]:
        return self._providers

    @property
    def location_provider(self) -> SensorProvider | None:
        return self._location_provider

    def descriptors(self) -> list[tuple[SensorProvider, SensorDescriptor]]:
        """Every regular descriptor, iterated provider by provider."""
        return [(provider, descriptor) for provider in self._providers for descriptor in provider.available_sensors]

    def provider_for(self, sensor_id: str) -> SensorProvider | None:
        return self._owners.get(sensor_id)

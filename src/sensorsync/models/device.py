"""Device context handed to providers on every pass."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import Field

from sensorsync.models._base import SensorSyncModel


class DeviceContext(SensorSyncModel):
    """What a provider may know about the device during one pass.

    ``granted_permissions`` drives enablement of newly seen sensors and
    the settings layer's permission checks.  ``extras`` carries
    platform-specific handles a provider needs (e.g. a mount point to
    measure); the engine never reads it.
    """

    granted_permissions: frozenset[str] = frozenset()
    extras: dict[str, Any] = Field(default_factory=dict)

    def has_permissions(self, permissions: Iterable[str]) -> bool:
        return all(p in self.granted_permissions for p in permissions)

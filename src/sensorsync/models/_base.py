"""Base model shared by sensorsync's records and wire models.

Every model inherits from :class:`SensorSyncModel` which provides:

* frozen instances; changes go through ``model_copy(update=...)``.
* ``extra="forbid"`` so a typo in a field name fails loudly.
* string fields kept verbatim; states and attribute values are pushed
  exactly as the provider read them.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class SensorSyncModel(BaseModel):
    """Base for every sensorsync model."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
    )

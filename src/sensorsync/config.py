"""Reporter configuration for sensorsync."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from sensorsync._constants import (
    DEFAULT_CHARGING_SETTLE_DELAY,
    DEFAULT_LOCATION_INTERVAL,
    DEFAULT_MAX_CONCURRENT_PASSES,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_UPDATE_INTERVAL,
    WEBHOOK_PATH,
)
from sensorsync.exceptions import SensorSyncConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class SensorSyncConfig:
    """Reporter configuration.

    Parameters
    ----------
    base_url : str
        Base URL of the integration endpoint (e.g.
        ``"http://homeassistant.local:8123"``).
    webhook_id : str
        Webhook id obtained when the device registered with the endpoint.
        Sensor registrations and state batches are posted to
        ``{base_url}/api/webhook/{webhook_id}``.
    request_timeout : float
        Total timeout in seconds for each HTTP call.  A timeout is
        handled like any other call failure.
    verify_ssl : bool
        Verify TLS certificates of the endpoint.
    update_interval : float
        Seconds between periodic reconciliation passes.
    location_interval : float
        Seconds between location-only refreshes.
    charging_settle_delay : float
        Delay in seconds before the second pass that follows a charging
        related trigger.
    max_concurrent_passes : int
        Upper bound of reconciliation passes running at the same time.
    store_path : str or None
        Path of the JSON sensor store.  ``None`` keeps records in memory.
    """

    base_url: str
    webhook_id: str
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    verify_ssl: bool = True
    update_interval: float = DEFAULT_UPDATE_INTERVAL
    location_interval: float = DEFAULT_LOCATION_INTERVAL
    charging_settle_delay: float = DEFAULT_CHARGING_SETTLE_DELAY
    max_concurrent_passes: int = DEFAULT_MAX_CONCURRENT_PASSES
    store_path: str | None = None

    def __post_init__(self) -> None:
        if not self.base_url:
            raise SensorSyncConfigError("base_url must be set")
        if not self.webhook_id:
            raise SensorSyncConfigError("webhook_id must be set")
        if self.max_concurrent_passes < 1:
            raise SensorSyncConfigError("max_concurrent_passes must be at least 1")
        if self.charging_settle_delay < 0:
            raise SensorSyncConfigError("charging_settle_delay must not be negative")
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @property
    def webhook_url(self) -> str:
        return f"{self.base_url}{WEBHOOK_PATH}{self.webhook_id}"

    @classmethod
    def from_env(cls, **overrides: Any) -> SensorSyncConfig:
        """Create configuration from environment variables.

        Reads ``SENSORSYNC_BASE_URL``, ``SENSORSYNC_WEBHOOK_ID`` and the
        optional ``SENSORSYNC_*`` tuning variables.  Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        SensorSyncConfig
            Populated configuration.

        Raises
        ------
        SensorSyncConfigError
            If a required value is missing or a numeric variable is invalid.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "SENSORSYNC_BASE_URL": "base_url",
            "SENSORSYNC_WEBHOOK_ID": "webhook_id",
            "SENSORSYNC_STORE_PATH": "store_path",
        }
        _ENV_FLOAT_MAP = {
            "SENSORSYNC_REQUEST_TIMEOUT": "request_timeout",
            "SENSORSYNC_UPDATE_INTERVAL": "update_interval",
            "SENSORSYNC_LOCATION_INTERVAL": "location_interval",
            "SENSORSYNC_CHARGING_SETTLE_DELAY": "charging_settle_delay",
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = float(val)
            except ValueError as exc:
                raise SensorSyncConfigError(f"{env_key} must be a number, got {val!r}") from exc

        passes_env = env.get("SENSORSYNC_MAX_CONCURRENT_PASSES")
        if passes_env is not None and "max_concurrent_passes" not in overrides:
            try:
                config_kwargs["max_concurrent_passes"] = int(passes_env)
            except ValueError as exc:
                raise SensorSyncConfigError(
                    f"SENSORSYNC_MAX_CONCURRENT_PASSES must be an integer, got {passes_env!r}"
                ) from exc

        if "verify_ssl" not in overrides:
            config_kwargs["verify_ssl"] = _env_bool(env.get("SENSORSYNC_VERIFY_SSL"), True)

        config_kwargs.update(overrides)

        for required in ("base_url", "webhook_id"):
            if not config_kwargs.get(required):
                raise SensorSyncConfigError(
                    f"Missing {required}: set SENSORSYNC_{required.upper()} or pass {required}="
                )

        return cls(**config_kwargs)

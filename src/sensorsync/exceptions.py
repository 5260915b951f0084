"""Custom exception hierarchy for sensorsync."""

from __future__ import annotations


class SensorSyncError(Exception):
    """Base exception for all sensorsync errors."""


class SensorSyncConfigError(SensorSyncError):
    """Invalid or missing configuration.

    Also raised by :class:`sensorsync.providers.ProviderRegistry` when two
    providers declare the same sensor id.
    """


class SensorSyncTransportError(SensorSyncError):
    """HTTP-level failure (network, timeout, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class SensorSyncApiError(SensorSyncError):
    """The integration endpoint answered with an application-level error."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        super().__init__(message)


class SensorProviderError(SensorSyncError):
    """A provider could not read its sensors.

    Providers may raise this (or anything else) from ``request_update``;
    the reconciliation engine logs it and carries on with the other
    providers.
    """

    def __init__(self, message: str, *, provider: str = "") -> None:
        self.provider = provider
        super().__init__(message)

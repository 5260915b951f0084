"""Async client for the remote integration endpoint."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

import aiohttp

from sensorsync._constants import COMMAND_REGISTER_SENSOR, COMMAND_UPDATE_SENSOR_STATES
from sensorsync._transport import HttpWebhookTransport, WebhookTransport
from sensorsync.config import SensorSyncConfig
from sensorsync.exceptions import SensorSyncApiError, SensorSyncError
from sensorsync.models.registration import SensorRegistration

_logger = logging.getLogger(__name__)


class Integration(Protocol):
    """The two remote operations the reconciliation engine needs.

    Both may raise; the engine treats any exception as ``False``.
    """

    async def register_sensor(self, registration: SensorRegistration) -> bool: ...

    async def update_sensors(self, batch: Sequence[SensorRegistration]) -> bool: ...


def _error_code(result: Mapping[str, Any]) -> str:
    error = result.get("error")
    if isinstance(error, Mapping):
        return str(error.get("code", ""))
    return ""


class IntegrationClient:
    """Webhook client registering sensors and pushing state batches.

    Usage::

        async with IntegrationClient(config) as client:
            await client.register_sensor(registration)
            await client.update_sensors([registration])

    Parameters
    ----------
    config : SensorSyncConfig
        Endpoint configuration.
    session : aiohttp.ClientSession or None
        Borrowed HTTP session; when omitted the client owns one for the
        lifetime of the context manager.
    transport : WebhookTransport or None
        Replacement transport (tests, alternative protocols).
    """

    def __init__(
        self,
        config: SensorSyncConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: WebhookTransport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: WebhookTransport | None = transport
        self._external_transport = transport is not None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> IntegrationClient:
        if self._external_transport:
            return self
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpWebhookTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    def _require_transport(self) -> WebhookTransport:
        if self._transport is None:
            raise SensorSyncError("Client not initialized. Use 'async with IntegrationClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # Remote operations
    # ------------------------------------------------------------------

    async def register_sensor(self, registration: SensorRegistration) -> bool:
        """Register one sensor with the endpoint.

        Returns the endpoint's ``success`` flag; a 2xx reply without one
        counts as success.

        Raises
        ------
        SensorSyncTransportError
            On network failure, timeout or non-2xx status.
        SensorSyncApiError
            If the reply is not a JSON object.
        """
        transport = self._require_transport()
        response = await transport.post_webhook(
            {"type": COMMAND_REGISTER_SENSOR, "data": registration.to_register_payload()}
        )
        if not isinstance(response, Mapping):
            raise SensorSyncApiError(
                f"Unexpected register_sensor reply for {registration.unique_id}: {type(response).__name__}",
                endpoint=COMMAND_REGISTER_SENSOR,
            )
        success = bool(response.get("success", True))
        if not success:
            _logger.warning(
                "Endpoint rejected registration of %s (code=%s)",
                registration.unique_id,
                _error_code(response) or "unknown",
            )
        return success

    async def update_sensors(self, batch: Sequence[SensorRegistration]) -> bool:
        """Push the state of every sensor in *batch* in one call.

        The endpoint answers with one result per ``unique_id``; the batch
        succeeds only if every entry reports success.  An empty batch is
        a no-op and succeeds.

        Raises
        ------
        SensorSyncTransportError
            On network failure, timeout or non-2xx status.
        SensorSyncApiError
            If the reply is not a JSON object.
        """
        if not batch:
            return True
        transport = self._require_transport()
        response = await transport.post_webhook(
            {
                "type": COMMAND_UPDATE_SENSOR_STATES,
                "data": [registration.to_update_payload() for registration in batch],
            }
        )
        if not isinstance(response, Mapping):
            raise SensorSyncApiError(
                f"Unexpected update_sensor_states reply: {type(response).__name__}",
                endpoint=COMMAND_UPDATE_SENSOR_STATES,
            )

        rejected: dict[str, str] = {}
        for registration in batch:
            result = response.get(registration.unique_id)
            if not isinstance(result, Mapping):
                rejected[registration.unique_id] = "missing"
            elif not result.get("success", False):
                rejected[registration.unique_id] = _error_code(result) or "unknown"

        if rejected:
            _logger.warning(
                "Endpoint rejected %d of %d sensor updates: %s",
                len(rejected),
                len(batch),
                ", ".join(f"{sensor_id}={code}" for sensor_id, code in sorted(rejected.items())),
            )
            return False
        return True

"""HTTP transport for the integration webhook."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from sensorsync._constants import USER_AGENT
from sensorsync._redact import redact_for_log, redact_url
from sensorsync.config import SensorSyncConfig
from sensorsync.exceptions import SensorSyncTransportError

_logger = logging.getLogger(__name__)


class WebhookTransport(Protocol):
    """Structural transport interface used by the integration client.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpWebhookTransport`)
    concrete.
    """

    async def post_webhook(self, payload: Mapping[str, Any]) -> Any: ...


class HttpWebhookTransport:
    """POST JSON commands to ``{base_url}/api/webhook/{webhook_id}``."""

    def __init__(
        self,
        config: SensorSyncConfig,
        http_session: aiohttp.ClientSession,
    ) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    async def post_webhook(self, payload: Mapping[str, Any]) -> Any:
        """Send one webhook command and return the decoded JSON reply.

        An empty body (some endpoints answer ``200`` with no content) is
        returned as ``{}``.
        """
        url = self._config.webhook_url
        endpoint = redact_url(url)
        command = str(payload.get("type", ""))

        headers: dict[str, str] = {
            "content-type": "application/json; charset=UTF-8",
            "user-agent": USER_AGENT,
        }

        _logger.debug("POST %s %s payload=%s", endpoint, command, redact_for_log(payload))

        try:
            async with self._http.post(
                url,
                data=json.dumps(payload, separators=(",", ":")),
                headers=headers,
                timeout=self._timeout,
                ssl=self._config.verify_ssl,
            ) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise SensorSyncTransportError(
                        f"HTTP {resp.status} from {endpoint} ({command}): {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except SensorSyncTransportError:
            raise
        except asyncio.TimeoutError as exc:
            raise SensorSyncTransportError(
                f"Request to {endpoint} ({command}) timed out after {self._config.request_timeout}s",
                endpoint=endpoint,
            ) from exc
        except aiohttp.ClientError as exc:
            raise SensorSyncTransportError(
                f"Request to {endpoint} ({command}) failed: {exc}",
                endpoint=endpoint,
            ) from exc

        if not text.strip():
            return {}

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SensorSyncTransportError(
                f"Invalid JSON from {endpoint} ({command}): {text[:200]}",
                status_code=resp.status,
                endpoint=endpoint,
            ) from exc

        _logger.debug("Response %s %s: %s", endpoint, command, redact_for_log(body))
        return body

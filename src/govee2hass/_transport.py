"""HTTP transport for the Govee Platform API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from govee2hass._constants import API_KEY_HEADER, USER_AGENT
from govee2hass._redact import redact_for_log
from govee2hass.config import BridgeConfig
from govee2hass.exceptions import GoveeTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`PlatformTransport`) concrete.
    """

    async def request_json(
        self,
        method: str,
        endpoint: str,
        body: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        ...


class PlatformTransport:
    """HTTP transport that signs requests with the account API key."""

    def __init__(
        self,
        config: BridgeConfig,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float = 15.0,
    ) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    def _headers(self) -> dict[str, str]:
        return {
            "content-type": "application/json",
            "user-agent": USER_AGENT,
            API_KEY_HEADER: self._config.require_api_key(),
        }

    async def request_json(
        self,
        method: str,
        endpoint: str,
        body: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send a JSON request and return the decoded JSON object."""
        url = f"{self._config.base_url}{endpoint}"
        headers = self._headers()
        data = json.dumps(body, separators=(",", ":")) if body is not None else None

        secrets = (self._config.api_key,)
        _logger.debug(
            "%s %s headers=%s body=%s",
            method,
            url,
            redact_for_log(headers, secrets=secrets),
            redact_for_log(body, secrets=secrets),
        )

        try:
            async with self._http.request(method, url, data=data, headers=headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise GoveeTransportError(
                        f"HTTP {resp.status} from {endpoint}: {redact_for_log(text, secrets=secrets, max_string=200)}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except GoveeTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise GoveeTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        try:
            result = json.loads(text)
        except json.JSONDecodeError as exc:
            raise GoveeTransportError(
                f"Invalid JSON from {endpoint}: {redact_for_log(text, secrets=secrets, max_string=200)}",
                endpoint=endpoint,
            ) from exc

        if not isinstance(result, dict):
            raise GoveeTransportError(
                f"Response from {endpoint} is not a JSON object",
                endpoint=endpoint,
            )
        return result

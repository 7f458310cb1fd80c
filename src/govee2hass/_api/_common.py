"""Shared helpers for Platform API endpoint modules.

It is internal to govee2hass and may change at any time.
"""

from __future__ import annotations

import uuid
from typing import Any

from govee2hass._constants import AUTH_FAILED_CODES, RATE_LIMITED_CODES
from govee2hass.exceptions import GoveeApiError, GoveeAuthenticationError, GoveeRateLimitError
from govee2hass.ingestion.normalize import safe_int


def new_request_id() -> str:
    return str(uuid.uuid4())


def _raise_for_code(*, endpoint: str, code: int | None, message: str) -> None:
    if code in AUTH_FAILED_CODES:
        raise GoveeAuthenticationError(
            f"{endpoint} failed: code={code} message={message}",
            code=code,
            endpoint=endpoint,
        )
    if code in RATE_LIMITED_CODES:
        raise GoveeRateLimitError(
            f"{endpoint} rate limited: code={code} message={message}",
            code=code,
            endpoint=endpoint,
        )
    raise GoveeApiError(
        f"{endpoint} failed: code={code} message={message}",
        code=code,
        endpoint=endpoint,
    )


def check_envelope(endpoint: str, response: dict[str, Any]) -> None:
    """Raise if the Platform API envelope reports a failure.

    Envelopes look like ``{"code": 200, "message"|"msg": "success", ...}``.
    """
    code = safe_int(response.get("code"))
    if code == 200:
        return
    message = str(response.get("message") or response.get("msg") or "")
    _raise_for_code(endpoint=endpoint, code=code, message=message)

"""Custom exception hierarchy for govee2hass."""

from __future__ import annotations


class GoveeError(Exception):
    """Base exception for all govee2hass errors."""


class GoveeConfigError(GoveeError):
    """Invalid or missing configuration."""


class GoveeTransportError(GoveeError):
    """HTTP-level failure (network, non-200, invalid JSON)."""

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


class GoveeApiError(GoveeError):
    """Platform API returned a non-success ``code`` in its envelope."""

    def __init__(
        self,
        message: str,
        *,
        code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        super().__init__(message)


class GoveeAuthenticationError(GoveeApiError):
    """API key rejected (code 401)."""


class GoveeRateLimitError(GoveeApiError):
    """Too many requests for this API key (code 429).

    The Platform API enforces a per-key daily quota; consumers should back
    off until the next polling cycle.
    """


class HassPublishError(GoveeError):
    """An MQTT publish towards Home Assistant was rejected or timed out.

    Recoverable: the sync driver logs it and carries on with the remaining
    entities.
    """

    def __init__(self, message: str, *, topic: str = "") -> None:
        self.topic = topic
        super().__init__(message)

"""Bridge configuration for govee2hass."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from govee2hass._constants import BASE_URL, DEFAULT_DISCOVERY_PREFIX, DEFAULT_TOPIC_NAMESPACE
from govee2hass.exceptions import GoveeConfigError


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
class BridgeConfig:
    """Bridge configuration.

    Parameters
    ----------
    api_key : str or None
        Govee Platform API key. Required as soon as the bridge talks to
        the Platform API.
    base_url : str
        Platform API base URL.
    mqtt_host : str
        MQTT broker host name.
    mqtt_port : int
        MQTT broker port.
    mqtt_username : str or None
        MQTT user name, if the broker requires authentication.
    mqtt_password : str or None
        MQTT password.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    mqtt_tls : bool
        Connect to the broker over TLS.
    discovery_prefix : str
        Home Assistant discovery prefix (``homeassistant`` unless changed
        in the MQTT integration settings).
    topic_namespace : str
        Prefix for every state, command and availability topic the bridge
        owns.
    publish_timeout : float
        Seconds to wait for the broker to acknowledge a publish.
    max_concurrency : int
        Upper bound on entity publishes running at the same time.
    poll_interval : float
        Seconds between Platform API state refreshes.
    """

    api_key: str | None = None
    base_url: str = BASE_URL
    mqtt_host: str = "localhost"
    mqtt_port: int = 1883
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_keepalive: int = 60
    mqtt_tls: bool = False
    discovery_prefix: str = DEFAULT_DISCOVERY_PREFIX
    topic_namespace: str = DEFAULT_TOPIC_NAMESPACE
    publish_timeout: float = 5.0
    max_concurrency: int = 8
    poll_interval: float = 900.0

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise GoveeConfigError(f"max_concurrency must be >= 1, got {self.max_concurrency}")
        if self.publish_timeout <= 0:
            raise GoveeConfigError(f"publish_timeout must be positive, got {self.publish_timeout}")
        if not self.topic_namespace.strip("/"):
            raise GoveeConfigError("topic_namespace must be non-empty")

    @property
    def availability_topic(self) -> str:
        """Process-wide bridge liveness topic shared by every entity."""
        return f"{self.topic_namespace}/availability"

    def require_api_key(self) -> str:
        if not self.api_key:
            raise GoveeConfigError("No Govee API key configured (set GOVEE_API_KEY)")
        return self.api_key

    @classmethod
    def from_env(cls, **overrides: Any) -> BridgeConfig:
        """Create configuration from environment variables.

        Reads ``GOVEE_API_KEY`` and the optional ``GOVEE_*`` variables.
        Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        BridgeConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "GOVEE_API_KEY": "api_key",
            "GOVEE_API_BASE_URL": "base_url",
            "GOVEE_MQTT_HOST": "mqtt_host",
            "GOVEE_MQTT_USER": "mqtt_username",
            "GOVEE_MQTT_PASSWORD": "mqtt_password",
            "GOVEE_HASS_DISCOVERY_PREFIX": "discovery_prefix",
            "GOVEE_TOPIC_NAMESPACE": "topic_namespace",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        # Numeric fields, handled separately
        _ENV_INT_MAP = {
            "GOVEE_MQTT_PORT": "mqtt_port",
            "GOVEE_MQTT_KEEPALIVE": "mqtt_keepalive",
            "GOVEE_MAX_CONCURRENCY": "max_concurrency",
        }
        for env_key, field_name in _ENV_INT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                try:
                    config_kwargs[field_name] = int(val)
                except ValueError as exc:
                    raise GoveeConfigError(f"{env_key} must be an integer, got {val!r}") from exc

        _ENV_FLOAT_MAP = {
            "GOVEE_PUBLISH_TIMEOUT": "publish_timeout",
            "GOVEE_POLL_INTERVAL": "poll_interval",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                try:
                    config_kwargs[field_name] = float(val)
                except ValueError as exc:
                    raise GoveeConfigError(f"{env_key} must be a number, got {val!r}") from exc

        if "mqtt_tls" not in overrides:
            config_kwargs["mqtt_tls"] = _env_bool(env.get("GOVEE_MQTT_TLS"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)

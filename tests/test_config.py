from __future__ import annotations

import pytest

from govee2hass.config import BridgeConfig
from govee2hass.exceptions import GoveeConfigError

_ENV_KEYS = (
    "GOVEE_API_KEY",
    "GOVEE_API_BASE_URL",
    "GOVEE_MQTT_HOST",
    "GOVEE_MQTT_PORT",
    "GOVEE_MQTT_USER",
    "GOVEE_MQTT_PASSWORD",
    "GOVEE_MQTT_KEEPALIVE",
    "GOVEE_MQTT_TLS",
    "GOVEE_HASS_DISCOVERY_PREFIX",
    "GOVEE_TOPIC_NAMESPACE",
    "GOVEE_MAX_CONCURRENCY",
    "GOVEE_PUBLISH_TIMEOUT",
    "GOVEE_POLL_INTERVAL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    config = BridgeConfig.from_env()

    assert config.api_key is None
    assert config.mqtt_host == "localhost"
    assert config.mqtt_port == 1883
    assert config.mqtt_tls is False
    assert config.discovery_prefix == "homeassistant"
    assert config.availability_topic == "gv2mqtt/availability"


def test_from_env_reads_every_group(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GOVEE_API_KEY", "key-1")
    monkeypatch.setenv("GOVEE_MQTT_HOST", "broker.lan")
    monkeypatch.setenv("GOVEE_MQTT_PORT", "8883")
    monkeypatch.setenv("GOVEE_MQTT_USER", "bridge")
    monkeypatch.setenv("GOVEE_MQTT_PASSWORD", "pw")
    monkeypatch.setenv("GOVEE_MQTT_TLS", "yes")
    monkeypatch.setenv("GOVEE_TOPIC_NAMESPACE", "govee")
    monkeypatch.setenv("GOVEE_POLL_INTERVAL", "60.5")
    monkeypatch.setenv("GOVEE_MAX_CONCURRENCY", "3")

    config = BridgeConfig.from_env()

    assert config.require_api_key() == "key-1"
    assert config.mqtt_host == "broker.lan"
    assert config.mqtt_port == 8883
    assert (config.mqtt_username, config.mqtt_password) == ("bridge", "pw")
    assert config.mqtt_tls is True
    assert config.availability_topic == "govee/availability"
    assert config.poll_interval == pytest.approx(60.5)
    assert config.max_concurrency == 3


def test_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GOVEE_MQTT_HOST", "broker.lan")
    monkeypatch.setenv("GOVEE_MQTT_PORT", "not-a-number")

    config = BridgeConfig.from_env(mqtt_host="other", mqtt_port=1884)

    assert config.mqtt_host == "other"
    assert config.mqtt_port == 1884


def test_bad_number_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GOVEE_MQTT_PORT", "not-a-number")

    with pytest.raises(GoveeConfigError):
        BridgeConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_concurrency": 0},
        {"publish_timeout": 0},
        {"topic_namespace": "/"},
    ],
)
def test_validation(kwargs: dict[str, object]) -> None:
    with pytest.raises(GoveeConfigError):
        BridgeConfig(**kwargs)  # type: ignore[arg-type]


def test_require_api_key() -> None:
    with pytest.raises(GoveeConfigError):
        BridgeConfig().require_api_key()

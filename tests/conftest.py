from __future__ import annotations

import asyncio
import copy
from dataclasses import dataclass, field
from typing import Any

import pytest

from govee2hass.config import BridgeConfig
from govee2hass.exceptions import HassPublishError
from govee2hass.models.device import Device
from govee2hass.state.store import StateStore

HUMIDIFIER_ID = "52:8B:D4:AD:FC:45:5D:FE"
THERMOMETER_ID = "0A:1B:2C:3D:4E:5F:60:71"


def humidifier_payload() -> dict[str, Any]:
    return {
        "sku": "H7143",
        "device": HUMIDIFIER_ID,
        "deviceName": "Bedroom Humidifier",
        "type": "devices.types.humidifier",
        "capabilities": [
            {
                "type": "devices.capabilities.on_off",
                "instance": "powerSwitch",
                "parameters": {
                    "dataType": "ENUM",
                    "options": [{"name": "on", "value": 1}, {"name": "off", "value": 0}],
                },
            },
            {
                "type": "devices.capabilities.range",
                "instance": "humidity",
                "parameters": {
                    "unit": "unit.percent",
                    "dataType": "INTEGER",
                    "range": {"min": 30, "max": 80, "precision": 1},
                },
            },
            {
                "type": "devices.capabilities.mode",
                "instance": "gearMode",
                "parameters": {
                    "dataType": "ENUM",
                    "options": [
                        {"name": "Low", "value": 1},
                        {"name": "Medium", "value": 2},
                        {"name": "High", "value": 3},
                    ],
                },
            },
            {
                "type": "devices.capabilities.event",
                "instance": "lackWaterEvent",
                "alarmType": 51,
                "eventState": {"options": [{"name": "lack", "value": 1, "message": "Lack of Water"}]},
            },
            {"type": "devices.capabilities.event", "instance": "weirdXEvent"},
            {"type": "devices.capabilities.online", "instance": "online", "parameters": {"dataType": "ENUM"}},
            {"type": "devices.capabilities.work_mode", "instance": "workMode", "parameters": {"dataType": "STRUCT"}},
        ],
    }


def thermometer_payload() -> dict[str, Any]:
    return {
        "sku": "H5179",
        "device": THERMOMETER_ID,
        "deviceName": "Office Thermometer",
        "type": "devices.types.thermometer",
        "capabilities": [
            {"type": "devices.capabilities.online", "instance": "online"},
            {"type": "devices.capabilities.property", "instance": "sensorTemperature"},
            {"type": "devices.capabilities.property", "instance": "sensorHumidity"},
            {"type": "devices.capabilities.event", "instance": "lowBatteryEvent"},
        ],
    }


def _state(cap_type: str, instance: str, value: Any) -> dict[str, Any]:
    return {"type": f"devices.capabilities.{cap_type}", "instance": instance, "state": {"value": value}}


def humidifier_states() -> list[dict[str, Any]]:
    return [
        _state("on_off", "powerSwitch", 1),
        _state("range", "humidity", 55),
        _state("mode", "gearMode", 2),
        _state("event", "lackWaterEvent", 0),
        _state("event", "weirdXEvent", ""),
        _state("online", "online", True),
        _state("work_mode", "workMode", {"workMode": 1, "modeValue": 2}),
    ]


def thermometer_states() -> list[dict[str, Any]]:
    return [
        _state("online", "online", True),
        _state("property", "sensorTemperature", 21.5),
        _state("property", "sensorHumidity", 48),
        _state("event", "lowBatteryEvent", 0),
    ]


@dataclass
class RecordingPublisher:
    """In-memory stand-in for the MQTT runtime."""

    published: list[tuple[str, str, bool]] = field(default_factory=list)
    fail_matching: set[str] = field(default_factory=set)
    fail_with: type[Exception] = HassPublishError
    delay: float = 0.0
    in_flight: int = 0
    max_in_flight: int = 0

    async def publish(self, topic: str, payload: bytes | str, *, retain: bool = False) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if any(fragment in topic for fragment in self.fail_matching):
                if self.fail_with is HassPublishError:
                    raise HassPublishError(f"refused {topic}", topic=topic)
                raise self.fail_with(f"refused {topic}")
            text = payload.decode("utf-8") if isinstance(payload, bytes) else payload
            self.published.append((topic, text, retain))
        finally:
            self.in_flight -= 1

    def topics(self) -> list[str]:
        return [topic for topic, _, _ in self.published]

    def payloads(self, topic: str) -> list[str]:
        return [payload for t, payload, _ in self.published if t == topic]

    def config_topics(self) -> list[str]:
        return [topic for topic in self.topics() if topic.endswith("/config")]

    def state_topics(self) -> list[str]:
        return [topic for topic in self.topics() if topic.endswith("/state")]


@dataclass
class FakePlatform:
    """Minimal Platform API double implementing the ``Transport`` protocol."""

    devices: list[dict[str, Any]] = field(default_factory=lambda: [humidifier_payload(), thermometer_payload()])
    states: dict[str, list[dict[str, Any]]] = field(
        default_factory=lambda: {HUMIDIFIER_ID: humidifier_states(), THERMOMETER_ID: thermometer_states()}
    )
    state_error_codes: dict[str, int] = field(default_factory=dict)
    control_code: int = 200
    calls: list[tuple[str, str]] = field(default_factory=list)
    controls: list[dict[str, Any]] = field(default_factory=list)

    def set_value(self, device_id: str, instance: str, value: Any) -> None:
        for entry in self.states[device_id]:
            if entry["instance"] == instance:
                entry["state"] = {"value": value}
                return
        raise KeyError(instance)

    def call_count(self, endpoint: str) -> int:
        return sum(1 for _, e in self.calls if e == endpoint)

    async def request_json(
        self,
        method: str,
        endpoint: str,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        self.calls.append((method, endpoint))

        if endpoint == "/router/api/v1/user/devices":
            return {"code": 200, "message": "success", "data": copy.deepcopy(self.devices)}

        if endpoint == "/router/api/v1/device/state":
            assert body is not None
            device_id = body["payload"]["device"]
            code = self.state_error_codes.get(device_id)
            if code is not None:
                return {"requestId": body["requestId"], "code": code, "msg": "device state unavailable"}
            return {
                "requestId": body["requestId"],
                "msg": "success",
                "code": 200,
                "payload": {
                    "sku": body["payload"]["sku"],
                    "device": device_id,
                    "capabilities": copy.deepcopy(self.states.get(device_id, [])),
                },
            }

        if endpoint == "/router/api/v1/device/control":
            assert body is not None
            self.controls.append(body["payload"])
            return {"requestId": body["requestId"], "msg": "success", "code": self.control_code}

        raise AssertionError(f"Unexpected endpoint in fake platform: {endpoint}")


@pytest.fixture
def config() -> BridgeConfig:
    return BridgeConfig(api_key="test-key", max_concurrency=4)


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
def store() -> StateStore:
    """A store holding both sample devices and their states."""
    state_store = StateStore()
    for payload, states in (
        (humidifier_payload(), humidifier_states()),
        (thermometer_payload(), thermometer_states()),
    ):
        device = Device.model_validate(payload)
        state_store.upsert_device(device)
        for entry in states:
            state_store.upsert_capability(
                device.id,
                entry["instance"],
                entry["state"],
                capability_type=entry["type"],
            )
    return state_store

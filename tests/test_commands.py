from __future__ import annotations

from typing import Any

import pytest
from conftest import HUMIDIFIER_ID, THERMOMETER_ID, RecordingPublisher

from govee2hass._mqtt import MqttMessage
from govee2hass.config import BridgeConfig
from govee2hass.exceptions import GoveeApiError
from govee2hass.hass.commands import CommandRouter
from govee2hass.hass.driver import SyncDriver
from govee2hass.state.store import StateStore

SWITCH_COMMAND = "gv2mqtt/switch/switch-528BD4ADFC455DFE-powerSwitch/command"
SWITCH_STATE = "gv2mqtt/switch/switch-528BD4ADFC455DFE-powerSwitch/state"
NUMBER_COMMAND = "gv2mqtt/number/number-528BD4ADFC455DFE-humidity/command"


class _Controller:
    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[tuple[str, str, str, str, Any]] = []
        self.error = error

    async def __call__(self, device_id: str, sku: str, capability_type: str, instance: str, value: Any) -> None:
        self.calls.append((device_id, sku, capability_type, instance, value))
        if self.error is not None:
            raise self.error


async def _router(
    store: StateStore,
    publisher: RecordingPublisher,
    config: BridgeConfig,
    controller: _Controller,
) -> CommandRouter:
    driver = SyncDriver(store=store, publisher=publisher, config=config)
    await driver.startup()
    publisher.published.clear()
    return CommandRouter(driver=driver, store=store, publisher=publisher, controller=controller)


def _message(topic: str, payload: str) -> MqttMessage:
    return MqttMessage(topic=topic, payload=payload.encode("utf-8"))


@pytest.mark.asyncio
async def test_switch_command_reaches_device_and_updates_state(
    store: StateStore,
    publisher: RecordingPublisher,
    config: BridgeConfig,
) -> None:
    controller = _Controller()
    router = await _router(store, publisher, config, controller)

    handled = await router.handle(_message(SWITCH_COMMAND, "OFF"))

    assert handled is True
    assert controller.calls == [(HUMIDIFIER_ID, "H7143", "devices.capabilities.on_off", "powerSwitch", 0)]
    assert publisher.published == [(SWITCH_STATE, "OFF", False)]
    device = store.get_device(HUMIDIFIER_ID)
    assert device is not None
    assert device.get_capability("powerSwitch").state == {"value": 0}  # type: ignore[union-attr]


@pytest.mark.asyncio
async def test_number_command_is_clamped(
    store: StateStore,
    publisher: RecordingPublisher,
    config: BridgeConfig,
) -> None:
    controller = _Controller()
    router = await _router(store, publisher, config, controller)

    assert await router.handle(_message(NUMBER_COMMAND, "95")) is True

    assert controller.calls[0][3:] == ("humidity", 80)
    assert publisher.published[-1][1] == "80"


@pytest.mark.asyncio
async def test_unknown_topic_is_ignored(
    store: StateStore,
    publisher: RecordingPublisher,
    config: BridgeConfig,
) -> None:
    controller = _Controller()
    router = await _router(store, publisher, config, controller)

    assert await router.handle(_message("gv2mqtt/switch/nope/command", "ON")) is False
    assert controller.calls == []


@pytest.mark.asyncio
async def test_invalid_payload_is_rejected(
    store: StateStore,
    publisher: RecordingPublisher,
    config: BridgeConfig,
) -> None:
    controller = _Controller()
    router = await _router(store, publisher, config, controller)

    assert await router.handle(_message(SWITCH_COMMAND, "sideways")) is False
    assert controller.calls == []
    assert publisher.published == []


@pytest.mark.asyncio
async def test_device_error_leaves_state_untouched(
    store: StateStore,
    publisher: RecordingPublisher,
    config: BridgeConfig,
) -> None:
    controller = _Controller(error=GoveeApiError("device offline", code=400))
    router = await _router(store, publisher, config, controller)

    assert await router.handle(_message(SWITCH_COMMAND, "OFF")) is False

    device = store.get_device(HUMIDIFIER_ID)
    assert device is not None
    assert device.get_capability("powerSwitch").state == {"value": 1}  # type: ignore[union-attr]
    assert publisher.published == []


@pytest.mark.asyncio
async def test_command_for_removed_device_is_ignored(
    store: StateStore,
    publisher: RecordingPublisher,
    config: BridgeConfig,
) -> None:
    controller = _Controller()
    router = await _router(store, publisher, config, controller)
    store.remove_device(HUMIDIFIER_ID)

    assert await router.handle(_message(SWITCH_COMMAND, "ON")) is False
    assert controller.calls == []
    assert store.get_device(THERMOMETER_ID) is not None

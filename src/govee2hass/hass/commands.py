"""Routing of Home Assistant commands back to devices."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from govee2hass._log import TRACE
from govee2hass._mqtt import HassPublisher, MqttMessage
from govee2hass.exceptions import GoveeError, HassPublishError
from govee2hass.hass.driver import SyncDriver
from govee2hass.state.events import CapabilityEvent, IngestionSource
from govee2hass.state.store import StateStore

_logger = logging.getLogger(__name__)

# (device_id, sku, capability_type, instance, value)
DeviceController = Callable[[str, str, str, str, Any], Awaitable[None]]


class CommandRouter:
    """Turns a message on an entity's command topic into a device command.

    After the vendor accepts the command the new value is applied to the
    store optimistically and the entity state is re-published, so the hub
    does not wait for the next poll to reflect the change.
    """

    def __init__(
        self,
        *,
        driver: SyncDriver,
        store: StateStore,
        publisher: HassPublisher,
        controller: DeviceController,
    ) -> None:
        self._driver = driver
        self._store = store
        self._publisher = publisher
        self._controller = controller

    async def handle(self, message: MqttMessage) -> bool:
        entity = self._driver.entity_for_command_topic(message.topic)
        if entity is None:
            _logger.debug("No entity for command topic %s", message.topic)
            return False

        device = self._store.get_device(entity.device_id)
        capability = device.get_capability(entity.instance_name) if device is not None else None
        if device is None or capability is None:
            _logger.log(TRACE, "Command for vanished capability %s %s", entity.device_id, entity.instance_name)
            return False

        payload = message.text()
        try:
            value = entity.command_value(payload, capability)
        except ValueError as exc:
            _logger.warning("Ignoring command for %s: %s", entity.unique_id, exc)
            return False

        _logger.info("Command %s=%r for %s (%s)", capability.instance, value, device.display_name, device.id)
        try:
            await self._controller(device.id, device.sku, capability.type, capability.instance, value)
        except GoveeError as exc:
            _logger.warning("Command for %s failed: %s", entity.unique_id, exc)
            return False

        self._store.apply(
            CapabilityEvent(
                device_id=device.id,
                instance=capability.instance,
                capability_type=capability.type,
                source=IngestionSource.OPTIMISTIC,
                state={"value": value},
            )
        )
        try:
            await entity.notify_state(self._publisher)
        except HassPublishError as exc:
            _logger.warning("Failed to publish state for %s: %s", entity.unique_id, exc)
        return True

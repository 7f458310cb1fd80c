from __future__ import annotations

from typing import Any

from govee2hass._constants import PAYLOAD_OFF, PAYLOAD_ON
from govee2hass.hass.base import StateEntityConfig
from govee2hass.hass.instance import EntityInstance
from govee2hass.hass.rules import EntityKind, classify_alarm_event, classify_connectivity
from govee2hass.ingestion.normalize import is_active, value_at
from govee2hass.state.store import CapabilityView, DeviceView


class BinarySensorConfig(StateEntityConfig):
    payload_on: str | None = PAYLOAD_ON
    payload_off: str | None = PAYLOAD_OFF


class AlarmEventSensor(EntityInstance[BinarySensorConfig]):
    """Alarm-style event channel (low battery, lack of water, ...)."""

    kind = EntityKind.ALARM_EVENT

    @classmethod
    def build_descriptor(
        cls,
        *,
        device: DeviceView,
        capability: CapabilityView,
        base: dict[str, Any],
        command_topic: str,
    ) -> BinarySensorConfig:
        params = classify_alarm_event(capability.instance)
        return BinarySensorConfig(**base, **cls.params_fields(params))

    def render_state(self, capability: CapabilityView) -> str | None:
        # Missing or non-numeric values read as "no alarm".
        return PAYLOAD_ON if is_active(value_at(capability.state, "/value")) else PAYLOAD_OFF


class ConnectivitySensor(EntityInstance[BinarySensorConfig]):
    kind = EntityKind.CONNECTIVITY

    @classmethod
    def build_descriptor(
        cls,
        *,
        device: DeviceView,
        capability: CapabilityView,
        base: dict[str, Any],
        command_topic: str,
    ) -> BinarySensorConfig:
        params = classify_connectivity(capability.instance)
        return BinarySensorConfig(**base, **cls.params_fields(params))

    def render_state(self, capability: CapabilityView) -> str | None:
        value = value_at(capability.state, "/value")
        if isinstance(value, str):
            value = value.strip().lower() in {"true", "1", "online"}
        return PAYLOAD_ON if is_active(value) else PAYLOAD_OFF

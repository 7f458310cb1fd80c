from __future__ import annotations

from typing import Any

from govee2hass._constants import PAYLOAD_OFF, PAYLOAD_ON
from govee2hass.hass.base import StateEntityConfig
from govee2hass.hass.instance import EntityInstance
from govee2hass.hass.rules import EntityKind, classify_switch
from govee2hass.ingestion.normalize import is_active, value_at
from govee2hass.models.device import Capability
from govee2hass.state.store import CapabilityView, DeviceView


class SwitchConfig(StateEntityConfig):
    command_topic: str
    payload_on: str = PAYLOAD_ON
    payload_off: str = PAYLOAD_OFF


def _option_value(capability: Capability, name: str, default: int) -> Any:
    for option in capability.options:
        if option.name.lower() == name:
            return option.value
    return default


class CapabilitySwitch(EntityInstance[SwitchConfig]):
    """On/off and toggle capabilities (power, oscillation, night light, ...)."""

    kind = EntityKind.SWITCH

    @classmethod
    def build_descriptor(
        cls,
        *,
        device: DeviceView,
        capability: CapabilityView,
        base: dict[str, Any],
        command_topic: str,
    ) -> SwitchConfig:
        params = classify_switch(capability.instance)
        return SwitchConfig(**base, **cls.params_fields(params), command_topic=command_topic)

    def render_state(self, capability: CapabilityView) -> str | None:
        value = value_at(capability.state, "/value")
        on_value = _option_value(capability.capability, "on", 1)
        if value is not None and value == on_value:
            return PAYLOAD_ON
        return PAYLOAD_ON if is_active(value) else PAYLOAD_OFF

    def command_value(self, payload: str, capability: CapabilityView) -> Any:
        normalized = payload.strip().upper()
        if normalized == PAYLOAD_ON:
            return _option_value(capability.capability, "on", 1)
        if normalized == PAYLOAD_OFF:
            return _option_value(capability.capability, "off", 0)
        raise ValueError(f"expected {PAYLOAD_ON} or {PAYLOAD_OFF}, got {payload!r}")

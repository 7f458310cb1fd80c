from __future__ import annotations

from typing import Any

from govee2hass.hass.base import StateEntityConfig
from govee2hass.hass.instance import EntityInstance
from govee2hass.hass.rules import EntityKind, classify_generic, classify_property
from govee2hass.ingestion.normalize import format_compact, format_number, value_at
from govee2hass.state.store import CapabilityView, DeviceView


class SensorConfig(StateEntityConfig):
    unit_of_measurement: str | None = None
    state_class: str | None = None


class PropertySensor(EntityInstance[SensorConfig]):
    """Read-only numeric property (temperature, humidity, battery, ...)."""

    kind = EntityKind.PROPERTY

    @classmethod
    def build_descriptor(
        cls,
        *,
        device: DeviceView,
        capability: CapabilityView,
        base: dict[str, Any],
        command_topic: str,
    ) -> SensorConfig:
        params = classify_property(capability.instance, capability.capability.unit)
        return SensorConfig(
            **base,
            **cls.params_fields(params),
            unit_of_measurement=params.unit,
            state_class="measurement",
        )

    def render_state(self, capability: CapabilityView) -> str | None:
        return format_number(value_at(capability.state, "/value"))


class GenericCapabilitySensor(EntityInstance[SensorConfig]):
    """Diagnostic text sensor for capabilities no other rule understands."""

    kind = EntityKind.GENERIC

    @classmethod
    def build_descriptor(
        cls,
        *,
        device: DeviceView,
        capability: CapabilityView,
        base: dict[str, Any],
        command_topic: str,
    ) -> SensorConfig:
        params = classify_generic(capability.instance)
        return SensorConfig(**base, **cls.params_fields(params))

    def render_state(self, capability: CapabilityView) -> str | None:
        return format_compact(value_at(capability.state, "/value"))

from __future__ import annotations

from typing import Any

from govee2hass.hass.base import StateEntityConfig
from govee2hass.hass.instance import EntityInstance
from govee2hass.hass.rules import EntityKind, classify_number
from govee2hass.ingestion.normalize import format_number, safe_float, value_at
from govee2hass.state.store import CapabilityView, DeviceView


class NumberConfig(StateEntityConfig):
    command_topic: str
    min: float | None = None
    max: float | None = None
    step: float | None = None
    unit_of_measurement: str | None = None
    mode: str = "slider"


class CapabilityNumber(EntityInstance[NumberConfig]):
    """Range capabilities (brightness, target humidity, volume, ...)."""

    kind = EntityKind.NUMBER

    @classmethod
    def build_descriptor(
        cls,
        *,
        device: DeviceView,
        capability: CapabilityView,
        base: dict[str, Any],
        command_topic: str,
    ) -> NumberConfig:
        params = classify_number(capability.instance, capability.capability.unit)
        bounds = capability.capability.value_range
        return NumberConfig(
            **base,
            **cls.params_fields(params),
            command_topic=command_topic,
            min=bounds.min if bounds is not None else None,
            max=bounds.max if bounds is not None else None,
            step=bounds.precision if bounds is not None else None,
            unit_of_measurement=params.unit,
        )

    def render_state(self, capability: CapabilityView) -> str | None:
        return format_number(value_at(capability.state, "/value"))

    def command_value(self, payload: str, capability: CapabilityView) -> Any:
        requested = safe_float(payload.strip())
        if requested is None:
            raise ValueError(f"expected a number, got {payload!r}")
        bounds = capability.capability.value_range
        if bounds is not None:
            if bounds.min is not None:
                requested = max(bounds.min, requested)
            if bounds.max is not None:
                requested = min(bounds.max, requested)
        # Platform API range capabilities are INTEGER typed.
        return int(round(requested))

from __future__ import annotations

from typing import Any

from govee2hass.hass.base import StateEntityConfig
from govee2hass.hass.instance import EntityInstance
from govee2hass.hass.rules import EntityKind, classify_select
from govee2hass.ingestion.normalize import value_at
from govee2hass.state.store import CapabilityView, DeviceView


class SelectConfig(StateEntityConfig):
    command_topic: str
    options: list[str]


class CapabilitySelect(EntityInstance[SelectConfig]):
    """Mode capabilities with a fixed option list (gear mode, scenes, ...)."""

    kind = EntityKind.SELECT

    @classmethod
    def build_descriptor(
        cls,
        *,
        device: DeviceView,
        capability: CapabilityView,
        base: dict[str, Any],
        command_topic: str,
    ) -> SelectConfig:
        params = classify_select(capability.instance)
        return SelectConfig(
            **base,
            **cls.params_fields(params),
            command_topic=command_topic,
            options=[option.name for option in capability.capability.options],
        )

    def render_state(self, capability: CapabilityView) -> str | None:
        value = value_at(capability.state, "/value")
        if value is None:
            return None
        for option in capability.capability.options:
            if option.value == value:
                return option.name
        return None

    def command_value(self, payload: str, capability: CapabilityView) -> Any:
        wanted = payload.strip()
        for option in capability.capability.options:
            if option.name == wanted:
                return option.value
        raise ValueError(f"unknown option {payload!r}")

"""Typed models for Govee Platform API payloads."""

from govee2hass.models.device import Capability, CapabilityOption, CapabilityRange, CapabilityState, Device

__all__ = [
    "Capability",
    "CapabilityOption",
    "CapabilityRange",
    "CapabilityState",
    "Device",
]

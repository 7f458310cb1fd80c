"""Device and capability models."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator

from govee2hass.ingestion.normalize import safe_float, safe_str
from govee2hass.models._base import GoveeBaseModel


class CapabilityOption(GoveeBaseModel):
    """One named value of an ENUM capability (``{"name": "on", "value": 1}``)."""

    name: str = ""
    value: Any = None


class CapabilityRange(GoveeBaseModel):
    """Numeric bounds of an INTEGER capability."""

    min: float | None = None
    max: float | None = None
    precision: float | None = None

    @field_validator("min", "max", "precision", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)


class Capability(GoveeBaseModel):
    """A capability descriptor as listed by ``/router/api/v1/user/devices``.

    The ``parameters`` bag is vendor-defined and capability specific; only
    the ENUM ``options`` and INTEGER ``range``/``unit`` shapes are
    interpreted here.
    """

    type: str = Field(default="", validation_alias=AliasChoices("type"))
    """Capability type (e.g. ``"devices.capabilities.on_off"``)."""
    instance: str = ""
    """Capability instance name (e.g. ``"powerSwitch"``, ``"lackWaterEvent"``)."""
    parameters: dict[str, Any] = Field(default_factory=dict)
    """Vendor-defined parameter description."""

    @property
    def options(self) -> list[CapabilityOption]:
        raw_options = self.parameters.get("options")
        if not isinstance(raw_options, list):
            return []
        return [CapabilityOption.model_validate(item) for item in raw_options if isinstance(item, dict)]

    @property
    def value_range(self) -> CapabilityRange | None:
        raw_range = self.parameters.get("range")
        if not isinstance(raw_range, dict):
            return None
        return CapabilityRange.model_validate(raw_range)

    @property
    def unit(self) -> str | None:
        return safe_str(self.parameters.get("unit"))


class Device(GoveeBaseModel):
    """A device associated with the API key's account."""

    id: str = Field(default="", validation_alias=AliasChoices("device", "id"))
    """Device identifier (MAC-like string, e.g. ``"52:8B:D4:AD:FC:45:5D:FE"``)."""
    sku: str = ""
    """Model number (e.g. ``"H7143"``)."""
    device_name: str = ""
    """User-assigned display name."""
    device_type: str = Field(default="", validation_alias=AliasChoices("type", "deviceType", "device_type"))
    """Device category (e.g. ``"devices.types.humidifier"``)."""
    capabilities: list[Capability] = Field(default_factory=list)
    """Capability descriptors, in API order."""

    @property
    def display_name(self) -> str:
        return self.device_name or self.sku or self.id


class CapabilityState(GoveeBaseModel):
    """A capability's current state from ``/router/api/v1/device/state``."""

    type: str = Field(default="", validation_alias=AliasChoices("type"))
    instance: str = ""
    state: dict[str, Any] = Field(default_factory=dict)
    """Raw attribute bag, usually ``{"value": ...}``."""

    @field_validator("state", mode="before")
    @classmethod
    def _coerce_state(cls, value: Any) -> dict[str, Any]:
        return value if isinstance(value, dict) else {}

"""Capability-to-entity mapping rules.

Every function here is pure and total: any capability, and any instance
name, gets exactly one answer. Instance names are free-form vendor
strings, so matching is exact or suffix based and case-preserving; a name
no rule recognizes falls through to a generic variant instead of being
dropped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

from govee2hass._constants import (
    CAP_EVENT,
    CAP_MODE,
    CAP_ON_OFF,
    CAP_ONLINE,
    CAP_PROPERTY,
    CAP_RANGE,
    CAP_TOGGLE,
)
from govee2hass.hass.base import EntityFamily
from govee2hass.models.device import Capability

DIAGNOSTIC = "diagnostic"


class EntityKind(StrEnum):
    """The closed catalog of entity variants the bridge can produce."""

    ALARM_EVENT = "alarm_event"
    CONNECTIVITY = "connectivity"
    PROPERTY = "property"
    SWITCH = "switch"
    NUMBER = "number"
    SELECT = "select"
    GENERIC = "generic"

    @property
    def family(self) -> EntityFamily:
        return _KIND_FAMILIES[self]


_KIND_FAMILIES: dict[EntityKind, EntityFamily] = {
    EntityKind.ALARM_EVENT: EntityFamily.BINARY_SENSOR,
    EntityKind.CONNECTIVITY: EntityFamily.BINARY_SENSOR,
    EntityKind.PROPERTY: EntityFamily.SENSOR,
    EntityKind.SWITCH: EntityFamily.SWITCH,
    EntityKind.NUMBER: EntityFamily.NUMBER,
    EntityKind.SELECT: EntityFamily.SELECT,
    EntityKind.GENERIC: EntityFamily.SENSOR,
}


@dataclass(frozen=True)
class EntityParams:
    """Descriptor fields a rule decides for one capability."""

    name: str
    device_class: str | None = None
    icon: str | None = None
    unit: str | None = None
    entity_category: str | None = None


def kind_for(capability: Capability) -> EntityKind:
    """Pick the entity variant for *capability*."""
    cap_type = capability.type
    if cap_type == CAP_EVENT:
        return EntityKind.ALARM_EVENT
    if cap_type == CAP_ONLINE:
        return EntityKind.CONNECTIVITY
    if cap_type == CAP_PROPERTY:
        return EntityKind.PROPERTY
    if cap_type in (CAP_ON_OFF, CAP_TOGGLE):
        return EntityKind.SWITCH
    if cap_type == CAP_RANGE:
        return EntityKind.NUMBER
    if cap_type == CAP_MODE and capability.options:
        return EntityKind.SELECT
    return EntityKind.GENERIC


_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def humanize(instance: str) -> str:
    """``"nightlightScene"`` -> ``"Nightlight Scene"``."""
    words = _CAMEL_BOUNDARY.sub(" ", instance).replace("_", " ").split()
    if not words:
        return instance or "Unknown"
    return " ".join(word[:1].upper() + word[1:] for word in words)


def _strip_suffix(instance: str, suffix: str) -> str:
    if instance.endswith(suffix) and len(instance) > len(suffix):
        return instance[: -len(suffix)]
    return instance


_UNITS: dict[str, str] = {
    "unit.percent": "%",
    "unit.celsius": "°C",
    "unit.fahrenheit": "°F",
    "unit.kelvin": "K",
}


def unit_symbol(unit: str | None) -> str | None:
    """Map a Platform API unit identifier onto a Home Assistant unit."""
    if unit is None:
        return None
    return _UNITS.get(unit, unit.removeprefix("unit."))


# ---------------------------------------------------------------------------
# Binary sensor: alarm events
# ---------------------------------------------------------------------------

_ALARM_EXACT: dict[str, tuple[str | None, str]] = {
    "lowBatteryEvent": ("battery", "Low Battery"),
    "lackWaterEvent": ("problem", "Water Level Alert"),
    "temperatureAlarmEvent": ("problem", "Temperature Alarm"),
    "tempAlarmEvent": ("problem", "Temperature Alarm"),
    "humidityAlarmEvent": ("problem", "Humidity Alarm"),
    "humAlarmEvent": ("problem", "Humidity Alarm"),
}


def classify_alarm_event(instance: str) -> EntityParams:
    """Exact names first, then ``*AlarmEvent``, then ``*Event``, then generic."""
    exact = _ALARM_EXACT.get(instance)
    if exact is not None:
        device_class, name = exact
    elif instance.endswith("AlarmEvent"):
        device_class, name = "problem", "Alarm"
    elif instance.endswith("Event"):
        device_class, name = None, "Alert"
    else:
        device_class, name = None, "Event"
    return EntityParams(name=name, device_class=device_class, entity_category=DIAGNOSTIC)


def classify_connectivity(instance: str) -> EntityParams:
    return EntityParams(name="Connectivity", device_class="connectivity", entity_category=DIAGNOSTIC)


# ---------------------------------------------------------------------------
# Sensor: numeric properties
# ---------------------------------------------------------------------------

_PROPERTY_EXACT: dict[str, EntityParams] = {
    "sensorTemperature": EntityParams(name="Temperature", device_class="temperature", unit="°C"),
    "sensorHumidity": EntityParams(name="Humidity", device_class="humidity", unit="%"),
    "battery": EntityParams(name="Battery", device_class="battery", unit="%", entity_category=DIAGNOSTIC),
    "filterLifeTime": EntityParams(name="Filter Life", icon="mdi:air-filter", unit="%"),
    "airQuality": EntityParams(name="Air Quality", icon="mdi:air-filter"),
}


def classify_property(instance: str, unit: str | None = None) -> EntityParams:
    """Exact names first, then ``*Temperature``/``*Humidity``/``*Battery``."""
    unit_override = unit_symbol(unit)
    params = _PROPERTY_EXACT.get(instance)
    if params is None:
        if instance.endswith("Temperature"):
            params = EntityParams(name=humanize(instance), device_class="temperature", unit="°C")
        elif instance.endswith("Humidity"):
            params = EntityParams(name=humanize(instance), device_class="humidity", unit="%")
        elif instance.endswith("Battery"):
            params = EntityParams(
                name=humanize(instance),
                device_class="battery",
                unit="%",
                entity_category=DIAGNOSTIC,
            )
        else:
            params = EntityParams(name=humanize(instance))
    if unit_override is not None:
        params = EntityParams(
            name=params.name,
            device_class=params.device_class,
            icon=params.icon,
            unit=unit_override,
            entity_category=params.entity_category,
        )
    return params


def classify_generic(instance: str) -> EntityParams:
    return EntityParams(name=humanize(instance), icon="mdi:information-outline", entity_category=DIAGNOSTIC)


# ---------------------------------------------------------------------------
# Switch / number / select
# ---------------------------------------------------------------------------

_SWITCH_EXACT: dict[str, EntityParams] = {
    "powerSwitch": EntityParams(name="Power", icon="mdi:power"),
    "oscillationToggle": EntityParams(name="Oscillation", icon="mdi:arrow-oscillating"),
    "nightlightToggle": EntityParams(name="Night Light", icon="mdi:lightbulb-night"),
    "gradientToggle": EntityParams(name="Gradient", icon="mdi:gradient-horizontal"),
    "thermostatToggle": EntityParams(name="Thermostat", icon="mdi:thermostat"),
    "warmMistToggle": EntityParams(name="Warm Mist", icon="mdi:weather-fog"),
}


def classify_switch(instance: str) -> EntityParams:
    params = _SWITCH_EXACT.get(instance)
    if params is not None:
        return params
    base = _strip_suffix(_strip_suffix(instance, "Toggle"), "Switch")
    return EntityParams(name=humanize(base), icon="mdi:toggle-switch")


_NUMBER_ICONS: dict[str, str] = {
    "brightness": "mdi:brightness-6",
    "humidity": "mdi:water-percent",
    "volume": "mdi:volume-high",
    "temperature": "mdi:thermometer",
}


def classify_number(instance: str, unit: str | None = None) -> EntityParams:
    icon = _NUMBER_ICONS.get(instance)
    if icon is None:
        for suffix, suffix_icon in _NUMBER_ICONS.items():
            if instance.endswith(suffix[:1].upper() + suffix[1:]):
                icon = suffix_icon
                break
    return EntityParams(name=humanize(instance), icon=icon, unit=unit_symbol(unit))


def classify_select(instance: str) -> EntityParams:
    icon = "mdi:palette" if instance.endswith("Scene") else "mdi:format-list-bulleted"
    return EntityParams(name=humanize(instance), icon=icon)

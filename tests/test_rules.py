from __future__ import annotations

import pytest

from govee2hass.hass.base import EntityFamily
from govee2hass.hass.rules import (
    EntityKind,
    classify_alarm_event,
    classify_number,
    classify_property,
    classify_select,
    classify_switch,
    humanize,
    kind_for,
    unit_symbol,
)
from govee2hass.models.device import Capability


@pytest.mark.parametrize(
    ("instance", "device_class", "name"),
    [
        ("lowBatteryEvent", "battery", "Low Battery"),
        ("lackWaterEvent", "problem", "Water Level Alert"),
        ("temperatureAlarmEvent", "problem", "Temperature Alarm"),
        ("smokeAlarmEvent", "problem", "Alarm"),
        ("weirdXEvent", None, "Alert"),
        ("LowBatteryEvent", None, "Alert"),
        ("bodyAppearedState", None, "Event"),
        ("", None, "Event"),
    ],
)
def test_alarm_event_classification(instance: str, device_class: str | None, name: str) -> None:
    params = classify_alarm_event(instance)

    assert params.device_class == device_class
    assert params.name == name
    assert params.entity_category == "diagnostic"


@pytest.mark.parametrize(
    ("capability", "kind"),
    [
        (Capability(type="devices.capabilities.event", instance="lowBatteryEvent"), EntityKind.ALARM_EVENT),
        (Capability(type="devices.capabilities.online", instance="online"), EntityKind.CONNECTIVITY),
        (Capability(type="devices.capabilities.property", instance="sensorTemperature"), EntityKind.PROPERTY),
        (Capability(type="devices.capabilities.on_off", instance="powerSwitch"), EntityKind.SWITCH),
        (Capability(type="devices.capabilities.toggle", instance="oscillationToggle"), EntityKind.SWITCH),
        (Capability(type="devices.capabilities.range", instance="brightness"), EntityKind.NUMBER),
        (
            Capability(
                type="devices.capabilities.mode",
                instance="gearMode",
                parameters={"options": [{"name": "Low", "value": 1}]},
            ),
            EntityKind.SELECT,
        ),
        (Capability(type="devices.capabilities.mode", instance="gearMode"), EntityKind.GENERIC),
        (Capability(type="devices.capabilities.dynamic_scene", instance="lightScene"), EntityKind.GENERIC),
        (Capability(), EntityKind.GENERIC),
    ],
)
def test_kind_for_is_total(capability: Capability, kind: EntityKind) -> None:
    assert kind_for(capability) is kind


def test_every_kind_has_a_family() -> None:
    assert {kind.family for kind in EntityKind} <= set(EntityFamily)
    assert EntityKind.ALARM_EVENT.family is EntityFamily.BINARY_SENSOR
    assert EntityKind.GENERIC.family is EntityFamily.SENSOR


@pytest.mark.parametrize(
    ("instance", "expected"),
    [
        ("nightlightScene", "Nightlight Scene"),
        ("sensorTemperature", "Sensor Temperature"),
        ("PM25Value", "PM25 Value"),
        ("snake_case_name", "Snake Case Name"),
        ("", "Unknown"),
    ],
)
def test_humanize(instance: str, expected: str) -> None:
    assert humanize(instance) == expected


def test_property_classification() -> None:
    temperature = classify_property("sensorTemperature")
    assert (temperature.name, temperature.device_class, temperature.unit) == ("Temperature", "temperature", "°C")

    reading = classify_property("probeTemperature", "unit.fahrenheit")
    assert (reading.name, reading.device_class, reading.unit) == ("Probe Temperature", "temperature", "°F")

    battery = classify_property("battery")
    assert battery.entity_category == "diagnostic"

    other = classify_property("airPressure")
    assert (other.name, other.device_class, other.unit) == ("Air Pressure", None, None)


def test_switch_number_select_classification() -> None:
    assert classify_switch("powerSwitch").name == "Power"
    assert classify_switch("fanToggle").name == "Fan"
    assert classify_number("brightness").icon == "mdi:brightness-6"
    assert classify_number("targetHumidity", "unit.percent").icon == "mdi:water-percent"
    assert classify_number("targetHumidity", "unit.percent").unit == "%"
    assert classify_select("nightlightScene").icon == "mdi:palette"
    assert classify_select("gearMode").name == "Gear Mode"


def test_unit_symbol() -> None:
    assert unit_symbol("unit.percent") == "%"
    assert unit_symbol("unit.lux") == "lux"
    assert unit_symbol(None) is None

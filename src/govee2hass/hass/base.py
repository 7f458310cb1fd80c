"""Home Assistant MQTT discovery descriptors and topic helpers.

Descriptors are pydantic models serialized with ``exclude_none`` so fields
without a value are left out of the discovery document instead of being
sent as ``null``. Serialization is fully in memory; a descriptor reaches
the broker as one complete payload.
"""

from __future__ import annotations

import re
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from govee2hass._constants import MANUFACTURER, ORIGIN_NAME, ORIGIN_URL
from govee2hass._mqtt import HassPublisher
from govee2hass.state.store import DeviceView

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9]")
_MAC_LIKE = re.compile(r"^[0-9A-Fa-f]{2}(:[0-9A-Fa-f]{2})+$")


class EntityFamily(StrEnum):
    """Home Assistant integration (platform) names the bridge publishes to."""

    BINARY_SENSOR = "binary_sensor"
    SENSOR = "sensor"
    SWITCH = "switch"
    NUMBER = "number"
    SELECT = "select"

    @property
    def slug(self) -> str:
        return self.value.replace("_", "-")


def topic_safe_string(text: str) -> str:
    """Make *text* usable as a single topic level and unique-id component.

    Letters and digits pass through; every other character (``_``
    included) becomes ``_<hex codepoint>_``, so distinct inputs always
    give distinct outputs. ``"lowBatteryEvent"`` stays as is,
    ``"a b"`` becomes ``"a_20_b"``.
    """
    if not text:
        return "_"
    return _UNSAFE_CHARS.sub(lambda m: f"_{ord(m.group(0)):x}_", text)


def topic_safe_id(device_id: str) -> str:
    """Topic-safe form of a device id.

    MAC-style ids just lose their colons and so come out as bare hex. Any
    other id is escaped and gets a leading ``_``, which bare hex never has,
    so ``"AA:BB"`` and ``"AABB"`` stay distinct.
    """
    if _MAC_LIKE.match(device_id):
        return device_id.replace(":", "")
    return f"_{topic_safe_string(device_id)}"


def entity_unique_id(family: EntityFamily, device_id: str, instance: str) -> str:
    """Deterministic unique id for the entity of *instance* on *device_id*.

    Neither id component can contain ``-``, so the mapping is injective.
    """
    return f"{family.slug}-{topic_safe_id(device_id)}-{topic_safe_string(instance)}"


def config_topic(discovery_prefix: str, family: EntityFamily, unique_id: str) -> str:
    return f"{discovery_prefix}/{family.value}/{unique_id}/config"


def state_topic(namespace: str, family: EntityFamily, unique_id: str) -> str:
    return f"{namespace}/{family.value}/{unique_id}/state"


def command_topic(namespace: str, family: EntityFamily, unique_id: str) -> str:
    return f"{namespace}/{family.value}/{unique_id}/command"


def _package_version() -> str:
    from govee2hass import __version__

    return __version__


class Origin(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ORIGIN_NAME
    sw_version: str = Field(default_factory=_package_version)
    support_url: str = ORIGIN_URL


class DeviceInfo(BaseModel):
    """The ``device`` block linking an entity to its Home Assistant device."""

    model_config = ConfigDict(frozen=True)

    name: str
    manufacturer: str = MANUFACTURER
    model: str | None = None
    identifiers: list[str]
    via_device: str | None = None

    @classmethod
    def for_device(cls, device: DeviceView, namespace: str) -> DeviceInfo:
        return cls(
            name=device.display_name,
            model=device.sku or None,
            identifiers=[f"{namespace}-{topic_safe_id(device.id)}"],
        )


class EntityConfig(BaseModel):
    """Fields shared by every discovery descriptor."""

    model_config = ConfigDict(frozen=True)

    availability_topic: str
    name: str | None = None
    entity_category: str | None = None
    origin: Origin = Field(default_factory=Origin)
    device: DeviceInfo
    unique_id: str
    device_class: str | None = None
    icon: str | None = None


class StateEntityConfig(EntityConfig):
    state_topic: str


def serialize_config(config: EntityConfig) -> bytes:
    """Render a descriptor into its final discovery payload."""
    return config.model_dump_json(exclude_none=True).encode("utf-8")


async def publish_entity_config(
    family: EntityFamily,
    discovery_prefix: str,
    publisher: HassPublisher,
    config: EntityConfig,
) -> None:
    topic = config_topic(discovery_prefix, family, config.unique_id)
    await publisher.publish(topic, serialize_config(config), retain=True)

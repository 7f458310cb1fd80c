"""Entity instance abstraction.

An entity instance pairs one discovery descriptor with the logic to
publish it and to recompute its state. It keeps only the identifying keys
``(device_id, instance_name)`` and a handle to the state store; the
capability state is looked up again on every publish so a long-lived
instance never works from a stale copy.
"""

from __future__ import annotations

import abc
import logging
from typing import Any, ClassVar, Generic, TypeVar

from govee2hass._log import TRACE
from govee2hass._mqtt import HassPublisher
from govee2hass.config import BridgeConfig
from govee2hass.hass.base import (
    DeviceInfo,
    EntityFamily,
    StateEntityConfig,
    command_topic,
    entity_unique_id,
    publish_entity_config,
    state_topic,
)
from govee2hass.hass.rules import EntityKind, EntityParams
from govee2hass.state.store import CapabilityView, DeviceView, StateStore

_logger = logging.getLogger(__name__)

TConfig = TypeVar("TConfig", bound=StateEntityConfig)


class EntityInstance(abc.ABC, Generic[TConfig]):
    """Base class for every entity variant in :class:`EntityKind`."""

    kind: ClassVar[EntityKind]

    def __init__(
        self,
        *,
        descriptor: TConfig,
        device_id: str,
        instance_name: str,
        state: StateStore,
        config: BridgeConfig,
    ) -> None:
        self.descriptor = descriptor
        self.device_id = device_id
        self.instance_name = instance_name
        self._state = state
        self._config = config

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.unique_id!r})"

    @property
    def family(self) -> EntityFamily:
        return self.kind.family

    @property
    def unique_id(self) -> str:
        return self.descriptor.unique_id

    @property
    def command_topic(self) -> str | None:
        return getattr(self.descriptor, "command_topic", None)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def for_capability(
        cls,
        device: DeviceView,
        capability: CapabilityView,
        state: StateStore,
        config: BridgeConfig,
    ) -> EntityInstance[Any]:
        """Build the instance for *capability* on *device*."""
        family = cls.kind.family
        unique_id = entity_unique_id(family, device.id, capability.instance)
        descriptor = cls.build_descriptor(
            device=device,
            capability=capability,
            base={
                "availability_topic": config.availability_topic,
                "device": DeviceInfo.for_device(device, config.topic_namespace),
                "unique_id": unique_id,
                "state_topic": state_topic(config.topic_namespace, family, unique_id),
            },
            command_topic=command_topic(config.topic_namespace, family, unique_id),
        )
        return cls(
            descriptor=descriptor,
            device_id=device.id,
            instance_name=capability.instance,
            state=state,
            config=config,
        )

    @staticmethod
    def params_fields(params: EntityParams) -> dict[str, Any]:
        return {
            "name": params.name,
            "device_class": params.device_class,
            "icon": params.icon,
            "entity_category": params.entity_category,
        }

    @classmethod
    @abc.abstractmethod
    def build_descriptor(
        cls,
        *,
        device: DeviceView,
        capability: CapabilityView,
        base: dict[str, Any],
        command_topic: str,
    ) -> TConfig:
        """Derive the family descriptor from the capability."""

    @abc.abstractmethod
    def render_state(self, capability: CapabilityView) -> str | None:
        """Turn the raw state into a state payload, or ``None`` to skip."""

    def command_value(self, payload: str, capability: CapabilityView) -> Any:
        """Translate a hub command payload into a Platform API value."""
        raise ValueError(f"{self.family.value} entities do not accept commands")

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    async def publish_config(self, publisher: HassPublisher) -> None:
        await publish_entity_config(self.family, self._config.discovery_prefix, publisher, self.descriptor)

    async def notify_state(self, publisher: HassPublisher) -> bool:
        """Publish the current state; ``False`` when there was nothing to publish."""
        device = self._state.get_device(self.device_id)
        capability = device.get_state_capability_by_instance(self.instance_name) if device is not None else None
        if capability is None:
            _logger.log(
                TRACE,
                "%s.notify_state: didn't find state for %s %s",
                type(self).__name__,
                self.device_id,
                self.instance_name,
            )
            return False

        payload = self.render_state(capability)
        if payload is None:
            _logger.debug(
                "%s.notify_state: no usable value for %s in %s",
                type(self).__name__,
                self.unique_id,
                capability.state,
            )
            return False
        await publisher.publish(self.descriptor.state_topic, payload)
        return True

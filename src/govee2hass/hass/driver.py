"""Sync driver.

Owns the entity instances and decides when their discovery configs and
states get published:

- startup: every capability of every known device, all configs first, then
  all states;
- capability change: only the entities of that ``(device, instance)``,
  publishing the config the first time a unique id is seen and the state
  every time.

Publishes fan out concurrently, bounded by ``max_concurrency``. A failing
publish is logged and counted; it never cancels its siblings.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

from govee2hass._mqtt import HassPublisher
from govee2hass.config import BridgeConfig
from govee2hass.exceptions import HassPublishError
from govee2hass.hass.binary_sensor import AlarmEventSensor, ConnectivitySensor
from govee2hass.hass.instance import EntityInstance
from govee2hass.hass.number import CapabilityNumber
from govee2hass.hass.rules import EntityKind, kind_for
from govee2hass.hass.select import CapabilitySelect
from govee2hass.hass.sensor import GenericCapabilitySensor, PropertySensor
from govee2hass.hass.switch import CapabilitySwitch
from govee2hass.state.store import StateStore

_logger = logging.getLogger(__name__)

_T = TypeVar("_T")

ENTITY_CLASSES: dict[EntityKind, type[EntityInstance[Any]]] = {
    EntityKind.ALARM_EVENT: AlarmEventSensor,
    EntityKind.CONNECTIVITY: ConnectivitySensor,
    EntityKind.PROPERTY: PropertySensor,
    EntityKind.SWITCH: CapabilitySwitch,
    EntityKind.NUMBER: CapabilityNumber,
    EntityKind.SELECT: CapabilitySelect,
    EntityKind.GENERIC: GenericCapabilitySensor,
}


@dataclass
class SyncResult:
    configs_published: int = 0
    states_published: int = 0
    # Entities with no received or no readable state yet.
    states_skipped: int = 0
    failures: int = 0

    def merge(self, other: SyncResult) -> None:
        self.configs_published += other.configs_published
        self.states_published += other.states_published
        self.states_skipped += other.states_skipped
        self.failures += other.failures


class SyncDriver:
    """Materializes entity instances from the store and publishes them."""

    def __init__(
        self,
        *,
        store: StateStore,
        publisher: HassPublisher,
        config: BridgeConfig,
    ) -> None:
        self._store = store
        self._publisher = publisher
        self._config = config
        self._semaphore = asyncio.Semaphore(config.max_concurrency)
        self._entities: dict[str, EntityInstance[Any]] = {}
        self._by_command_topic: dict[str, EntityInstance[Any]] = {}
        self._published: set[str] = set()
        self._config_locks: dict[str, asyncio.Lock] = {}
        self._queue: asyncio.Queue[tuple[str, str] | None] = asyncio.Queue()

    @property
    def entities(self) -> list[EntityInstance[Any]]:
        return list(self._entities.values())

    def command_topics(self) -> list[str]:
        return sorted(self._by_command_topic)

    def entity_for_command_topic(self, topic: str) -> EntityInstance[Any] | None:
        return self._by_command_topic.get(topic)

    def is_config_published(self, unique_id: str) -> bool:
        return unique_id in self._published

    # ------------------------------------------------------------------
    # Entity construction
    # ------------------------------------------------------------------

    def build_entities(self, device_id: str, instance: str | None = None) -> list[EntityInstance[Any]]:
        """Run the mapping rules for a device (or one of its capabilities)."""
        device = self._store.get_device(device_id)
        if device is None:
            return []
        if instance is None:
            capabilities = list(device.capabilities)
        else:
            cap = device.get_capability(instance)
            capabilities = [cap] if cap is not None else []

        entities: list[EntityInstance[Any]] = []
        for capability in capabilities:
            entity_cls = ENTITY_CLASSES[kind_for(capability.capability)]
            entity = entity_cls.for_capability(device, capability, self._store, self._config)
            self._register(entity)
            entities.append(entity)
        return entities

    def _register(self, entity: EntityInstance[Any]) -> None:
        previous = self._entities.get(entity.unique_id)
        if previous is not None and previous.descriptor != entity.descriptor:
            # Descriptor changed (renamed device, new options): announce again.
            self._published.discard(entity.unique_id)
        self._entities[entity.unique_id] = entity
        topic = entity.command_topic
        if topic is not None:
            self._by_command_topic[topic] = entity

    def forget_device(self, device_id: str) -> None:
        self._forget(lambda entity: entity.device_id == device_id)

    def forget_capability(self, device_id: str, instance: str) -> None:
        """Drop the entity of a capability that is no longer listed."""
        self._forget(lambda entity: entity.device_id == device_id and entity.instance_name == instance)

    def _forget(self, match: Callable[[EntityInstance[Any]], bool]) -> None:
        for unique_id, entity in list(self._entities.items()):
            if not match(entity):
                continue
            del self._entities[unique_id]
            self._published.discard(unique_id)
            self._config_locks.pop(unique_id, None)
            if entity.command_topic is not None:
                self._by_command_topic.pop(entity.command_topic, None)

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    async def _guarded(
        self,
        op: str,
        entity: EntityInstance[Any],
        call: Callable[[], Awaitable[_T]],
    ) -> tuple[bool, _T | None]:
        """Run one publish under the concurrency bound; ``(ok, result)``."""
        async with self._semaphore:
            try:
                return True, await call()
            except HassPublishError as exc:
                _logger.warning("Failed to publish %s for %s: %s", op, entity.unique_id, exc)
            except Exception:
                _logger.exception("Unexpected error publishing %s for %s", op, entity.unique_id)
        return False, None

    async def _ensure_config(self, entity: EntityInstance[Any]) -> tuple[bool, bool]:
        """Publish the config once per unique id.

        Returns ``(ok, published_now)``.
        """
        lock = self._config_locks.setdefault(entity.unique_id, asyncio.Lock())
        async with lock:
            if entity.unique_id in self._published:
                return True, False
            ok, _ = await self._guarded("config", entity, lambda: entity.publish_config(self._publisher))
            if ok:
                self._published.add(entity.unique_id)
            return ok, ok

    async def _sync_state(self, entity: EntityInstance[Any], result: SyncResult) -> None:
        ok, published = await self._guarded("state", entity, lambda: entity.notify_state(self._publisher))
        if not ok:
            result.failures += 1
        elif published:
            result.states_published += 1
        else:
            result.states_skipped += 1

    async def _sync_entity(self, entity: EntityInstance[Any]) -> SyncResult:
        result = SyncResult()
        ok, published_now = await self._ensure_config(entity)
        if published_now:
            result.configs_published += 1
        if not ok:
            # No state before the hub has discovered the entity.
            result.failures += 1
            return result
        await self._sync_state(entity, result)
        return result

    async def publish_all(self, entities: Iterable[EntityInstance[Any]]) -> SyncResult:
        """Publish every config, then every state whose config went out."""
        entities = list(entities)
        result = SyncResult()

        config_outcomes = await asyncio.gather(*(self._ensure_config(entity) for entity in entities))
        ready: list[EntityInstance[Any]] = []
        for entity, (ok, published_now) in zip(entities, config_outcomes, strict=True):
            if published_now:
                result.configs_published += 1
            if ok:
                ready.append(entity)
            else:
                result.failures += 1

        await asyncio.gather(*(self._sync_state(entity, result) for entity in ready))
        return result

    async def startup(self) -> SyncResult:
        """Build and publish everything the store currently knows about."""
        entities: list[EntityInstance[Any]] = []
        for device_id in self._store.device_ids():
            entities.extend(self.build_entities(device_id))
        result = await self.publish_all(entities)
        _logger.info(
            "Startup sync: %d entities, %d configs, %d states, %d skipped, %d failures",
            len(entities),
            result.configs_published,
            result.states_published,
            result.states_skipped,
            result.failures,
        )
        return result

    async def republish_all(self) -> SyncResult:
        """Forget what was announced and publish everything again.

        Used when Home Assistant restarts and has lost non-retained state.
        """
        self._published.clear()
        return await self.startup()

    async def sync_capability(self, device_id: str, instance: str) -> SyncResult:
        """Handle one capability change."""
        entities = self.build_entities(device_id, instance)
        result = SyncResult()
        if not entities:
            return result
        outcomes = await asyncio.gather(*(self._sync_entity(entity) for entity in entities))
        for outcome in outcomes:
            result.merge(outcome)
        return result

    # ------------------------------------------------------------------
    # Event stream
    # ------------------------------------------------------------------

    def enqueue(self, device_id: str, instance: str) -> None:
        self._queue.put_nowait((device_id, instance))

    def stop(self) -> None:
        """Ask :meth:`run` to return once the events queued so far are done."""
        self._queue.put_nowait(None)

    async def run(self) -> None:
        """Consume capability-change events until :meth:`stop` is called."""
        while True:
            item = await self._queue.get()
            try:
                if item is None:
                    return
                device_id, instance = item
                result = await self.sync_capability(device_id, instance)
                if result.failures:
                    _logger.debug("Sync of %s/%s had %d failures", device_id, instance, result.failures)
            except Exception:
                _logger.exception("Unexpected error handling capability change %s", item)
            finally:
                self._queue.task_done()

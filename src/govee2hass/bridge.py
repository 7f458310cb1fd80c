"""High-level async bridge between the Govee Platform API and Home Assistant."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

import aiohttp

from govee2hass._api import devices as _devices_api
from govee2hass._constants import PAYLOAD_OFFLINE, PAYLOAD_ONLINE
from govee2hass._mqtt import HassMqttRuntime, HassPublisher, MqttMessage
from govee2hass._redact import redact_for_log
from govee2hass._transport import PlatformTransport, Transport
from govee2hass.config import BridgeConfig
from govee2hass.exceptions import GoveeError, HassPublishError
from govee2hass.hass.commands import CommandRouter
from govee2hass.hass.driver import SyncDriver, SyncResult
from govee2hass.ingestion.platform import build_events_from_states
from govee2hass.models.device import Device
from govee2hass.state.store import StateStore

_logger = logging.getLogger(__name__)


class GoveeBridge:
    """Mirror every Govee device on the account into Home Assistant.

    Usage::

        async with GoveeBridge(BridgeConfig.from_env()) as bridge:
            await bridge.start()
            await bridge.run_forever()

    ``transport`` and ``publisher`` may be injected (tests, alternative
    brokers); otherwise an aiohttp session and a paho MQTT runtime are
    created on entry.
    """

    def __init__(
        self,
        config: BridgeConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        publisher: HassPublisher | None = None,
        store: StateStore | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._publisher = publisher
        self._runtime: HassMqttRuntime | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self.store = store or StateStore()
        self._driver: SyncDriver | None = None
        self._router: CommandRouter | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> GoveeBridge:
        self._loop = asyncio.get_running_loop()
        _logger.debug("Starting bridge with %s", redact_for_log(self._config, secrets=(self._config.mqtt_password,)))
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = PlatformTransport(self._config, self._http_session)
        if self._publisher is None:
            runtime = HassMqttRuntime(loop=self._loop, config=self._config, on_message=self.on_mqtt_message)
            await self._loop.run_in_executor(None, runtime.start)
            self._runtime = runtime
            self._publisher = runtime
        self._driver = SyncDriver(store=self.store, publisher=self._publisher, config=self._config)
        self._router = CommandRouter(
            driver=self._driver,
            store=self.store,
            publisher=self._publisher,
            controller=self._control,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    @property
    def driver(self) -> SyncDriver:
        if self._driver is None:
            raise GoveeError("Bridge not initialized. Use 'async with GoveeBridge(...) as bridge:'")
        return self._driver

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise GoveeError("Bridge not initialized. Use 'async with GoveeBridge(...) as bridge:'")
        return self._transport

    def _require_publisher(self) -> HassPublisher:
        if self._publisher is None:
            raise GoveeError("Bridge not initialized. Use 'async with GoveeBridge(...) as bridge:'")
        return self._publisher

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> SyncResult:
        """Announce availability, load the fleet and publish every entity."""
        await self._publish_availability(PAYLOAD_ONLINE)
        await self.load_devices()
        result = await self.driver.startup()
        self._subscribe_command_topics()
        return result

    async def stop(self) -> None:
        if self._driver is not None:
            self._driver.stop()
        for task in list(self._tasks):
            task.cancel()
        if self._publisher is not None:
            with contextlib.suppress(HassPublishError):
                await self._publish_availability(PAYLOAD_OFFLINE)
        runtime = self._runtime
        self._runtime = None
        if runtime is not None and self._loop is not None:
            try:
                await self._loop.run_in_executor(None, runtime.stop)
            except Exception:
                _logger.debug("MQTT runtime stop failed", exc_info=True)
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
        self._http_session = None

    async def run_forever(self) -> None:
        """Consume capability changes and poll the Platform API until cancelled."""
        consumer = self._spawn(self.driver.run())
        try:
            while True:
                await asyncio.sleep(self._config.poll_interval)
                try:
                    await self.refresh()
                except GoveeError as exc:
                    _logger.warning("Refresh failed: %s", exc)
        finally:
            self.driver.stop()
            with contextlib.suppress(asyncio.CancelledError):
                await consumer

    # ------------------------------------------------------------------
    # Platform API ingestion
    # ------------------------------------------------------------------

    async def load_devices(self) -> list[Device]:
        """Fetch the device list and every device's state into the store."""
        transport = self._require_transport()
        devices = await _devices_api.fetch_devices(transport)
        _logger.info("Platform API reports %d devices", len(devices))
        for device in devices:
            self.store.upsert_device(device)
            await self._load_state(device)
        return devices

    async def _load_state(self, device: Device) -> list[tuple[str, str]]:
        """Apply a device's current state; return the capabilities that changed."""
        try:
            states = await _devices_api.fetch_device_state(self._require_transport(), device)
        except GoveeError as exc:
            _logger.warning("Could not fetch state of %s (%s): %s", device.display_name, device.id, exc)
            return []
        # The listing is authoritative; a dropped capability must not come back
        # through its state.
        listed = {cap.instance for cap in device.capabilities}
        changed: list[tuple[str, str]] = []
        for event in build_events_from_states(device_id=device.id, states=states):
            if listed and event.instance not in listed:
                _logger.debug("Ignoring state of unlisted capability %s on %s", event.instance, device.id)
                continue
            if self.store.apply(event):
                changed.append(event.key)
        return changed

    async def refresh(self) -> None:
        """Re-poll the fleet and queue every capability whose state changed."""
        transport = self._require_transport()
        devices = await _devices_api.fetch_devices(transport)
        present = {device.id for device in devices}
        for device_id in self.store.device_ids():
            if device_id not in present:
                _logger.info("Device %s no longer reported; dropping it", device_id)
                self.store.remove_device(device_id)
                self.driver.forget_device(device_id)

        for device in devices:
            known = self.store.get_device(device.id)
            for instance in self.store.upsert_device(device):
                _logger.info("Capability %s of %s no longer listed; dropping it", instance, device.id)
                self.driver.forget_capability(device.id, instance)
            changed = await self._load_state(device)
            if known is None:
                # New device: announce every capability, not only those with state.
                changed = [(device.id, cap.instance) for cap in device.capabilities if cap.instance]
            for device_id, instance in changed:
                self.driver.enqueue(device_id, instance)
        self._subscribe_command_topics()

    # ------------------------------------------------------------------
    # MQTT side
    # ------------------------------------------------------------------

    async def _publish_availability(self, payload: str) -> None:
        await self._require_publisher().publish(self._config.availability_topic, payload, retain=True)

    def _subscribe_command_topics(self) -> None:
        runtime = self._runtime
        if runtime is None:
            return
        runtime.subscribe(f"{self._config.discovery_prefix}/status")
        for topic in self.driver.command_topics():
            runtime.subscribe(topic)

    def _spawn(self, coro: Any) -> asyncio.Task[Any]:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def on_mqtt_message(self, message: MqttMessage) -> None:
        """Dispatch an inbound MQTT message (runs on the event loop)."""
        if message.topic == f"{self._config.discovery_prefix}/status":
            if message.text() == PAYLOAD_ONLINE:
                _logger.info("Home Assistant came online; republishing entities")
                self._spawn(self.driver.republish_all())
            return
        if self._router is not None:
            self._spawn(self._router.handle(message))

    async def _control(self, device_id: str, sku: str, capability_type: str, instance: str, value: Any) -> None:
        await _devices_api.control_device(
            self._require_transport(),
            sku=sku,
            device_id=device_id,
            capability_type=capability_type,
            instance=instance,
            value=value,
        )

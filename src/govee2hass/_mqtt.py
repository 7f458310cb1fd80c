"""MQTT transport towards Home Assistant."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, cast

import paho.mqtt.client as mqtt

from govee2hass._constants import PAYLOAD_OFFLINE
from govee2hass.config import BridgeConfig
from govee2hass.exceptions import HassPublishError


class HassPublisher(Protocol):
    """The only side-effect sink entity instances are allowed to use."""

    async def publish(self, topic: str, payload: bytes | str, *, retain: bool = False) -> None:
        ...


@dataclass(frozen=True)
class MqttMessage:
    """An inbound message on one of the subscribed command topics."""

    topic: str
    payload: bytes

    def text(self) -> str:
        return self.payload.decode("utf-8", errors="replace").strip()


class HassMqttRuntime:
    """Threaded paho-mqtt runtime.

    Publishes are awaited from asyncio and bounded by ``publish_timeout``;
    inbound messages are handed to ``on_message`` on the event loop.
    """

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        config: BridgeConfig,
        on_message: Callable[[MqttMessage], None] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._config = config
        self._on_message = on_message
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False
        self._subscriptions: set[str] = set()

    @property
    def is_running(self) -> bool:
        """Whether the MQTT runtime is actively running."""
        return self._running

    def start(self) -> None:
        """Connect to the broker and start the network loop (blocking)."""
        self.stop()
        config = self._config
        client_id = f"govee2hass-{uuid.uuid4().hex[:12]}"
        self._logger.debug(
            "MQTT runtime start requested host=%s port=%s client_id=%s tls=%s",
            config.mqtt_host,
            config.mqtt_port,
            client_id,
            config.mqtt_tls,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv311,
        )
        client.enable_logger(self._logger)
        if config.mqtt_username:
            client.username_pw_set(config.mqtt_username, config.mqtt_password)
        if config.mqtt_tls:
            client.tls_set()
        # Broker flips availability to offline for every entity if we vanish.
        client.will_set(config.availability_topic, PAYLOAD_OFFLINE, qos=1, retain=True)

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._logger.info("MQTT connected to %s:%s", config.mqtt_host, config.mqtt_port)
            for topic in sorted(self._subscriptions):
                self._logger.debug("MQTT subscribing topic=%s", topic)
                c.subscribe(topic, qos=0)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            handler = self._on_message
            if handler is None:
                return
            message = MqttMessage(topic=msg.topic, payload=bytes(msg.payload))
            self._loop.call_soon_threadsafe(handler, message)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.warning("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        client.connect(config.mqtt_host, config.mqtt_port, keepalive=config.mqtt_keepalive)
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Stop and disconnect current MQTT client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")

    def subscribe(self, topic: str) -> None:
        """Subscribe now if connected, and again after every reconnect."""
        if topic in self._subscriptions:
            return
        self._subscriptions.add(topic)
        client = self._client
        if client is not None and client.is_connected():
            client.subscribe(topic, qos=0)

    async def publish(self, topic: str, payload: bytes | str, *, retain: bool = False) -> None:
        """Publish one complete payload and wait for the broker to take it."""
        client = self._client
        if client is None or not self._running:
            raise HassPublishError(f"MQTT runtime not running; cannot publish to {topic}", topic=topic)

        data = payload.encode("utf-8") if isinstance(payload, str) else payload
        info = client.publish(topic, data, qos=1, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise HassPublishError(
                f"Publish to {topic} rejected: {mqtt.error_string(info.rc)}",
                topic=topic,
            )

        try:
            await self._loop.run_in_executor(None, info.wait_for_publish, self._config.publish_timeout)
        except (RuntimeError, ValueError) as exc:
            raise HassPublishError(f"Publish to {topic} failed: {exc}", topic=topic) from exc
        if not info.is_published():
            raise HassPublishError(
                f"Publish to {topic} not acknowledged within {self._config.publish_timeout}s",
                topic=topic,
            )

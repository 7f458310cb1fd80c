#!/usr/bin/env python3
"""Run the Govee to Home Assistant bridge.

Reads its settings from ``GOVEE_*`` environment variables, publishes
every capability of every device on the account as a Home Assistant
entity and then keeps polling the Platform API.

Usage
-----
Set environment variables and run::

    export GOVEE_API_KEY="..."
    export GOVEE_MQTT_HOST="mqtt.local"
    python scripts/run_bridge.py

Options::

    --once               Publish everything once and exit
    --list               Print devices and their entity mapping, no MQTT
    --mqtt-host HOST     Override GOVEE_MQTT_HOST
    --poll-interval SEC  Override GOVEE_POLL_INTERVAL
    --verbose, -v        Enable debug logging
    --trace              Enable trace logging (very chatty)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from govee2hass import BridgeConfig, GoveeBridge, GoveeError  # noqa: E402
from govee2hass._log import TRACE  # noqa: E402
from govee2hass.hass.rules import kind_for  # noqa: E402

_LOG = logging.getLogger("run_bridge")


class _ListingPublisher:
    """Publisher used by ``--list``; nothing leaves the process."""

    async def publish(self, topic: str, payload: bytes | str, *, retain: bool = False) -> None:
        _LOG.debug("would publish %s retain=%s", topic, retain)


async def _list_devices(config: BridgeConfig) -> None:
    async with GoveeBridge(config, publisher=_ListingPublisher()) as bridge:
        await bridge.load_devices()
        for device in bridge.store.devices():
            print(f"{device.display_name}  sku={device.sku}  id={device.id}")
            for capability in device.capabilities:
                kind = kind_for(capability.capability)
                state = capability.state if capability.updated_at is not None else "-"
                print(f"    {capability.instance:<28} {kind.family.value:<14} {kind.value:<12} {state}")


async def run(args: argparse.Namespace) -> None:
    overrides: dict[str, Any] = {}
    if args.mqtt_host:
        overrides["mqtt_host"] = args.mqtt_host
    if args.poll_interval is not None:
        overrides["poll_interval"] = args.poll_interval
    config = BridgeConfig.from_env(**overrides)

    if args.list:
        await _list_devices(config)
        return

    async with GoveeBridge(config) as bridge:
        result = await bridge.start()
        _LOG.info(
            "Published %d configs and %d states (%d failures)",
            result.configs_published,
            result.states_published,
            result.failures,
        )
        if args.once:
            return
        await bridge.run_forever()


def main() -> None:
    parser = argparse.ArgumentParser(description="Mirror Govee devices into Home Assistant over MQTT.")
    parser.add_argument("--once", action="store_true", help="Publish everything once and exit")
    parser.add_argument("--list", action="store_true", help="Print devices and their entity mapping, no MQTT")
    parser.add_argument("--mqtt-host", help="Override GOVEE_MQTT_HOST")
    parser.add_argument("--poll-interval", type=float, help="Override GOVEE_POLL_INTERVAL (seconds)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--trace", action="store_true", help="Enable trace logging")
    args = parser.parse_args()

    if args.trace:
        level = TRACE
    elif args.verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        pass
    except GoveeError as exc:
        _LOG.error("%s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()

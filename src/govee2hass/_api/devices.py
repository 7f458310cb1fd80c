"""Device list, device state and device control endpoints."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from govee2hass._api._common import check_envelope, new_request_id
from govee2hass._transport import Transport
from govee2hass.exceptions import GoveeApiError
from govee2hass.ingestion.platform import parse_capability_states
from govee2hass.models.device import CapabilityState, Device

_logger = logging.getLogger(__name__)

_DEVICES_ENDPOINT = "/router/api/v1/user/devices"
_STATE_ENDPOINT = "/router/api/v1/device/state"
_CONTROL_ENDPOINT = "/router/api/v1/device/control"


def parse_device_list(response: dict[str, Any]) -> list[Device]:
    data = response.get("data")
    if not isinstance(data, list):
        raise GoveeApiError(f"{_DEVICES_ENDPOINT} response has no device list", endpoint=_DEVICES_ENDPOINT)
    devices: list[Device] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        try:
            device = Device.model_validate(item)
        except ValidationError:
            _logger.debug("Skipping unparseable device entry", exc_info=True)
            continue
        if device.id:
            devices.append(device)
    return devices


async def fetch_devices(transport: Transport) -> list[Device]:
    """List every device bound to the API key."""
    response = await transport.request_json("GET", _DEVICES_ENDPOINT)
    check_envelope(_DEVICES_ENDPOINT, response)
    return parse_device_list(response)


async def fetch_device_state(transport: Transport, device: Device) -> list[CapabilityState]:
    """Fetch the current state of every capability of *device*."""
    body = {
        "requestId": new_request_id(),
        "payload": {"sku": device.sku, "device": device.id},
    }
    response = await transport.request_json("POST", _STATE_ENDPOINT, body)
    check_envelope(_STATE_ENDPOINT, response)
    payload = response.get("payload")
    if not isinstance(payload, dict):
        return []
    return parse_capability_states(payload)


async def control_device(
    transport: Transport,
    *,
    sku: str,
    device_id: str,
    capability_type: str,
    instance: str,
    value: Any,
) -> None:
    """Send a single capability command."""
    body = {
        "requestId": new_request_id(),
        "payload": {
            "sku": sku,
            "device": device_id,
            "capability": {"type": capability_type, "instance": instance, "value": value},
        },
    }
    response = await transport.request_json("POST", _CONTROL_ENDPOINT, body)
    check_envelope(_CONTROL_ENDPOINT, response)

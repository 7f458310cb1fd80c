"""Platform API ingestion helpers.

Translates Platform API device-state responses into normalized
:class:`~govee2hass.state.events.CapabilityEvent` objects.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from govee2hass.models.device import CapabilityState
from govee2hass.state.events import CapabilityEvent, IngestionSource


def parse_capability_states(payload: dict[str, Any]) -> list[CapabilityState]:
    """Extract capability states from a ``/device/state`` response ``payload``.

    Malformed entries are skipped rather than failing the whole device.
    """
    raw_caps = payload.get("capabilities")
    if not isinstance(raw_caps, list):
        return []
    states: list[CapabilityState] = []
    for item in raw_caps:
        if not isinstance(item, dict):
            continue
        try:
            parsed = CapabilityState.model_validate(item)
        except ValidationError:
            continue
        if parsed.instance:
            states.append(parsed)
    return states


def build_events_from_states(
    *,
    device_id: str,
    states: Iterable[CapabilityState],
    source: IngestionSource = IngestionSource.PLATFORM,
) -> list[CapabilityEvent]:
    """Build one event per capability state."""
    return [
        CapabilityEvent(
            device_id=device_id,
            instance=state.instance,
            capability_type=state.type,
            source=source,
            state=state.state,
        )
        for state in states
    ]

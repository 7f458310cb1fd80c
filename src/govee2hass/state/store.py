"""In-memory device/capability state store.

This is the only component allowed to mutate device state. Every write
happens inside one short lock-guarded critical section and every read
returns a deep-copied, frozen snapshot, so a reader never sees a
partially-written capability and never holds a live alias into the store.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from govee2hass.models.device import Capability, Device
from govee2hass.state.events import CapabilityEvent


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CapabilityView(BaseModel):
    """Snapshot of one capability: its descriptor plus its latest raw state."""

    model_config = ConfigDict(frozen=True)

    capability: Capability
    state: dict[str, Any] = Field(default_factory=dict)
    updated_at: datetime | None = None

    @property
    def instance(self) -> str:
        return self.capability.instance

    @property
    def type(self) -> str:
        return self.capability.type


class DeviceView(BaseModel):
    """Snapshot of one device taken at read time."""

    model_config = ConfigDict(frozen=True)

    id: str
    sku: str = ""
    name: str = ""
    device_type: str = ""
    capabilities: tuple[CapabilityView, ...] = ()

    @property
    def display_name(self) -> str:
        return self.name or self.sku or self.id

    def get_capability(self, instance: str) -> CapabilityView | None:
        for cap in self.capabilities:
            if cap.instance == instance:
                return cap
        return None

    def get_state_capability_by_instance(self, instance: str) -> CapabilityView | None:
        """Return the capability only if a state has been received for it."""
        cap = self.get_capability(instance)
        if cap is None or cap.updated_at is None:
            return None
        return cap


@dataclass
class _CapabilityRecord:
    capability: Capability
    state: dict[str, Any] = field(default_factory=dict)
    updated_at: datetime | None = None


@dataclass
class _DeviceRecord:
    device_id: str
    device: Device | None = None
    # Insertion-ordered; keyed by instance name so there is at most one live
    # capability per (device, instance).
    capabilities: dict[str, _CapabilityRecord] = field(default_factory=dict)


class StateStore:
    """Process-wide registry of known devices and their capability states.

    One instance is created per bridge and handed to every component that
    needs it.
    """

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._devices: dict[str, _DeviceRecord] = {}

    def _record(self, device_id: str) -> _DeviceRecord:
        record = self._devices.get(device_id)
        if record is None:
            record = _DeviceRecord(device_id=device_id)
            self._devices[device_id] = record
        return record

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def upsert_device(self, device: Device) -> list[str]:
        """Record device metadata and capability descriptors.

        Known capability states are kept; descriptors for instances not seen
        before are appended in API order. Instances the previous listing had
        and this one lacks are removed and returned. Capabilities only ever
        seen through state are left alone.
        """
        if not device.id:
            raise ValueError("device id must be non-empty")
        listed = {cap.instance for cap in device.capabilities if cap.instance}
        with self._lock:
            record = self._record(device.id)
            previous = record.device.capabilities if record.device is not None else []
            dropped = [cap.instance for cap in previous if cap.instance and cap.instance not in listed]
            for instance in dropped:
                record.capabilities.pop(instance, None)
            record.device = device
            for capability in device.capabilities:
                if not capability.instance:
                    continue
                existing = record.capabilities.get(capability.instance)
                if existing is None:
                    record.capabilities[capability.instance] = _CapabilityRecord(capability=capability)
                else:
                    existing.capability = capability
            return dropped

    def upsert_capability(
        self,
        device_id: str,
        instance: str,
        raw_state: dict[str, Any],
        *,
        capability_type: str = "",
        observed_at: datetime | None = None,
    ) -> bool:
        """Replace one capability's raw state wholesale.

        Returns ``True`` when the stored state changed.
        """
        if not device_id or not instance:
            raise ValueError("device id and instance must be non-empty")
        new_state = copy.deepcopy(raw_state) if isinstance(raw_state, dict) else {}
        when = observed_at or self._clock()
        with self._lock:
            record = self._record(device_id)
            cap = record.capabilities.get(instance)
            if cap is None:
                cap = _CapabilityRecord(capability=Capability(type=capability_type, instance=instance))
                record.capabilities[instance] = cap
            elif capability_type and not cap.capability.type:
                cap.capability = cap.capability.model_copy(update={"type": capability_type})
            changed = cap.updated_at is None or cap.state != new_state
            cap.state = new_state
            cap.updated_at = when
            return changed

    def apply(self, event: CapabilityEvent) -> bool:
        """Apply a normalized capability event."""
        return self.upsert_capability(
            event.device_id,
            event.instance,
            event.state,
            capability_type=event.capability_type,
            observed_at=event.observed_at,
        )

    def remove_device(self, device_id: str) -> bool:
        with self._lock:
            return self._devices.pop(device_id, None) is not None

    def remove_capability(self, device_id: str, instance: str) -> bool:
        with self._lock:
            record = self._devices.get(device_id)
            if record is None:
                return False
            return record.capabilities.pop(instance, None) is not None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_device(self, device_id: str) -> DeviceView | None:
        """Get a snapshot of a device, or ``None`` if it is unknown."""
        with self._lock:
            record = self._devices.get(device_id)
            if record is None:
                return None
            return self._view(record)

    def device_ids(self) -> list[str]:
        with self._lock:
            return list(self._devices)

    def devices(self) -> list[DeviceView]:
        with self._lock:
            return [self._view(record) for record in self._devices.values()]

    @staticmethod
    def _view(record: _DeviceRecord) -> DeviceView:
        device = record.device
        return DeviceView(
            id=record.device_id,
            sku=device.sku if device is not None else "",
            name=device.device_name if device is not None else "",
            device_type=device.device_type if device is not None else "",
            capabilities=tuple(
                CapabilityView(
                    capability=cap.capability,
                    state=copy.deepcopy(cap.state),
                    updated_at=cap.updated_at,
                )
                for cap in record.capabilities.values()
            ),
        )

"""Normalized capability events.

All ingestion paths (Platform API polling, hub commands) convert their
inputs into these events. Only the state/store layer is allowed to apply
them.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IngestionSource(StrEnum):
    PLATFORM = "platform"
    OPTIMISTIC = "optimistic"


class CapabilityEvent(BaseModel):
    """A wholesale replacement of one capability's raw state."""

    model_config = ConfigDict(frozen=True)

    device_id: str = Field(..., description="Govee device id")
    instance: str = Field(..., description="Capability instance name")
    capability_type: str = Field(default="", description="Capability type, if known")
    source: IngestionSource = IngestionSource.PLATFORM
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    state: dict[str, Any] = Field(default_factory=dict, description="Raw attribute bag")

    @field_validator("device_id", "instance")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must be non-empty")
        # Ids and instance names are store keys; kept byte for byte.
        return value

    @field_validator("observed_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def key(self) -> tuple[str, str]:
        return (self.device_id, self.instance)

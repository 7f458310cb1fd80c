"""govee2hass - Mirror a Govee device fleet into Home Assistant over MQTT discovery."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("govee2hass")
except PackageNotFoundError:
    __version__ = "0+local"
from govee2hass.bridge import GoveeBridge
from govee2hass.config import BridgeConfig
from govee2hass.exceptions import (
    GoveeApiError,
    GoveeAuthenticationError,
    GoveeConfigError,
    GoveeError,
    GoveeRateLimitError,
    GoveeTransportError,
    HassPublishError,
)
from govee2hass.hass.driver import SyncDriver, SyncResult
from govee2hass.models import (
    Capability,
    CapabilityOption,
    CapabilityRange,
    CapabilityState,
    Device,
)
from govee2hass.state.events import CapabilityEvent, IngestionSource
from govee2hass.state.store import CapabilityView, DeviceView, StateStore

__all__ = [
    "__version__",
    "BridgeConfig",
    "Capability",
    "CapabilityEvent",
    "CapabilityOption",
    "CapabilityRange",
    "CapabilityState",
    "CapabilityView",
    "Device",
    "DeviceView",
    "GoveeApiError",
    "GoveeAuthenticationError",
    "GoveeBridge",
    "GoveeConfigError",
    "GoveeError",
    "GoveeRateLimitError",
    "GoveeTransportError",
    "HassPublishError",
    "IngestionSource",
    "StateStore",
    "SyncDriver",
    "SyncResult",
]

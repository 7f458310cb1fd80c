"""Internal constants shared across the library."""

BASE_URL = "https://openapi.api.govee.com"
USER_AGENT = "govee2hass"
API_KEY_HEADER = "Govee-API-Key"

DEFAULT_DISCOVERY_PREFIX = "homeassistant"
DEFAULT_TOPIC_NAMESPACE = "gv2mqtt"

PAYLOAD_ONLINE = "online"
PAYLOAD_OFFLINE = "offline"
PAYLOAD_ON = "ON"
PAYLOAD_OFF = "OFF"

MANUFACTURER = "Govee"
ORIGIN_NAME = "govee2hass"
ORIGIN_URL = "https://github.com/govee2hass/govee2hass"

# ------------------------------------------------------------------
# Platform API capability types
# ------------------------------------------------------------------

CAP_ON_OFF = "devices.capabilities.on_off"
CAP_TOGGLE = "devices.capabilities.toggle"
CAP_RANGE = "devices.capabilities.range"
CAP_MODE = "devices.capabilities.mode"
CAP_PROPERTY = "devices.capabilities.property"
CAP_ONLINE = "devices.capabilities.online"
CAP_EVENT = "devices.capabilities.event"

# Platform API envelope codes that map onto dedicated exceptions.
AUTH_FAILED_CODES: frozenset[int] = frozenset({401})
RATE_LIMITED_CODES: frozenset[int] = frozenset({429})

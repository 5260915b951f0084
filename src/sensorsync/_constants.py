"""Internal constants shared across the library."""

USER_AGENT = "sensorsync/1 (+aiohttp)"
WEBHOOK_PATH = "/api/webhook/"

# Webhook command types understood by the integration endpoint.
COMMAND_REGISTER_SENSOR = "register_sensor"
COMMAND_UPDATE_SENSOR_STATES = "update_sensor_states"

SENSOR_TYPE_SENSOR = "sensor"

# ------------------------------------------------------------------
# Sensor ids that own a broadcast category (see sensorsync.gate)
# ------------------------------------------------------------------

NEXT_ALARM = "next_alarm"
BLUETOOTH_CONNECTION = "bluetooth_connection"
BATTERY_LEVEL = "battery_level"
BATTERY_STATE = "battery_state"
WIFI_CONNECTION = "wifi_connection"
INTERACTIVE_DEVICE = "is_interactive"
DOZE_MODE = "is_idle"
POWER_SAVE = "power_save"
PHONE_STATE = "phone_state"
AUDIO_SENSOR = "audio_sensor"
DND_SENSOR = "dnd_sensor"
STORAGE_SENSOR = "storage_sensor"
LAST_REBOOT = "last_reboot"

# ------------------------------------------------------------------
# Default cadences (seconds)
# ------------------------------------------------------------------

DEFAULT_UPDATE_INTERVAL: float = 15 * 60
DEFAULT_LOCATION_INTERVAL: float = 15 * 60
#: The charger state needs a few seconds to settle after a power event.
DEFAULT_CHARGING_SETTLE_DELAY: float = 5.0
DEFAULT_REQUEST_TIMEOUT: float = 30.0
DEFAULT_MAX_CONCURRENT_PASSES = 2

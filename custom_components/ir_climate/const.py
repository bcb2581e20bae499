"""Constants for IR Climate integration.

This module contains all the constants used throughout the integration,
including configuration keys, default thresholds and topic layouts.
"""

DOMAIN = "ir_climate"

CONF_PROTOCOL = "protocol"
CONF_IR_COMMAND_TOPIC = "ir_command_topic"
CONF_IR_RECEIVE_TOPIC = "ir_receive_topic"
CONF_POWER_TOPIC = "power_topic"
CONF_POWER_FIELD = "power_field"
CONF_CURRENT_TEMPERATURE_TOPIC = "current_temperature_topic"
CONF_CURRENT_TEMPERATURE_FIELD = "current_temperature_field"
CONF_DISCOVERY = "discovery"
CONF_DISCOVERY_PREFIX = "discovery_prefix"
CONF_POWER_STABLE_TIME = "power_stable_time"
CONF_STABLE_POWER_TIMEOUT = "stable_power_timeout"
CONF_MAX_POWER_IN_OFF_STATE = "max_power_in_off_state"
CONF_POWER_STEP_THRESHOLD = "power_step_threshold"
CONF_POWER_MIN_CHANGES = "power_min_changes"
CONF_POWER_MAX_RISING_CHANGES = "power_max_rising_changes"

PROTOCOL_DAIKIN64 = "daikin64"
PROTOCOL_DAHATSU = "dahatsu"

DEFAULT_NAME = "IR Air Conditioner"
DEFAULT_PROTOCOL = PROTOCOL_DAIKIN64
DEFAULT_POWER_FIELD = "power"
DEFAULT_CURRENT_TEMPERATURE_FIELD = "temperature"
DEFAULT_DISCOVERY = False
DEFAULT_DISCOVERY_PREFIX = "homeassistant"

# Power tracker thresholds, seconds and watts
DEFAULT_POWER_STABLE_TIME = 20
DEFAULT_STABLE_POWER_TIMEOUT = 10
DEFAULT_MAX_POWER_IN_OFF_STATE = 20
DEFAULT_POWER_STEP_THRESHOLD = 100
DEFAULT_POWER_MIN_CHANGES = 4
DEFAULT_POWER_MAX_RISING_CHANGES = 6

TICK_INTERVAL = 1  # Seconds between reconciliation ticks
BOOTSTRAP_TIMEOUT = 5  # Seconds to wait for the retained state message
DISCOVERY_DELAY = 5  # Seconds from bootstrap start to the first publish
IR_QUEUE_SIZE = 8

COMMAND_TOPIC_TEMPLATE = "{base}/{command}/set"
STATE_TOPIC_TEMPLATE = "{base}/state"
DISCOVERY_TOPIC_TEMPLATE = "{prefix}/climate/{base}/config"

ERROR_INVALID_TOPIC = "invalid_topic"
ERROR_MQTT_UNAVAILABLE = "mqtt_unavailable"

# Command topic suffixes, relative to the sanitized entry name
COMMAND_MODE = "mode"
COMMAND_TEMPERATURE = "temperature"
COMMAND_FAN = "fan"
COMMAND_SWING = "swing"
COMMAND_BOOST = "boost"
COMMAND_SLEEP = "sleep"
COMMAND_ECO = "eco"
COMMAND_HEALTH = "health"
COMMAND_LIGHT = "light"
COMMAND_QUIET = "quiet"

FEATURE_COMMANDS = (
    COMMAND_BOOST,
    COMMAND_SLEEP,
    COMMAND_ECO,
    COMMAND_HEALTH,
    COMMAND_LIGHT,
    COMMAND_QUIET,
)
COMMANDS = (
    COMMAND_MODE,
    COMMAND_TEMPERATURE,
    COMMAND_FAN,
    COMMAND_SWING,
    *FEATURE_COMMANDS,
)

BOOL_TRUE_STRINGS = ("on", "true", "1")
BOOL_FALSE_STRINGS = ("off", "false", "0")

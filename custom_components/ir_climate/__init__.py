from __future__ import annotations

import logging

from homeassistant.components import mqtt
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_NAME, Platform
from homeassistant.core import HomeAssistant
from homeassistant.util import slugify

from .const import (
    COMMAND_TOPIC_TEMPLATE,
    COMMANDS,
    CONF_CURRENT_TEMPERATURE_FIELD,
    CONF_CURRENT_TEMPERATURE_TOPIC,
    CONF_DISCOVERY,
    CONF_DISCOVERY_PREFIX,
    CONF_IR_COMMAND_TOPIC,
    CONF_IR_RECEIVE_TOPIC,
    CONF_MAX_POWER_IN_OFF_STATE,
    CONF_POWER_FIELD,
    CONF_POWER_MAX_RISING_CHANGES,
    CONF_POWER_MIN_CHANGES,
    CONF_POWER_STABLE_TIME,
    CONF_POWER_STEP_THRESHOLD,
    CONF_POWER_TOPIC,
    CONF_PROTOCOL,
    CONF_STABLE_POWER_TIMEOUT,
    DEFAULT_CURRENT_TEMPERATURE_FIELD,
    DEFAULT_DISCOVERY,
    DEFAULT_DISCOVERY_PREFIX,
    DEFAULT_MAX_POWER_IN_OFF_STATE,
    DEFAULT_NAME,
    DEFAULT_POWER_FIELD,
    DEFAULT_POWER_MAX_RISING_CHANGES,
    DEFAULT_POWER_MIN_CHANGES,
    DEFAULT_POWER_STABLE_TIME,
    DEFAULT_POWER_STEP_THRESHOLD,
    DEFAULT_PROTOCOL,
    DEFAULT_STABLE_POWER_TIMEOUT,
    DISCOVERY_TOPIC_TEMPLATE,
    DOMAIN,
    STATE_TOPIC_TEMPLATE,
)
from .coordinator import IRClimateCoordinator
from .devices import create_device
from .mqtt_bridge import IRClimateMqttBridge
from .power_tracker import PowerTracker

_LOGGER = logging.getLogger(__name__)

PLATFORMS = [Platform.CLIMATE, Platform.SWITCH]


def build_command_topics(base: str) -> dict[str, str]:
    """Return the command topics of a unit keyed by command name."""
    return {
        command: COMMAND_TOPIC_TEMPLATE.format(base=base, command=command)
        for command in COMMANDS
    }


def create_coordinator(hass: HomeAssistant, entry: ConfigEntry) -> IRClimateCoordinator:
    """Wire the model, power tracker and MQTT bridge of a config entry."""
    data = {**entry.data, **entry.options}
    name = data.get(CONF_NAME, DEFAULT_NAME)
    base = slugify(name)

    device = create_device(data.get(CONF_PROTOCOL, DEFAULT_PROTOCOL))
    tracker = PowerTracker(
        power_stable_time=data.get(CONF_POWER_STABLE_TIME, DEFAULT_POWER_STABLE_TIME),
        stable_power_timeout=data.get(
            CONF_STABLE_POWER_TIMEOUT, DEFAULT_STABLE_POWER_TIMEOUT
        ),
        max_power_in_off_state=data.get(
            CONF_MAX_POWER_IN_OFF_STATE, DEFAULT_MAX_POWER_IN_OFF_STATE
        ),
        power_step_threshold=data.get(
            CONF_POWER_STEP_THRESHOLD, DEFAULT_POWER_STEP_THRESHOLD
        ),
        min_changes=data.get(CONF_POWER_MIN_CHANGES, DEFAULT_POWER_MIN_CHANGES),
        max_rising_changes=data.get(
            CONF_POWER_MAX_RISING_CHANGES, DEFAULT_POWER_MAX_RISING_CHANGES
        ),
    )
    bridge = IRClimateMqttBridge(
        hass,
        ir_command_topic=data[CONF_IR_COMMAND_TOPIC],
        ir_receive_topic=data[CONF_IR_RECEIVE_TOPIC],
        state_topic=STATE_TOPIC_TEMPLATE.format(base=base),
        command_topics=build_command_topics(base),
        power_topic=data.get(CONF_POWER_TOPIC) or None,
        power_field=data.get(CONF_POWER_FIELD, DEFAULT_POWER_FIELD),
        current_temperature_topic=data.get(CONF_CURRENT_TEMPERATURE_TOPIC) or None,
        current_temperature_field=data.get(
            CONF_CURRENT_TEMPERATURE_FIELD, DEFAULT_CURRENT_TEMPERATURE_FIELD
        ),
    )

    discovery_topic = None
    if data.get(CONF_DISCOVERY, DEFAULT_DISCOVERY):
        discovery_topic = DISCOVERY_TOPIC_TEMPLATE.format(
            prefix=data.get(CONF_DISCOVERY_PREFIX, DEFAULT_DISCOVERY_PREFIX),
            base=base,
        )

    return IRClimateCoordinator(
        hass,
        device,
        bridge,
        tracker,
        name=name,
        unique_id=entry.unique_id or base,
        discovery_topic=discovery_topic,
        config_entry=entry,
    )


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    _LOGGER.info("Setting up IR climate integration for entry %s", entry.entry_id)

    if not await mqtt.async_wait_for_mqtt_client(hass):
        _LOGGER.error("MQTT integration is not available for entry %s", entry.entry_id)
        return False

    try:
        coordinator = create_coordinator(hass, entry)
    except (KeyError, ValueError) as err:
        _LOGGER.error("Invalid configuration for entry %s: %s", entry.entry_id, err)
        return False

    await coordinator.async_start()

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = {"coordinator": coordinator}
    _LOGGER.debug(
        "Stored coordinator for entry %s (%s)", entry.entry_id, coordinator.device.protocol
    )

    try:
        await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    except Exception as err:
        _LOGGER.error("Failed to setup platforms for entry %s: %s", entry.entry_id, err)
        await coordinator.async_stop()
        hass.data[DOMAIN].pop(entry.entry_id)
        return False

    _LOGGER.info("Successfully setup IR climate integration for entry %s", entry.entry_id)
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    _LOGGER.info("Unloading IR climate integration for entry %s", entry.entry_id)

    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if not unload_ok:
        _LOGGER.warning("Failed to unload some platforms for entry %s", entry.entry_id)
        return False

    entry_data = hass.data.get(DOMAIN, {}).pop(entry.entry_id, None)
    if entry_data is not None:
        await entry_data["coordinator"].async_stop()
        _LOGGER.debug("Cleaned up data for entry %s", entry.entry_id)

    _LOGGER.info("Successfully unloaded IR climate integration for entry %s", entry.entry_id)
    return True

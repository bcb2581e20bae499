"""
Configuration flow for IR Climate integration.

This module handles the setup of an IR-controlled air conditioner through
Home Assistant's config flow system: the protocol variant, the MQTT topics
of the IR bridge and the power sensor, and the power tracker thresholds.
"""

import logging
from typing import Any

import voluptuous as vol
from homeassistant.components import mqtt
from homeassistant.config_entries import ConfigFlow, ConfigFlowResult
from homeassistant.const import CONF_NAME
from homeassistant.util import slugify

from .const import (
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
    DOMAIN,
    ERROR_INVALID_TOPIC,
    ERROR_MQTT_UNAVAILABLE,
)
from .devices import DEVICE_VARIANTS

_LOGGER = logging.getLogger(__name__)

PUBLISH_TOPICS = (CONF_IR_COMMAND_TOPIC,)
SUBSCRIBE_TOPICS = (
    CONF_IR_RECEIVE_TOPIC,
    CONF_POWER_TOPIC,
    CONF_CURRENT_TEMPERATURE_TOPIC,
)

DATA_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_NAME, default=DEFAULT_NAME): str,
        vol.Required(CONF_PROTOCOL, default=DEFAULT_PROTOCOL): vol.In(
            sorted(DEVICE_VARIANTS)
        ),
        vol.Required(CONF_IR_COMMAND_TOPIC): str,
        vol.Required(CONF_IR_RECEIVE_TOPIC): str,
        vol.Optional(CONF_POWER_TOPIC): str,
        vol.Optional(CONF_POWER_FIELD, default=DEFAULT_POWER_FIELD): str,
        vol.Optional(CONF_CURRENT_TEMPERATURE_TOPIC): str,
        vol.Optional(
            CONF_CURRENT_TEMPERATURE_FIELD, default=DEFAULT_CURRENT_TEMPERATURE_FIELD
        ): str,
        vol.Optional(CONF_DISCOVERY, default=DEFAULT_DISCOVERY): bool,
        vol.Optional(CONF_DISCOVERY_PREFIX, default=DEFAULT_DISCOVERY_PREFIX): str,
        vol.Optional(
            CONF_POWER_STABLE_TIME, default=DEFAULT_POWER_STABLE_TIME
        ): vol.All(vol.Coerce(int), vol.Range(min=1)),
        vol.Optional(
            CONF_STABLE_POWER_TIMEOUT, default=DEFAULT_STABLE_POWER_TIMEOUT
        ): vol.All(vol.Coerce(int), vol.Range(min=1)),
        vol.Optional(
            CONF_MAX_POWER_IN_OFF_STATE, default=DEFAULT_MAX_POWER_IN_OFF_STATE
        ): vol.All(vol.Coerce(float), vol.Range(min=0)),
        vol.Optional(
            CONF_POWER_STEP_THRESHOLD, default=DEFAULT_POWER_STEP_THRESHOLD
        ): vol.All(vol.Coerce(float), vol.Range(min=1)),
        vol.Optional(
            CONF_POWER_MIN_CHANGES, default=DEFAULT_POWER_MIN_CHANGES
        ): vol.All(vol.Coerce(int), vol.Range(min=1)),
        vol.Optional(
            CONF_POWER_MAX_RISING_CHANGES, default=DEFAULT_POWER_MAX_RISING_CHANGES
        ): vol.All(vol.Coerce(int), vol.Range(min=1)),
    }
)


def validate_topics(user_input: dict[str, Any]) -> dict[str, str]:
    """Validate the MQTT topics of the form.

    Args:
        user_input: User input data.

    Returns:
        Errors keyed by field; empty when every topic is valid.

    """
    errors: dict[str, str] = {}
    for key, validator in (
        *((key, mqtt.valid_publish_topic) for key in PUBLISH_TOPICS),
        *((key, mqtt.valid_subscribe_topic) for key in SUBSCRIBE_TOPICS),
    ):
        topic = user_input.get(key)
        if not topic:
            continue
        try:
            validator(topic)
        except vol.Invalid as err:
            _LOGGER.warning("Invalid topic for %s (%s): %s", key, topic, err)
            errors[key] = ERROR_INVALID_TOPIC
    return errors


class IRClimateConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle configuration flow for IR Climate integration."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """
        Handle the initial step of the config flow.

        Args:
            user_input: User input data describing the unit and its topics.

        Returns:
            ConfigFlowResult indicating the next step or errors.

        """
        errors: dict[str, str] = {}

        if user_input is not None:
            if not await mqtt.async_wait_for_mqtt_client(self.hass):
                _LOGGER.warning("MQTT is not available (%s)", ERROR_MQTT_UNAVAILABLE)
                errors["base"] = ERROR_MQTT_UNAVAILABLE
            else:
                errors = validate_topics(user_input)

            if not errors:
                name = user_input[CONF_NAME]
                await self.async_set_unique_id(slugify(name))
                self._abort_if_unique_id_configured()

                _LOGGER.info(
                    "Creating IR climate entry %s (%s)", name, user_input[CONF_PROTOCOL]
                )
                return self.async_create_entry(title=name, data=user_input)

        return self.async_show_form(
            step_id="user",
            data_schema=DATA_SCHEMA,
            errors=errors,
        )

"""Climate entities for IR-controlled air conditioners.

This module exposes the believed state held by the coordinator as a Home
Assistant climate entity. Every change goes through the coordinator, which
transmits it over IR and publishes the resulting state.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from homeassistant.components.climate import (
    ClimateEntity,
    ClimateEntityFeature,
    HVACMode,
)
from homeassistant.components.climate.const import (
    PRESET_BOOST,
    PRESET_ECO,
    PRESET_NONE,
    PRESET_SLEEP,
)
from homeassistant.const import ATTR_TEMPERATURE, UnitOfTemperature

from .const import DOMAIN
from .messages import build_state_message
from .models import FanLevel, Mode, SwingMode

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .coordinator import IRClimateCoordinator

_LOGGER = logging.getLogger(__name__)

# Preset name -> feature, in reporting priority
PRESET_FEATURES = {
    PRESET_BOOST: "boost",
    PRESET_ECO: "eco",
    PRESET_SLEEP: "sleep",
}


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the climate entity of an IR air conditioner."""
    coordinator = hass.data[DOMAIN][entry.entry_id]["coordinator"]
    async_add_entities([IRClimateEntity(coordinator)])


def device_info(coordinator: IRClimateCoordinator) -> dict[str, Any]:
    """Return the device registry info shared by all entities of a unit."""
    return {
        "identifiers": {(DOMAIN, coordinator.unique_id)},
        "name": coordinator.name,
        "manufacturer": coordinator.device.vendor,
        "model": coordinator.device.protocol,
    }


class IRClimateEntity(ClimateEntity):
    """Climate entity for an IR-controlled air conditioner.

    The entity holds no state of its own; all properties read the device
    model owned by the coordinator.
    """

    _attr_temperature_unit = UnitOfTemperature.CELSIUS
    _attr_has_entity_name = True
    _attr_name = None
    _attr_should_poll = False

    def __init__(self, coordinator: IRClimateCoordinator) -> None:
        """Initialize the climate entity.

        Args:
            coordinator: Coordinator owning the unit's state.

        """
        self._coordinator = coordinator
        self._device = coordinator.device
        self._attr_unique_id = coordinator.unique_id
        self._attr_device_info = device_info(coordinator)
        self._coordinator_listener_unsub: Callable[[], None] | None = None

        self._configure_features()

    def _configure_features(self) -> None:
        """Configure entity features from the device variant."""
        self._attr_hvac_modes = [HVACMode(str(mode)) for mode in self._device.modes]
        self._attr_swing_modes = [str(swing) for swing in self._device.swing_modes]
        self._attr_preset_modes = [PRESET_NONE] + [
            preset
            for preset, feature in PRESET_FEATURES.items()
            if feature in self._device.features
        ]
        self._attr_min_temp = self._device.temp_min
        self._attr_max_temp = self._device.temp_max
        self._attr_target_temperature_step = self._device.temp_step

        features = (
            ClimateEntityFeature.TARGET_TEMPERATURE
            | ClimateEntityFeature.FAN_MODE
            | ClimateEntityFeature.SWING_MODE
            | ClimateEntityFeature.TURN_OFF
            | ClimateEntityFeature.TURN_ON
        )
        if len(self._attr_preset_modes) > 1:
            features |= ClimateEntityFeature.PRESET_MODE
        self._attr_supported_features = features

    @property
    def available(self) -> bool:
        """Return True once the coordinator finished bootstrapping."""
        return self._coordinator.initialized

    @property
    def hvac_mode(self) -> HVACMode:
        """Return the current HVAC mode."""
        return HVACMode(str(self._device.hvac_mode))

    @property
    def target_temperature(self) -> float:
        """Return the target temperature."""
        return self._device.state.temperature

    @property
    def current_temperature(self) -> float | None:
        """Return the room temperature, if a sensor topic is configured."""
        return self._coordinator.current_temperature

    @property
    def fan_mode(self) -> str:
        """Return the current fan level."""
        return str(self._device.state.fan)

    @property
    def fan_modes(self) -> list[str]:
        """Return the fan levels selectable in the current mode."""
        return [str(fan) for fan in self._device.fan_modes_allowed]

    @property
    def swing_mode(self) -> str:
        """Return the current swing mode."""
        return str(self._device.state.swing)

    @property
    def preset_mode(self) -> str:
        """Return the active preset."""
        for preset, feature in PRESET_FEATURES.items():
            if getattr(self._device.state, feature):
                return preset
        return PRESET_NONE

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return the attributes carried by the state message."""
        return build_state_message(self._device)["attrs"]

    async def async_added_to_hass(self) -> None:
        """Subscribe to coordinator updates."""
        await super().async_added_to_hass()
        self._coordinator_listener_unsub = self._coordinator.async_add_listener(
            self.async_write_ha_state
        )

    async def async_will_remove_from_hass(self) -> None:
        """Unsubscribe from coordinator updates."""
        await super().async_will_remove_from_hass()

        if self._coordinator_listener_unsub is not None:
            self._coordinator_listener_unsub()
            self._coordinator_listener_unsub = None

    async def async_set_hvac_mode(self, hvac_mode: HVACMode) -> None:
        """Set the HVAC mode.

        Args:
            hvac_mode: The HVAC mode to set.

        """
        await self._coordinator.async_set_hvac_mode(Mode(hvac_mode))

    async def async_set_temperature(self, **kwargs: Any) -> None:  # noqa: ANN401
        """Set the target temperature.

        Args:
            **kwargs: Keyword arguments containing temperature data.

        """
        temperature = kwargs.get(ATTR_TEMPERATURE)
        if temperature is None:
            return
        await self._coordinator.async_set_temperature(float(temperature))

    async def async_set_fan_mode(self, fan_mode: str) -> None:
        """Set the fan mode.

        Args:
            fan_mode: The fan mode to set.

        """
        await self._coordinator.async_set_fan(FanLevel(fan_mode))

    async def async_set_swing_mode(self, swing_mode: str) -> None:
        """Set the swing mode.

        Args:
            swing_mode: The swing mode to set.

        """
        await self._coordinator.async_set_swing(SwingMode(swing_mode))

    async def async_set_preset_mode(self, preset_mode: str) -> None:
        """Set the preset mode, turning the previous preset off.

        Args:
            preset_mode: The preset mode to set.

        """
        current = self.preset_mode
        if preset_mode == current:
            return

        if current != PRESET_NONE:
            await self._coordinator.async_set_feature(
                PRESET_FEATURES[current], on=False
            )

        if preset_mode != PRESET_NONE:
            feature = PRESET_FEATURES.get(preset_mode)
            if feature is None:
                _LOGGER.warning("Unknown preset mode: %s", preset_mode)
                return
            await self._coordinator.async_set_feature(feature, on=True)

    async def async_turn_on(self) -> None:
        """Turn the unit on in its last operating mode."""
        await self._coordinator.async_set_hvac_mode(self._device.state.mode)

    async def async_turn_off(self) -> None:
        """Turn the unit off."""
        await self._coordinator.async_set_hvac_mode(Mode.OFF)

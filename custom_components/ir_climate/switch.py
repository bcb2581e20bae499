"""Switch platform for IR climate feature toggles."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from homeassistant.components.switch import SwitchEntity

from .climate import device_info
from .const import COMMAND_HEALTH, COMMAND_LIGHT, COMMAND_QUIET, DOMAIN

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .coordinator import IRClimateCoordinator

_LOGGER = logging.getLogger(__name__)

SWITCHES = [
    (COMMAND_HEALTH, "mdi:air-filter"),
    (COMMAND_LIGHT, "mdi:lightbulb"),
    (COMMAND_QUIET, "mdi:volume-off"),
]


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the feature switches supported by the unit."""
    coordinator = hass.data[DOMAIN][entry.entry_id]["coordinator"]
    entities = [
        IRFeatureSwitch(coordinator, feature, icon)
        for feature, icon in SWITCHES
        if feature in coordinator.device.features
    ]
    if not entities:
        _LOGGER.debug("No feature switches for %s", coordinator.name)
        return
    async_add_entities(entities)


class IRFeatureSwitch(SwitchEntity):
    """Switch toggling one feature of the unit.

    The switch is unavailable while the active mode does not allow the
    feature.
    """

    _attr_has_entity_name = True
    _attr_should_poll = False

    def __init__(
        self, coordinator: IRClimateCoordinator, feature: str, icon: str
    ) -> None:
        self._coordinator = coordinator
        self._feature = feature
        self._attr_unique_id = f"{coordinator.unique_id}_{feature}"
        self._attr_translation_key = feature
        self._attr_icon = icon
        self._attr_device_info = device_info(coordinator)
        self._coordinator_listener_unsub: Callable[[], None] | None = None

    @property
    def available(self) -> bool:
        """Return True if the feature can be toggled in the current mode."""
        return self._coordinator.initialized and self._coordinator.device.feature_allowed(
            self._feature
        )

    @property
    def is_on(self) -> bool:
        """Return True if the feature is enabled."""
        return getattr(self._coordinator.device.state, self._feature)

    async def async_turn_on(self, **kwargs: Any) -> None:  # noqa: ANN401, ARG002
        """Turn the feature on."""
        await self._coordinator.async_set_feature(self._feature, on=True)

    async def async_turn_off(self, **kwargs: Any) -> None:  # noqa: ANN401, ARG002
        """Turn the feature off."""
        await self._coordinator.async_set_feature(self._feature, on=False)

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

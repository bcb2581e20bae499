"""Tests for the IR Climate entity."""

from unittest.mock import AsyncMock, Mock

import pytest
from homeassistant.components.climate import ClimateEntityFeature, HVACMode
from homeassistant.components.climate.const import (
    PRESET_BOOST,
    PRESET_ECO,
    PRESET_NONE,
    PRESET_SLEEP,
)
from homeassistant.const import ATTR_TEMPERATURE, UnitOfTemperature

from custom_components.ir_climate.climate import IRClimateEntity, async_setup_entry
from custom_components.ir_climate.devices import DahatsuDevice, Daikin64Device
from custom_components.ir_climate.models import FanLevel, Mode, SwingMode


def make_coordinator(device) -> Mock:
    """Create a mock coordinator around a real device model."""
    coordinator = Mock()
    coordinator.device = device
    coordinator.name = "Living AC"
    coordinator.unique_id = "living_ac"
    coordinator.initialized = True
    coordinator.current_temperature = 23.5
    coordinator.async_add_listener = Mock(return_value=Mock())
    coordinator.async_set_hvac_mode = AsyncMock(return_value=True)
    coordinator.async_set_temperature = AsyncMock(return_value=True)
    coordinator.async_set_fan = AsyncMock(return_value=True)
    coordinator.async_set_swing = AsyncMock(return_value=True)
    coordinator.async_set_feature = AsyncMock(return_value=True)
    return coordinator


@pytest.fixture
def mock_coordinator(dahatsu: DahatsuDevice) -> Mock:
    """Create a mock coordinator for a Dahatsu unit in cool mode."""
    return make_coordinator(dahatsu)


@pytest.fixture
def entity(mock_coordinator: Mock) -> IRClimateEntity:
    """Create an IR Climate entity for testing."""
    return IRClimateEntity(mock_coordinator)


class TestAsyncSetupEntry:
    """Tests for async_setup_entry function."""

    @pytest.mark.asyncio
    async def test_async_setup_entry_creates_entity(
        self, mock_coordinator: Mock
    ) -> None:
        """Test that async_setup_entry creates one climate entity."""
        hass = Mock()
        hass.data = {"ir_climate": {"test_entry": {"coordinator": mock_coordinator}}}
        entry = Mock()
        entry.entry_id = "test_entry"
        async_add_entities = Mock()

        await async_setup_entry(hass, entry, async_add_entities)

        async_add_entities.assert_called_once()
        entities = async_add_entities.call_args[0][0]
        assert len(entities) == 1
        assert isinstance(entities[0], IRClimateEntity)


class TestIRClimateEntityInit:
    """Tests for IRClimateEntity initialization."""

    def test_init_sets_attributes_from_variant(self, entity: IRClimateEntity) -> None:
        """Test that ranges and modes come from the device variant."""
        assert entity.unique_id == "living_ac"
        assert entity.temperature_unit == UnitOfTemperature.CELSIUS
        assert entity.min_temp == 16.0
        assert entity.max_temp == 31.0
        assert entity.target_temperature_step == 0.5
        assert entity.hvac_modes == [
            HVACMode.OFF,
            HVACMode.HEAT,
            HVACMode.AUTO,
            HVACMode.COOL,
            HVACMode.DRY,
            HVACMode.FAN_ONLY,
        ]
        assert entity.swing_modes == ["off", "horizontal"]
        assert entity.preset_modes == [PRESET_NONE, PRESET_BOOST, PRESET_ECO]
        assert entity.supported_features & ClimateEntityFeature.PRESET_MODE

    def test_daikin_presets(self) -> None:
        """Test that Daikin64 offers boost and sleep presets."""
        entity = IRClimateEntity(make_coordinator(Daikin64Device()))

        assert entity.preset_modes == [PRESET_NONE, PRESET_BOOST, PRESET_SLEEP]

    def test_device_info(self, entity: IRClimateEntity) -> None:
        """Test the device registry info."""
        info = entity.device_info
        assert info["identifiers"] == {("ir_climate", "living_ac")}
        assert info["manufacturer"] == "TCL112AC"
        assert info["model"] == "dahatsu"


class TestIRClimateEntityState:
    """Tests for the state read from the device model."""

    def test_state_reflects_device(
        self, entity: IRClimateEntity, dahatsu: DahatsuDevice
    ) -> None:
        """Test that properties read the believed state."""
        assert entity.hvac_mode == HVACMode.COOL
        assert entity.target_temperature == 24.0
        assert entity.current_temperature == 23.5
        assert entity.fan_mode == "medium"
        assert entity.swing_mode == "off"
        assert entity.preset_mode == PRESET_NONE

        dahatsu.set_boost(on=True)

        assert entity.preset_mode == PRESET_BOOST
        assert entity.fan_mode == "high"
        assert entity.target_temperature == 16.0

    def test_off_when_powered_down(
        self, entity: IRClimateEntity, dahatsu: DahatsuDevice
    ) -> None:
        """Test that a powered down unit reports off."""
        dahatsu.set_hvac_mode(Mode.OFF)

        assert entity.hvac_mode == HVACMode.OFF
        assert entity.extra_state_attributes["mode"] == "cool"

    def test_fan_modes_follow_mode(
        self, entity: IRClimateEntity, dahatsu: DahatsuDevice
    ) -> None:
        """Test that only fan levels legal in the mode are offered."""
        assert entity.fan_modes == ["auto", "low", "medium", "high"]

        dahatsu.set_hvac_mode(Mode.DRY)

        assert entity.fan_modes == ["auto"]

    def test_available_after_bootstrap(
        self, entity: IRClimateEntity, mock_coordinator: Mock
    ) -> None:
        """Test that the entity is unavailable until initialized."""
        assert entity.available is True

        mock_coordinator.initialized = False

        assert entity.available is False


class TestIRClimateEntityListeners:
    """Tests for coordinator listener handling."""

    @pytest.mark.asyncio
    async def test_async_added_to_hass_registers_listener(
        self, entity: IRClimateEntity, mock_coordinator: Mock
    ) -> None:
        """Test that async_added_to_hass registers a coordinator listener."""
        await entity.async_added_to_hass()

        mock_coordinator.async_add_listener.assert_called_once_with(
            entity.async_write_ha_state
        )

    @pytest.mark.asyncio
    async def test_async_will_remove_from_hass_unsubscribes_listener(
        self, entity: IRClimateEntity
    ) -> None:
        """Test that async_will_remove_from_hass unsubscribes the listener."""
        mock_unsub = Mock()
        entity._coordinator_listener_unsub = mock_unsub

        await entity.async_will_remove_from_hass()

        mock_unsub.assert_called_once()
        assert entity._coordinator_listener_unsub is None


class TestIRClimateEntityCommands:
    """Tests for commands forwarded to the coordinator."""

    @pytest.mark.asyncio
    async def test_async_set_hvac_mode(
        self, entity: IRClimateEntity, mock_coordinator: Mock
    ) -> None:
        """Test that the HVAC mode is forwarded."""
        await entity.async_set_hvac_mode(HVACMode.FAN_ONLY)

        mock_coordinator.async_set_hvac_mode.assert_awaited_once_with(Mode.FAN)

    @pytest.mark.asyncio
    async def test_async_set_temperature(
        self, entity: IRClimateEntity, mock_coordinator: Mock
    ) -> None:
        """Test that the target temperature is forwarded."""
        await entity.async_set_temperature(**{ATTR_TEMPERATURE: 21.5})

        mock_coordinator.async_set_temperature.assert_awaited_once_with(21.5)

    @pytest.mark.asyncio
    async def test_async_set_temperature_without_value(
        self, entity: IRClimateEntity, mock_coordinator: Mock
    ) -> None:
        """Test that a call without temperature is ignored."""
        await entity.async_set_temperature()

        mock_coordinator.async_set_temperature.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_async_set_fan_and_swing(
        self, entity: IRClimateEntity, mock_coordinator: Mock
    ) -> None:
        """Test that fan and swing modes are forwarded."""
        await entity.async_set_fan_mode("high")
        await entity.async_set_swing_mode("horizontal")

        mock_coordinator.async_set_fan.assert_awaited_once_with(FanLevel.HIGH)
        mock_coordinator.async_set_swing.assert_awaited_once_with(SwingMode.HORIZONTAL)

    @pytest.mark.asyncio
    async def test_async_set_preset_mode_switches_presets(
        self,
        entity: IRClimateEntity,
        mock_coordinator: Mock,
        dahatsu: DahatsuDevice,
    ) -> None:
        """Test that the active preset is turned off before the new one."""
        dahatsu.set_boost(on=True)

        await entity.async_set_preset_mode(PRESET_ECO)

        assert mock_coordinator.async_set_feature.await_args_list[0].args == ("boost",)
        assert mock_coordinator.async_set_feature.await_args_list[0].kwargs == {
            "on": False
        }
        assert mock_coordinator.async_set_feature.await_args_list[1].args == ("eco",)
        assert mock_coordinator.async_set_feature.await_args_list[1].kwargs == {
            "on": True
        }

    @pytest.mark.asyncio
    async def test_async_set_preset_mode_none(
        self,
        entity: IRClimateEntity,
        mock_coordinator: Mock,
        dahatsu: DahatsuDevice,
    ) -> None:
        """Test that selecting no preset only turns the active one off."""
        dahatsu.set_eco(on=True)

        await entity.async_set_preset_mode(PRESET_NONE)

        mock_coordinator.async_set_feature.assert_awaited_once_with("eco", on=False)

    @pytest.mark.asyncio
    async def test_async_turn_on_uses_last_mode(
        self,
        entity: IRClimateEntity,
        mock_coordinator: Mock,
        dahatsu: DahatsuDevice,
    ) -> None:
        """Test that turning on resumes the operating mode."""
        dahatsu.set_hvac_mode(Mode.HEAT)
        dahatsu.set_hvac_mode(Mode.OFF)

        await entity.async_turn_on()
        await entity.async_turn_off()

        calls = mock_coordinator.async_set_hvac_mode.await_args_list
        assert calls[0].args == (Mode.HEAT,)
        assert calls[1].args == (Mode.OFF,)

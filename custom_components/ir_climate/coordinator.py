"""Coordinator for the IR climate integration.

The coordinator reconciles the believed state of one air conditioner with
what is observed: frames decoded from the unit's own remote and the power
drawn by the unit. It also drives the bootstrap sequence that restores the
last published state, and turns commands into IR transmissions.
"""

from __future__ import annotations

import logging
import math
import time
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from .const import (
    BOOTSTRAP_TIMEOUT,
    COMMAND_FAN,
    COMMAND_MODE,
    COMMAND_SWING,
    COMMAND_TEMPERATURE,
    DISCOVERY_DELAY,
    FEATURE_COMMANDS,
    TICK_INTERVAL,
)
from .devices import InvalidRawCommandError, parse_on_off
from .messages import (
    InvalidStateMessageError,
    build_discovery_message,
    build_state_message,
    parse_state_message,
)
from .models import FanLevel, Mode, SwingMode

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .devices import IRClimateDevice
    from .mqtt_bridge import IRClimateMqttBridge
    from .power_tracker import PowerTracker

_LOGGER = logging.getLogger(__name__)


class IRClimateCoordinator(DataUpdateCoordinator[None]):
    """Keep the believed state of one unit in sync and publish it.

    Everything runs on the event loop. MQTT callbacks only queue frames or
    store readings in the bridge; the coordinator's periodic refresh is the
    tick that polls them, feeds the power tracker and services the bootstrap
    and publish timers. The believed state lives in the device model, so the
    coordinator carries no data and notifies listeners explicitly.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        device: IRClimateDevice,
        bridge: IRClimateMqttBridge,
        tracker: PowerTracker,
        *,
        name: str,
        unique_id: str,
        discovery_topic: str | None = None,
        config_entry: ConfigEntry | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the coordinator.

        Args:
            hass: Home Assistant instance.
            device: Model of the unit.
            bridge: MQTT bridge of the unit.
            tracker: Power tracker fed with the unit's power readings.
            name: Friendly name of the unit.
            unique_id: Unique id of the unit.
            discovery_topic: Topic of the MQTT discovery config, or None to
                disable discovery.
            config_entry: Config entry owning the unit.
            clock: Monotonic clock returning seconds.

        """
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=name,
            update_interval=timedelta(seconds=TICK_INTERVAL),
            always_update=False,
        )
        self.device = device
        self.bridge = bridge
        self.tracker = tracker
        self.unique_id = unique_id
        self._discovery_topic = discovery_topic
        self._clock = clock

        self._initialized = False
        self._awaiting_retained = False
        self._bootstrap_started_at = clock()
        self._discovery_pending = False
        self._state_pending = False
        self._next_publish_at = 0.0
        self._publish_backoff = float(TICK_INTERVAL)
        self._tick_running = False

        self._unsubscribers: list[Callable[[], None]] = []

    @property
    def initialized(self) -> bool:
        """Return True once the bootstrap sequence has completed."""
        return self._initialized

    @property
    def awaiting_retained(self) -> bool:
        """Return True while waiting for the retained state message."""
        return self._awaiting_retained

    @property
    def publish_pending(self) -> bool:
        """Return True if the state still has to be published."""
        return self._state_pending

    @property
    def current_temperature(self) -> float | None:
        """Return the latest room temperature reading."""
        return self.bridge.current_temperature

    async def async_start(self) -> None:
        """Subscribe, start the bootstrap sequence and the periodic tick.

        The refresh is only scheduled while a listener is registered, so the
        coordinator keeps one of its own; the tick must run even when every
        entity of the unit is disabled.
        """
        self._unsubscribers.extend(
            [
                self.tracker.register_callback(self._handle_stable_power),
                self.bridge.register_command_callback(self._handle_command_message),
                self.bridge.register_state_message_callback(
                    self._handle_state_message
                ),
                self.bridge.register_connection_callback(self._handle_connection),
                self.bridge.register_temperature_callback(
                    self._handle_temperature
                ),
            ]
        )

        await self.bridge.async_subscribe()
        self.begin_bootstrap()

        self._unsubscribers.append(self.async_add_listener(self._keep_refreshing))
        _LOGGER.info("Started IR climate coordinator for %s", self.name)

    async def async_stop(self) -> None:
        """Stop the tick and drop every subscription."""
        while self._unsubscribers:
            self._unsubscribers.pop()()
        await self.async_shutdown()
        self.bridge.async_unsubscribe()
        self._initialized = False
        _LOGGER.info("Stopped IR climate coordinator for %s", self.name)

    def begin_bootstrap(self) -> None:
        """Restart the bootstrap sequence, as after an MQTT reconnect."""
        self._initialized = False
        self._awaiting_retained = True
        self._bootstrap_started_at = self._clock()
        self._discovery_pending = self._discovery_topic is not None
        self._state_pending = True
        self._next_publish_at = 0.0
        self._publish_backoff = float(TICK_INTERVAL)
        self.tracker.reset()
        _LOGGER.info("Bootstrapping state of %s", self.name)

    async def async_tick(self) -> None:
        """Run one reconciliation step."""
        if self._tick_running:
            return

        self._tick_running = True
        try:
            now = self._clock()

            if not self._initialized:
                await self._async_bootstrap_step(now)
                return

            frame = self.bridge.decode()
            if frame is not None:
                self._apply_ir_frame(frame)

            power = self.bridge.power
            if not self.tracker.is_initialized() and not math.isnan(power):
                self.tracker.initialize(power)
                _LOGGER.debug("Power tracker initialized with %.2fW", power)
            self.tracker.set_power(power)

            await self._async_flush(now)
        finally:
            self._tick_running = False

    async def async_set_hvac_mode(self, hvac_mode: Mode) -> bool:
        """Set the user-facing mode; a mode change resets power tracking."""
        self.tracker.reset()
        return await self._async_execute(
            f"hvac_mode={hvac_mode}",
            lambda: self.device.set_hvac_mode(hvac_mode),
        )

    async def async_set_temperature(self, temperature: float) -> bool:
        """Set the target temperature."""
        return await self._async_execute(
            f"temperature={temperature}",
            lambda: self.device.set_temperature(temperature),
        )

    async def async_set_fan(self, fan: FanLevel) -> bool:
        """Set the fan level."""
        return await self._async_execute(
            f"fan={fan}", lambda: self.device.set_fan(fan)
        )

    async def async_set_swing(self, swing: SwingMode) -> bool:
        """Set the swing mode."""
        return await self._async_execute(
            f"swing={swing}", lambda: self.device.set_swing(swing)
        )

    async def async_set_feature(self, feature: str, *, on: bool) -> bool:
        """Toggle a feature such as boost or eco."""
        return await self._async_execute(
            f"{feature}={'on' if on else 'off'}",
            lambda: self.device.set_feature(feature, on=on),
        )

    async def async_handle_command(self, command: str, payload: str) -> None:
        """Apply a message received on one of the command topics.

        Unparseable payloads are logged and ignored.
        """
        try:
            if command == COMMAND_MODE:
                await self.async_set_hvac_mode(Mode(payload.lower()))
            elif command == COMMAND_TEMPERATURE:
                await self.async_set_temperature(float(payload))
            elif command == COMMAND_FAN:
                await self.async_set_fan(FanLevel(payload.lower()))
            elif command == COMMAND_SWING:
                await self.async_set_swing(SwingMode(payload.lower()))
            elif command in FEATURE_COMMANDS:
                await self.async_set_feature(command, on=parse_on_off(payload))
            else:
                _LOGGER.warning("Unknown command %s", command)
        except ValueError:
            _LOGGER.warning("Ignoring %s command with payload %r", command, payload)

    async def _async_execute(self, action: str, mutate: Callable[[], bool]) -> bool:
        if mutate():
            _LOGGER.debug("Applied %s: %s", action, self.device.describe())
            raw = self.device.to_raw()
            if await self.bridge.async_transmit(raw):
                self.device.mark_transmitted()
            else:
                _LOGGER.warning("Failed to transmit %s to %s", action, self.name)
            success = True
        else:
            _LOGGER.warning(
                "Rejected %s in mode %s for %s", action, self.device.state.mode, self.name
            )
            success = False

        self._schedule_publish()
        await self._async_flush(self._clock())
        return success

    async def _async_bootstrap_step(self, now: float) -> None:
        elapsed = now - self._bootstrap_started_at

        if self._awaiting_retained:
            if elapsed >= BOOTSTRAP_TIMEOUT:
                _LOGGER.warning(
                    "Timed out after %.2fs waiting for the retained state of %s, "
                    "using defaults",
                    elapsed,
                    self.name,
                )
                self._awaiting_retained = False
            return

        if elapsed < DISCOVERY_DELAY:
            return

        self._initialized = True
        _LOGGER.info("State of %s initialized: %s", self.name, self.device.describe())
        await self._async_flush(now)
        self.async_update_listeners()

    async def _async_flush(self, now: float) -> None:
        if not self._initialized:
            return

        if not (self._discovery_pending or self._state_pending):
            return

        if now < self._next_publish_at:
            return

        success = True
        if self._discovery_pending:
            success = await self.bridge.async_publish_discovery(
                self._discovery_topic, self._build_discovery()
            )
            if success:
                self._discovery_pending = False
            else:
                _LOGGER.warning("Sending the discovery config of %s failed", self.name)

        if success and self._state_pending:
            success = await self.bridge.async_publish_state(
                build_state_message(self.device)
            )
            if success:
                self._state_pending = False
            else:
                _LOGGER.warning("Sending the state of %s failed", self.name)

        if success:
            self._publish_backoff = float(TICK_INTERVAL)
            self._next_publish_at = now
            return

        self._next_publish_at = now + self._publish_backoff
        self._publish_backoff = min(self._publish_backoff * 2, BOOTSTRAP_TIMEOUT)

    def _build_discovery(self) -> dict[str, Any]:
        return build_discovery_message(
            self.device,
            name=self.name,
            unique_id=self.unique_id,
            topics=self.bridge.command_topics,
            state_topic=self.bridge.state_topic,
            current_temperature_topic=self.bridge.current_temperature_topic,
            current_temperature_field=self.bridge.current_temperature_field,
        )

    def _schedule_publish(self) -> None:
        self._state_pending = True
        self.async_update_listeners()

    def _apply_ir_frame(self, frame: dict[str, Any]) -> None:
        self.tracker.reset()
        try:
            self.device.apply_external_observation(frame)
        except InvalidRawCommandError as err:
            _LOGGER.warning("Ignoring IR frame %s: %s", frame, err)
            return

        _LOGGER.info("State of %s changed by remote", self.name)
        self._schedule_publish()

    def _handle_stable_power(self, power: float) -> None:
        sensor_on = self.tracker.power_on()
        if sensor_on == self.device.power_on:
            return

        _LOGGER.warning(
            "Power of %s is %.2fW, correcting believed state to %s",
            self.name,
            power,
            "on" if sensor_on else "off",
        )
        self.device.correct_power_state(on=sensor_on)
        self._schedule_publish()

    def _handle_state_message(self, payload: str) -> None:
        if not self._awaiting_retained:
            return

        self._awaiting_retained = False
        try:
            restored = parse_state_message(payload)
        except InvalidStateMessageError as err:
            _LOGGER.warning(
                "Skipping restore of %s from retained state: %s", self.name, err
            )
            return

        self.device.restore(restored)
        _LOGGER.info("Restored last state of %s: %s", self.name, self.device.describe())

    def _handle_command_message(self, command: str, payload: str) -> None:
        self.hass.async_create_task(self.async_handle_command(command, payload))

    def _handle_connection(self, connected: bool) -> None:  # noqa: FBT001
        if not connected:
            _LOGGER.warning("MQTT connection lost, %s waits for reconnect", self.name)
        self.begin_bootstrap()
        self.async_update_listeners()

    def _handle_temperature(self, _temperature: float) -> None:
        self.async_update_listeners()

    def _keep_refreshing(self) -> None:
        """Keep the periodic refresh scheduled."""

    async def _async_update_data(self) -> None:
        await self.async_tick()

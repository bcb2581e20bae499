"""MQTT bridge for the IR climate integration.

This module owns every MQTT subscription of a configured unit: decoded IR
frames from the Tasmota IR bridge, power readings from a smart plug, the
command topics, the retained state topic and the optional room temperature
topic. MQTT callbacks only enqueue or store values; the coordinator polls
them from its tick.
"""

from __future__ import annotations

import json
import logging
import math
from collections import deque
from typing import TYPE_CHECKING, Any

from homeassistant.components import mqtt
from homeassistant.core import callback
from homeassistant.exceptions import HomeAssistantError

from .const import IR_QUEUE_SIZE

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from homeassistant.components.mqtt import ReceiveMessage
    from homeassistant.core import HomeAssistant

_LOGGER = logging.getLogger(__name__)


def extract_json_number(payload: str | bytes, field: str) -> float | None:
    """Extract a numeric field from a JSON object payload.

    Plain numeric payloads are accepted as well, so a sensor publishing a
    bare value works without a field.

    Returns:
        The value, or None if the payload does not carry a number.

    """
    try:
        data = json.loads(payload)
    except ValueError:
        return None

    if isinstance(data, dict):
        data = data.get(field)

    if isinstance(data, bool) or not isinstance(data, (int, float, str)):
        return None

    try:
        value = float(data)
    except ValueError:
        return None

    if math.isnan(value):
        return None
    return value


def extract_irhvac(payload: str | bytes) -> dict[str, Any] | None:
    """Return the IRHVAC object of a Tasmota IR message, if any."""
    try:
        data = json.loads(payload)
    except ValueError:
        return None

    if not isinstance(data, dict):
        return None

    # Messages on `tele` topics are wrapped in IrReceived
    if "IrReceived" in data:
        data = data["IrReceived"]
        if not isinstance(data, dict):
            return None

    irhvac = data.get("IRHVAC")
    if not isinstance(irhvac, dict):
        return None
    return irhvac


class IRClimateMqttBridge:
    """Bridge between Home Assistant MQTT and a single IR air conditioner.

    The bridge never touches the device model; it hands decoded frames,
    commands and readings to the coordinator through polling and registered
    callbacks.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        *,
        ir_command_topic: str,
        ir_receive_topic: str,
        state_topic: str,
        command_topics: Mapping[str, str],
        power_topic: str | None = None,
        power_field: str = "power",
        current_temperature_topic: str | None = None,
        current_temperature_field: str = "temperature",
        queue_size: int = IR_QUEUE_SIZE,
    ) -> None:
        """Initialize the bridge.

        Args:
            hass: Home Assistant instance.
            ir_command_topic: Topic the IRHVAC commands are published to.
            ir_receive_topic: Topic carrying frames decoded by the IR bridge.
            state_topic: Retained state topic of the unit.
            command_topics: Command topics keyed by command name.
            power_topic: Optional topic of the power sensor.
            power_field: JSON field holding the power reading.
            current_temperature_topic: Optional room temperature topic.
            current_temperature_field: JSON field holding the temperature.
            queue_size: Maximum number of decoded frames kept.

        """
        self._hass = hass
        self.ir_command_topic = ir_command_topic
        self.ir_receive_topic = ir_receive_topic
        self.state_topic = state_topic
        self.command_topics = dict(command_topics)
        self.power_topic = power_topic
        self.power_field = power_field
        self.current_temperature_topic = current_temperature_topic
        self.current_temperature_field = current_temperature_field

        self._ir_queue: deque[dict[str, Any]] = deque(maxlen=queue_size)
        self._transmitting = False
        self._power = math.nan
        self._current_temperature: float | None = None
        self._unsubscribers: list[Callable[[], None]] = []

        self._command_callbacks: list[Callable[[str, str], None]] = []
        self._state_message_callbacks: list[Callable[[str], None]] = []
        self._connection_callbacks: list[Callable[[bool], None]] = []
        self._temperature_callbacks: list[Callable[[float], None]] = []

    @property
    def subscribed(self) -> bool:
        """Return True if the bridge holds its subscriptions."""
        return bool(self._unsubscribers)

    @property
    def transmitting(self) -> bool:
        """Return True while an IR command is being published."""
        return self._transmitting

    @property
    def power(self) -> float:
        """Return the latest power reading, NaN when none was received."""
        return self._power

    @property
    def current_temperature(self) -> float | None:
        """Return the latest room temperature reading."""
        return self._current_temperature

    def register_command_callback(
        self,
        callback: Callable[[str, str], None],
    ) -> Callable[[], None]:
        """Register a callback for messages on the command topics.

        Args:
            callback: Function called with the command name and payload.

        Returns:
            A function to unregister the callback.

        """
        return _register(self._command_callbacks, callback)

    def register_state_message_callback(
        self,
        callback: Callable[[str], None],
    ) -> Callable[[], None]:
        """Register a callback for messages on the state topic.

        Args:
            callback: Function called with the raw payload.

        Returns:
            A function to unregister the callback.

        """
        return _register(self._state_message_callbacks, callback)

    def register_connection_callback(
        self,
        callback: Callable[[bool], None],
    ) -> Callable[[], None]:
        """Register a callback for MQTT connection changes.

        Args:
            callback: Function called with True on connect, False on
                disconnect.

        Returns:
            A function to unregister the callback.

        """
        return _register(self._connection_callbacks, callback)

    def register_temperature_callback(
        self,
        callback: Callable[[float], None],
    ) -> Callable[[], None]:
        """Register a callback for room temperature readings.

        Returns:
            A function to unregister the callback.

        """
        return _register(self._temperature_callbacks, callback)

    async def async_subscribe(self) -> None:
        """Subscribe to every topic of the unit."""
        if self._unsubscribers:
            _LOGGER.debug("Already subscribed to %s", self.state_topic)
            return

        self._unsubscribers.append(
            await mqtt.async_subscribe(
                self._hass, self.ir_receive_topic, self._handle_ir_message, qos=1
            )
        )
        self._unsubscribers.append(
            await mqtt.async_subscribe(
                self._hass, self.state_topic, self._handle_state_message, qos=1
            )
        )

        for command, topic in self.command_topics.items():
            self._unsubscribers.append(
                await mqtt.async_subscribe(
                    self._hass, topic, self._command_handler(command), qos=1
                )
            )

        if self.power_topic:
            self._unsubscribers.append(
                await mqtt.async_subscribe(
                    self._hass, self.power_topic, self._handle_power_message
                )
            )

        if self.current_temperature_topic:
            self._unsubscribers.append(
                await mqtt.async_subscribe(
                    self._hass,
                    self.current_temperature_topic,
                    self._handle_temperature_message,
                )
            )

        self._unsubscribers.append(
            mqtt.async_subscribe_connection_status(
                self._hass, self._handle_connection_status
            )
        )

        _LOGGER.info(
            "Subscribed to %d topics for %s",
            len(self._unsubscribers) - 1,
            self.state_topic,
        )

    @callback
    def async_unsubscribe(self) -> None:
        """Drop every subscription."""
        while self._unsubscribers:
            self._unsubscribers.pop()()
        self._ir_queue.clear()

    def decode(self) -> dict[str, Any] | None:
        """Pop the oldest decoded IR frame, if any."""
        if not self._ir_queue:
            return None
        return self._ir_queue.popleft()

    async def async_transmit(self, raw: Mapping[str, Any]) -> bool:
        """Publish a full-state IRHVAC command to the IR bridge.

        Frames received while the command is in flight are dropped.

        Returns:
            True if the command was handed to MQTT, False otherwise.

        """
        self._transmitting = True
        try:
            return await self._async_publish(self.ir_command_topic, dict(raw))
        finally:
            self._transmitting = False

    async def async_publish_state(self, message: Mapping[str, Any]) -> bool:
        """Publish the retained state message.

        Returns:
            True on success, False otherwise.

        """
        return await self._async_publish(self.state_topic, dict(message), retain=True)

    async def async_publish_discovery(
        self,
        topic: str,
        config: Mapping[str, Any],
    ) -> bool:
        """Publish a retained discovery config.

        Returns:
            True on success, False otherwise.

        """
        return await self._async_publish(topic, dict(config), retain=True)

    async def _async_publish(
        self,
        topic: str,
        payload: dict[str, Any],
        *,
        retain: bool = False,
    ) -> bool:
        data = json.dumps(payload)
        try:
            await mqtt.async_publish(self._hass, topic, data, qos=1, retain=retain)
        except HomeAssistantError as err:
            _LOGGER.warning("Failed to publish to %s: %s", topic, err)
            return False

        _LOGGER.debug("Published to %s: %s", topic, data)
        return True

    @callback
    def _handle_ir_message(self, msg: ReceiveMessage) -> None:
        if self._transmitting:
            _LOGGER.debug("Dropping IR frame received while transmitting")
            return

        irhvac = extract_irhvac(msg.payload)
        if irhvac is None:
            _LOGGER.debug("Ignoring IR message without IRHVAC: %s", msg.payload)
            return

        if len(self._ir_queue) == self._ir_queue.maxlen:
            _LOGGER.warning("IR queue full, dropping oldest frame")
        self._ir_queue.append(irhvac)

    @callback
    def _handle_state_message(self, msg: ReceiveMessage) -> None:
        payload = _as_text(msg.payload)
        for state_callback in list(self._state_message_callbacks):
            try:
                state_callback(payload)
            except Exception:
                _LOGGER.exception("Error in state message callback")

    def _command_handler(self, command: str) -> Callable[[ReceiveMessage], None]:
        @callback
        def handle(msg: ReceiveMessage) -> None:
            payload = _as_text(msg.payload).strip()
            _LOGGER.debug("Command %s: %s", command, payload)
            for command_callback in list(self._command_callbacks):
                try:
                    command_callback(command, payload)
                except Exception:
                    _LOGGER.exception("Error in command callback")

        return handle

    @callback
    def _handle_power_message(self, msg: ReceiveMessage) -> None:
        value = extract_json_number(msg.payload, self.power_field)
        if value is None:
            _LOGGER.debug("No %s in power message: %s", self.power_field, msg.payload)
            return
        self._power = value

    @callback
    def _handle_temperature_message(self, msg: ReceiveMessage) -> None:
        value = extract_json_number(msg.payload, self.current_temperature_field)
        if value is None:
            _LOGGER.debug(
                "No %s in temperature message: %s",
                self.current_temperature_field,
                msg.payload,
            )
            return

        self._current_temperature = value
        for temperature_callback in list(self._temperature_callbacks):
            try:
                temperature_callback(value)
            except Exception:
                _LOGGER.exception("Error in temperature callback")

    @callback
    def _handle_connection_status(self, connected: bool) -> None:  # noqa: FBT001
        _LOGGER.info("MQTT %s", "connected" if connected else "disconnected")
        if not connected:
            self._power = math.nan
        for connection_callback in list(self._connection_callbacks):
            try:
                connection_callback(connected)
            except Exception:
                _LOGGER.exception("Error in connection callback")


def _register(callbacks: list[Any], callback_: Any) -> Callable[[], None]:  # noqa: ANN401
    callbacks.append(callback_)

    def unregister() -> None:
        if callback_ in callbacks:
            callbacks.remove(callback_)

    return unregister


def _as_text(payload: str | bytes) -> str:
    if isinstance(payload, bytes):
        return payload.decode("utf-8", errors="replace")
    return payload

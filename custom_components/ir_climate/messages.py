"""State and discovery messages published on MQTT."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from .const import (
    COMMAND_FAN,
    COMMAND_MODE,
    COMMAND_SWING,
    COMMAND_TEMPERATURE,
    DOMAIN,
)
from .models import FanLevel, Mode, RestoredState, Snapshot, SwingMode

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .devices import IRClimateDevice

_LOGGER = logging.getLogger(__name__)


class InvalidStateMessageError(ValueError):
    """Raised when a retained state message cannot be parsed."""


def build_state_message(device: IRClimateDevice) -> dict[str, Any]:
    """Build the retained state message for a device."""
    state = device.state
    snapshot = state.saved_snapshot

    return {
        "hvac_mode": str(device.hvac_mode),
        "fan_mode": str(state.fan),
        "temperature": state.temperature,
        "swing_mode": str(state.swing),
        "attrs": {
            "boost": state.boost,
            "eco": state.eco,
            "health": state.health,
            "light": state.light,
            "sleep": state.sleep,
            "quiet": state.quiet,
            "mode": str(state.mode),
            "prev_fan_mode": str(state.previous_fan),
            "set_temp_allowed": device.temperature_settable,
            "fan_modes_allowed": [str(fan) for fan in device.fan_modes_allowed],
            "saved_state": (
                {
                    "temperature": snapshot.temperature,
                    "fan_mode": str(snapshot.fan),
                    "swing_mode": str(snapshot.swing),
                }
                if snapshot is not None
                else None
            ),
        },
    }


def parse_state_message(payload: str | bytes) -> RestoredState:
    """Parse a retained state message.

    Args:
        payload: Raw MQTT payload.

    Returns:
        The fields that can be restored.

    Raises:
        InvalidStateMessageError: If the payload is not a valid state message.

    """
    try:
        root = json.loads(payload)
    except ValueError as err:
        error_msg = f"State message is not JSON: {err}"
        raise InvalidStateMessageError(error_msg) from err

    if not isinstance(root, dict):
        error_msg = "State message must be a JSON object"
        raise InvalidStateMessageError(error_msg)

    attrs = root.get("attrs")
    if attrs is None:
        attrs = {}
    elif not isinstance(attrs, dict):
        error_msg = "State message attrs must be a JSON object"
        raise InvalidStateMessageError(error_msg)

    hvac_mode = _enum(Mode, root.get("hvac_mode"), "hvac_mode")
    temperature = root.get("temperature")
    if temperature is not None:
        try:
            temperature = float(temperature)
        except (TypeError, ValueError) as err:
            error_msg = f"Invalid temperature {temperature!r}"
            raise InvalidStateMessageError(error_msg) from err

    return RestoredState(
        hvac_mode=hvac_mode,
        mode=_enum(Mode, attrs.get("mode", hvac_mode), "mode"),
        fan=_enum(FanLevel, root.get("fan_mode", FanLevel.UNDEFINED), "fan_mode"),
        previous_fan=_enum(
            FanLevel, attrs.get("prev_fan_mode", FanLevel.UNDEFINED), "prev_fan_mode"
        ),
        swing=_enum(SwingMode, root.get("swing_mode", SwingMode.OFF), "swing_mode"),
        temperature=temperature,
        boost=bool(attrs.get("boost", False)),
        eco=bool(attrs.get("eco", False)),
        health=bool(attrs.get("health", False)),
        light=bool(attrs.get("light", False)),
        sleep=bool(attrs.get("sleep", False)),
        quiet=bool(attrs.get("quiet", False)),
        saved_snapshot=_parse_snapshot(attrs.get("saved_state")),
    )


def build_discovery_message(
    device: IRClimateDevice,
    name: str,
    unique_id: str,
    topics: Mapping[str, str],
    state_topic: str,
    current_temperature_topic: str | None = None,
    current_temperature_field: str | None = None,
) -> dict[str, Any]:
    """Build the MQTT climate discovery config for a device.

    Args:
        device: Model whose capabilities are advertised.
        name: Friendly name of the unit.
        unique_id: Unique id of the unit.
        topics: Command topics keyed by command name.
        state_topic: Topic carrying the retained state message.
        current_temperature_topic: Optional room temperature topic.
        current_temperature_field: JSON field of the room temperature.

    Returns:
        The discovery payload, using abbreviated keys.

    """
    config: dict[str, Any] = {
        "name": name,
        "uniq_id": unique_id,
        "modes": [str(mode) for mode in device.modes],
        "fan_modes": [str(fan) for fan in device.fan_levels],
        "swing_modes": [str(swing) for swing in device.swing_modes],
        "min_temp": device.temp_min,
        "max_temp": device.temp_max,
        "temp_step": device.temp_step,
        "mode_cmd_t": topics[COMMAND_MODE],
        "mode_stat_t": state_topic,
        "mode_stat_tpl": "{{ value_json.hvac_mode }}",
        "temp_cmd_t": topics[COMMAND_TEMPERATURE],
        "temp_stat_t": state_topic,
        "temp_stat_tpl": "{{ value_json.temperature }}",
        "fan_mode_cmd_t": topics[COMMAND_FAN],
        "fan_mode_stat_t": state_topic,
        "fan_mode_stat_tpl": "{{ value_json.fan_mode }}",
        "swing_mode_cmd_t": topics[COMMAND_SWING],
        "swing_mode_stat_t": state_topic,
        "swing_mode_stat_tpl": "{{ value_json.swing_mode }}",
        "json_attr_t": state_topic,
        "json_attr_tpl": "{{ value_json.attrs | tojson }}",
        "device": {
            "ids": [unique_id],
            "name": name,
            "mf": device.vendor,
            "sw": DOMAIN,
        },
    }

    if current_temperature_topic:
        config["curr_temp_t"] = current_temperature_topic
        config["curr_temp_tpl"] = (
            f"{{{{ value_json.{current_temperature_field} }}}}"
        )

    return config


def _enum(enum_cls: type, value: Any, field: str) -> Any:  # noqa: ANN401
    try:
        return enum_cls(value)
    except (TypeError, ValueError) as err:
        error_msg = f"Invalid {field} {value!r}"
        raise InvalidStateMessageError(error_msg) from err


def _parse_snapshot(raw: Any) -> Snapshot | None:  # noqa: ANN401
    if raw is None:
        return None

    if not isinstance(raw, dict):
        _LOGGER.warning("Ignoring malformed saved state: %s", raw)
        return None

    try:
        return Snapshot(
            temperature=float(raw["temperature"]),
            fan=FanLevel(raw["fan_mode"]),
            swing=SwingMode(raw["swing_mode"]),
        )
    except (KeyError, TypeError, ValueError):
        _LOGGER.warning("Ignoring malformed saved state: %s", raw)
        return None

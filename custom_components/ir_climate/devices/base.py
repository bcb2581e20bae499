"""State and constraint model shared by all IR air conditioner variants.

The operating mode is the dominant state variable: every other field's
legality is a pure function of it, looked up in the variant's constraint
table. Boost is a nested state machine inside the mode that snapshots the
user configuration on activation and restores it on deactivation.

Variants only declare data (ranges, fan levels, constraint tables, boost
profiles and the names used by the IR bridge for each field); the logic in
this module is shared.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import TYPE_CHECKING, Any, ClassVar

from ..const import BOOL_FALSE_STRINGS, BOOL_TRUE_STRINGS
from ..models import (
    BoostProfile,
    ConstraintTable,
    DeviceState,
    FanLevel,
    Mode,
    RestoredState,
    Snapshot,
    SwingMode,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

_LOGGER = logging.getLogger(__name__)

# Manual changes to these fields while boost is active cancel boost
HEAT_SENSITIVE_MODES = frozenset({Mode.HEAT, Mode.COOL})
FAN_OVERRIDE_MODES = frozenset({Mode.COOL, Mode.HEAT, Mode.FAN, Mode.DRY})

TOGGLE_FEATURES = ("eco", "health", "light", "sleep")

RAW_MODES = {
    "auto": Mode.AUTO,
    "cool": Mode.COOL,
    "heat": Mode.HEAT,
    "dry": Mode.DRY,
    "fan": Mode.FAN,
    "fan_only": Mode.FAN,
    "off": Mode.OFF,
}
RAW_MODE_NAMES = {
    Mode.AUTO: "Auto",
    Mode.COOL: "Cool",
    Mode.HEAT: "Heat",
    Mode.DRY: "Dry",
    Mode.FAN: "Fan",
}

NO_FEATURES = ConstraintTable(swing_allowed=False, temperature_settable=False)


class InvalidRawCommandError(ValueError):
    """Raised when a decoded IR payload cannot be mapped onto the model."""


def parse_on_off(value: Any) -> bool:  # noqa: ANN401
    """Parse an on/off flag as sent by the IR bridge or a command topic.

    Raises:
        ValueError: If the value is not a recognised boolean spelling.

    """
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in BOOL_TRUE_STRINGS:
        return True
    if text in BOOL_FALSE_STRINGS:
        return False
    error_msg = f"Unrecognized on/off value {value!r}"
    raise ValueError(error_msg)


class IRClimateDevice:
    """Believed state of an IR-controlled air conditioner and its rules.

    Mutators return True on success and False when the request is illegal in
    the current mode; a rejected request never changes the state.
    """

    protocol: ClassVar[str]
    vendor: ClassVar[str]
    temp_min: ClassVar[float]
    temp_max: ClassVar[float]
    temp_step: ClassVar[float]
    toggles_power: ClassVar[bool] = False
    modes: ClassVar[tuple[Mode, ...]] = (
        Mode.OFF,
        Mode.HEAT,
        Mode.AUTO,
        Mode.COOL,
        Mode.DRY,
        Mode.FAN,
    )
    fan_levels: ClassVar[tuple[FanLevel, ...]]
    swing_modes: ClassVar[tuple[SwingMode, ...]] = (SwingMode.OFF, SwingMode.HORIZONTAL)
    exclusive_fans: ClassVar[Mapping[FanLevel, str]] = {}
    features: ClassVar[tuple[str, ...]] = ()
    constraints: ClassVar[Mapping[Mode, ConstraintTable]]
    boost_profiles: ClassVar[Mapping[Mode, BoostProfile]] = {}

    # Field names used by the IR bridge
    swing_axis: ClassVar[str] = "SwingV"
    raw_fan_names: ClassVar[Mapping[FanLevel, str]]
    raw_flags: ClassVar[Mapping[str, str]] = {}

    def __init__(self, state: DeviceState | None = None) -> None:
        """Initialize the model and enforce the constraints of its mode."""
        self.state = state if state is not None else self.default_state()
        self._apply_constraints()

    @classmethod
    def default_state(cls) -> DeviceState:
        """Return the state assumed before anything is known."""
        return DeviceState(mode=Mode.COOL, fan=FanLevel.MEDIUM, temperature=24.0)

    @property
    def constraint_table(self) -> ConstraintTable:
        """Return the constraint table of the active mode."""
        return self.constraints.get(self.state.mode, NO_FEATURES)

    @property
    def power_on(self) -> bool:
        """Return the believed on/off state."""
        return self.state.power_on

    @property
    def hvac_mode(self) -> Mode:
        """Return the mode as seen by users: off whenever power is off."""
        if not self.state.power_on:
            return Mode.OFF
        return self.state.mode

    @property
    def temperature_settable(self) -> bool:
        """Return True if the target temperature can be changed in this mode."""
        return self.constraint_table.temperature_settable

    @property
    def fan_modes_allowed(self) -> list[FanLevel]:
        """Return the fan levels that can be selected right now."""
        return [fan for fan in self.fan_levels if self.is_fan_supported(fan)]

    def feature_allowed(self, feature: str) -> bool:
        """Return True if the named feature may be enabled in this mode."""
        if feature not in self.features:
            return False
        return getattr(self.constraint_table, f"{feature}_allowed", False)

    def is_fan_supported(self, fan: FanLevel) -> bool:
        """Return True if the fan level is legal in the current mode."""
        if fan not in self.fan_levels:
            return False

        feature = self.exclusive_fans.get(fan)
        if feature is not None:
            return getattr(self.state, feature)

        allowed = self.constraint_table.fans
        return allowed is None or fan in allowed

    def set_mode(self, mode: Mode) -> bool:
        """Switch the operating mode and re-apply its constraint table."""
        if mode not in self.constraints:
            _LOGGER.warning("[%s] Unsupported mode %s", self.protocol, mode)
            return False

        if self.state.boost:
            self._deactivate_boost()

        self.state.mode = mode
        self._apply_constraints()
        return True

    def set_hvac_mode(self, hvac_mode: Mode) -> bool:
        """Set the user-facing mode, where off means powering down."""
        if hvac_mode == Mode.OFF:
            return self.set_power(on=False)

        if not self.set_mode(hvac_mode):
            return False

        return self.set_power(on=True)

    def set_power(self, *, on: bool) -> bool:
        """Request power on or off; other fields are kept for the next start."""
        if self.state.power_on == on:
            return True

        if self.toggles_power:
            self.state.power_toggle = not self.state.power_toggle

        _LOGGER.debug(
            "[%s] Power %s -> %s (toggle pending: %s)",
            self.protocol,
            self.state.power_on,
            on,
            self.state.power_toggle,
        )
        self.state.power_on = on
        return True

    def correct_power_state(self, *, on: bool) -> None:
        """Overwrite the believed power state without queuing a toggle."""
        self.state.power_on = on

    def set_temperature(self, temperature: float) -> bool:
        """Set the target temperature."""
        if not self.temp_min <= temperature <= self.temp_max:
            _LOGGER.debug(
                "[%s] Temperature %s outside [%s, %s]",
                self.protocol,
                temperature,
                self.temp_min,
                self.temp_max,
            )
            return False

        if not self.constraint_table.temperature_settable:
            _LOGGER.debug(
                "[%s] Temperature is fixed in mode %s", self.protocol, self.state.mode
            )
            return False

        value = self._snap_temperature(temperature)
        if (
            value != self.state.temperature
            and self.state.boost
            and self.state.mode in HEAT_SENSITIVE_MODES
        ):
            self._deactivate_boost()

        self.state.temperature = value
        return True

    def set_fan(self, fan: FanLevel) -> bool:
        """Select a fan level; a manual choice cancels boost."""
        if not self.is_fan_supported(fan):
            _LOGGER.debug(
                "[%s] Fan %s not supported in mode %s",
                self.protocol,
                fan,
                self.state.mode,
            )
            return False

        if (
            fan != self.state.fan
            and self.state.boost
            and self.state.mode in FAN_OVERRIDE_MODES
        ):
            self._deactivate_boost()

        self._write_fan(fan)
        return True

    def set_swing(self, swing: SwingMode) -> bool:
        """Set the swing mode."""
        if swing not in self.swing_modes or not self.constraint_table.swing_allowed:
            return False

        self.state.swing = swing
        return True

    def set_boost(self, *, on: bool) -> bool:
        """Activate or deactivate boost, saving and restoring the user setup."""
        if on == self.state.boost:
            return True

        if not on:
            self._deactivate_boost()
            return True

        if not self.feature_allowed("boost"):
            _LOGGER.debug(
                "[%s] Boost not allowed in mode %s", self.protocol, self.state.mode
            )
            return False

        self.state.eco = False
        if self.state.quiet:
            self._deactivate_quiet()

        if self.state.saved_snapshot is None:
            self.state.saved_snapshot = Snapshot(
                temperature=self.state.temperature,
                fan=self.state.fan,
                swing=self.state.swing,
            )

        self.state.boost = True
        self._apply_boost_profile()
        return True

    def set_eco(self, *, on: bool) -> bool:
        """Toggle eco; eco and boost are mutually exclusive."""
        if not self.feature_allowed("eco"):
            return False

        if self.state.eco == on:
            return True

        if on and self.state.boost:
            self._deactivate_boost()

        self.state.eco = on
        return True

    def set_quiet(self, *, on: bool) -> bool:
        """Toggle quiet, which owns the quiet fan level while enabled."""
        if not self.feature_allowed("quiet"):
            return False

        if self.state.quiet == on:
            return True

        if not on:
            self._deactivate_quiet()
            return True

        if self.state.boost:
            self._deactivate_boost()

        self.state.quiet = True
        self._write_fan(FanLevel.QUIET)
        return True

    def set_health(self, *, on: bool) -> bool:
        """Toggle the ionizer."""
        return self._set_flag("health", on=on)

    def set_light(self, *, on: bool) -> bool:
        """Toggle the display light."""
        return self._set_flag("light", on=on)

    def set_sleep(self, *, on: bool) -> bool:
        """Toggle sleep mode."""
        return self._set_flag("sleep", on=on)

    def set_feature(self, feature: str, *, on: bool) -> bool:
        """Toggle a feature by name."""
        setter = {
            "boost": self.set_boost,
            "eco": self.set_eco,
            "quiet": self.set_quiet,
            "health": self.set_health,
            "light": self.set_light,
            "sleep": self.set_sleep,
        }.get(feature)

        if setter is None:
            _LOGGER.warning("[%s] Unknown feature %s", self.protocol, feature)
            return False

        return setter(on=on)

    def apply_external_observation(self, raw: Mapping[str, Any]) -> None:
        """Absorb a frame decoded from another remote.

        The observed fields overwrite the model; the constraint table of the
        observed mode is then applied. An observed boost flag is kept when
        the mode allows it, together with any snapshot still pending.

        Raises:
            InvalidRawCommandError: If the frame cannot be decoded.

        """
        observed = self.from_raw(raw)
        observed.previous_fan = self.state.previous_fan
        observed.saved_snapshot = (
            self.state.saved_snapshot if observed.boost else None
        )
        self.state = observed
        self._apply_constraints(unwind_boost=False)
        _LOGGER.debug("[%s] Observed state: %s", self.protocol, self.describe())

    def restore(self, restored: RestoredState) -> None:
        """Apply a state recovered from the last retained state message."""
        state = self.state

        if restored.hvac_mode == Mode.OFF:
            state.power_on = False
            if restored.mode in self.constraints:
                state.mode = restored.mode
        elif restored.hvac_mode in self.constraints:
            state.power_on = True
            state.mode = restored.hvac_mode

        state.power_toggle = False
        state.boost = False
        state.quiet = False
        state.saved_snapshot = None
        self._apply_constraints()

        if restored.previous_fan in self.fan_levels and (
            restored.previous_fan not in self.exclusive_fans
        ):
            state.previous_fan = restored.previous_fan
        else:
            state.previous_fan = FanLevel.MEDIUM

        if self.is_fan_supported(restored.fan):
            self._write_fan(restored.fan, remember=False)

        if (
            restored.temperature is not None
            and self.temp_min <= restored.temperature <= self.temp_max
        ):
            state.temperature = self._snap_temperature(restored.temperature)

        if restored.swing in self.swing_modes:
            state.swing = restored.swing

        for feature in TOGGLE_FEATURES:
            self._set_flag(feature, on=getattr(restored, feature))

        if restored.quiet:
            self.set_quiet(on=True)

        if restored.boost and not state.quiet and self.feature_allowed("boost"):
            state.eco = False
            state.boost = True
            state.saved_snapshot = restored.saved_snapshot
            if FanLevel.BOOST in self.exclusive_fans:
                self._write_fan(FanLevel.BOOST)

        self._revalidate_fan()
        _LOGGER.debug("[%s] Restored state: %s", self.protocol, self.describe())

    def mark_transmitted(self) -> None:
        """Clear one-shot bits after the full state has been sent."""
        self.state.power_toggle = False

    def to_raw(self) -> dict[str, Any]:
        """Encode the full state as an IRHVAC command for the IR bridge."""
        state = self.state
        swing = "Auto" if state.swing == SwingMode.HORIZONTAL else "Off"
        payload: dict[str, Any] = {
            "Vendor": self.vendor,
            "Model": -1,
            "Power": self._encode_power(),
            "Mode": RAW_MODE_NAMES.get(state.mode, "Auto"),
            "Celsius": "On",
            "Temp": state.temperature,
            "FanSpeed": self.raw_fan_names.get(state.fan, "Auto"),
            "SwingV": swing if self.swing_axis == "SwingV" else "Off",
            "SwingH": swing if self.swing_axis == "SwingH" else "Off",
            "Quiet": "Off",
            "Turbo": "Off",
            "Econo": "Off",
            "Light": "Off",
            "Filter": "Off",
            "Clean": "Off",
            "Beep": "Off",
            "Sleep": -1,
        }
        for key, feature in self.raw_flags.items():
            payload[key] = "On" if getattr(state, feature) else "Off"
        if "sleep" in self.features:
            payload["Sleep"] = 0 if state.sleep else -1
        return payload

    def from_raw(self, raw: Mapping[str, Any]) -> DeviceState:
        """Decode an IRHVAC object received from the IR bridge.

        Every field is optional; absent fields keep their current value.

        Raises:
            InvalidRawCommandError: If the frame belongs to another vendor or
                carries a value the variant does not know.

        """
        vendor = raw.get("Vendor")
        if vendor is not None and str(vendor).upper() != self.vendor:
            error_msg = f"Frame from vendor {vendor!r}, expected {self.vendor}"
            raise InvalidRawCommandError(error_msg)

        state = replace(self.state, power_toggle=False)

        if "Mode" in raw:
            mode = RAW_MODES.get(str(raw["Mode"]).lower())
            if mode is None:
                error_msg = f"Unknown mode {raw['Mode']!r}"
                raise InvalidRawCommandError(error_msg)
            if mode == Mode.OFF:
                state.power_on = False
            else:
                state.mode = mode

        if "Temp" in raw:
            temperature = _raw_number(raw["Temp"])
            if self.temp_min <= temperature <= self.temp_max:
                state.temperature = self._snap_temperature(temperature)

        for key, feature in self.raw_flags.items():
            if key in raw:
                setattr(state, feature, _raw_flag(key, raw[key]))

        if "FanSpeed" in raw:
            state.fan = self._decode_fan(raw["FanSpeed"])
            # Exclusive fan levels imply their feature
            for fan, feature in self.exclusive_fans.items():
                setattr(state, feature, state.fan == fan)

        if self.swing_axis in raw:
            state.swing = (
                SwingMode.OFF
                if str(raw[self.swing_axis]).lower() == "off"
                else SwingMode.HORIZONTAL
            )

        if "sleep" in self.features and "Sleep" in raw:
            state.sleep = _raw_number(raw["Sleep"]) >= 0

        if "Power" in raw:
            self._decode_power(state, _raw_flag("Power", raw["Power"]))

        return state

    def describe(self) -> str:
        """Return a one-line summary used in debug logs."""
        state = self.state
        return (
            f"power: {'on' if state.power_on else 'off'}, "
            f"hvac_mode: {self.hvac_mode}, mode: {state.mode}, "
            f"temp: {state.temperature}C, fan: {state.fan}, swing: {state.swing}, "
            f"boost: {state.boost}, eco: {state.eco}, health: {state.health}, "
            f"light: {state.light}, sleep: {state.sleep}, quiet: {state.quiet}"
        )

    def _encode_power(self) -> str:
        if self.toggles_power:
            return "On" if self.state.power_toggle else "Off"
        return "On" if self.state.power_on else "Off"

    def _decode_power(self, state: DeviceState, flag: bool) -> None:  # noqa: FBT001
        if self.toggles_power:
            if flag:
                state.power_on = not self.state.power_on
            return
        state.power_on = flag

    def _decode_fan(self, value: Any) -> FanLevel:  # noqa: ANN401
        name = str(value).lower()
        for fan, raw_name in self.raw_fan_names.items():
            if raw_name.lower() == name:
                return fan

        error_msg = f"Unknown fan speed {value!r}"
        raise InvalidRawCommandError(error_msg)

    def _snap_temperature(self, temperature: float) -> float:
        steps = math.floor((temperature - self.temp_min) / self.temp_step + 0.5)
        value = self.temp_min + steps * self.temp_step
        return min(max(value, self.temp_min), self.temp_max)

    def _write_fan(self, fan: FanLevel, *, remember: bool = True) -> None:
        self.state.fan = fan
        if remember and fan not in self.exclusive_fans:
            self.state.previous_fan = fan

    def _set_flag(self, feature: str, *, on: bool) -> bool:
        if not self.feature_allowed(feature):
            return False

        if feature == "eco":
            return self.set_eco(on=on)

        setattr(self.state, feature, on)
        return True

    def _revalidate_fan(self) -> None:
        if self.is_fan_supported(self.state.fan):
            return

        if self.is_fan_supported(self.state.previous_fan):
            self.state.fan = self.state.previous_fan
            return

        self._write_fan(self.constraint_table.default_fan)

    def _apply_boost_profile(self) -> None:
        profile = self.boost_profiles.get(self.state.mode)
        if profile is None:
            return

        if profile.temperature is not None:
            self.state.temperature = profile.temperature
        if profile.fan is not None:
            self._write_fan(profile.fan, remember=False)
        if profile.swing is not None:
            self.state.swing = profile.swing

        _LOGGER.debug(
            "[%s] Boost profile for %s applied: %s",
            self.protocol,
            self.state.mode,
            self.describe(),
        )

    def _deactivate_boost(self) -> None:
        self.state.boost = False
        snapshot = self.state.saved_snapshot
        self.state.saved_snapshot = None

        if snapshot is not None:
            self.state.temperature = snapshot.temperature
            self.state.swing = snapshot.swing
            self._write_fan(snapshot.fan)
            _LOGGER.debug(
                "[%s] Boost off, restored temp: %s, fan: %s, swing: %s",
                self.protocol,
                snapshot.temperature,
                snapshot.fan,
                snapshot.swing,
            )

        self._revalidate_fan()

    def _deactivate_quiet(self) -> None:
        self.state.quiet = False
        self._revalidate_fan()

    def _apply_constraints(self, *, unwind_boost: bool = True) -> None:
        state = self.state

        for feature in TOGGLE_FEATURES:
            if getattr(state, feature) and not self.feature_allowed(feature):
                setattr(state, feature, False)
                _LOGGER.warning(
                    "[%s] Forcing %s off in mode %s", self.protocol, feature, state.mode
                )

        if state.quiet and not self.feature_allowed("quiet"):
            state.quiet = False
            _LOGGER.warning(
                "[%s] Forcing quiet off in mode %s", self.protocol, state.mode
            )

        if state.boost and not self.feature_allowed("boost"):
            _LOGGER.warning(
                "[%s] Forcing boost off in mode %s", self.protocol, state.mode
            )
            if unwind_boost:
                self._deactivate_boost()
            else:
                state.boost = False
                state.saved_snapshot = None

        self._revalidate_fan()


def _raw_number(value: Any) -> float:  # noqa: ANN401
    try:
        return float(value)
    except (TypeError, ValueError) as err:
        error_msg = f"Expected a number, got {value!r}"
        raise InvalidRawCommandError(error_msg) from err


def _raw_flag(key: str, value: Any) -> bool:  # noqa: ANN401
    try:
        return parse_on_off(value)
    except ValueError as err:
        error_msg = f"Unrecognized {key} value {value!r}"
        raise InvalidRawCommandError(error_msg) from err

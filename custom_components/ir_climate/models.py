"""Data models for IR Climate integration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Mode(StrEnum):
    """Operating mode of the air conditioner."""

    OFF = "off"
    HEAT = "heat"
    DRY = "dry"
    COOL = "cool"
    FAN = "fan_only"
    AUTO = "auto"
    UNDEFINED = "undefined"


class FanLevel(StrEnum):
    """Fan speed; turbo and quiet are exclusive levels owned by features."""

    AUTO = "auto"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    BOOST = "turbo"
    QUIET = "quiet"
    UNDEFINED = "undefined"


class SwingMode(StrEnum):
    """Louver swing mode."""

    OFF = "off"
    HORIZONTAL = "horizontal"


class PowerClassification(StrEnum):
    """Classification of the tracked power signal."""

    UNKNOWN = "unknown"
    FALLING = "falling"
    RISING = "rising"
    STABLE = "stable"


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Configuration saved before boost overrides it."""

    temperature: float
    fan: FanLevel
    swing: SwingMode


@dataclass(frozen=True, slots=True)
class ConstraintTable:
    """Features and fan levels legal in a single operating mode.

    Attributes:
        default_fan: Fan level used when the current one becomes illegal.
        fans: Non-exclusive fan levels allowed, or None for all of them.

    """

    boost_allowed: bool = False
    eco_allowed: bool = False
    health_allowed: bool = False
    light_allowed: bool = False
    sleep_allowed: bool = False
    quiet_allowed: bool = False
    swing_allowed: bool = True
    temperature_settable: bool = True
    default_fan: FanLevel = FanLevel.MEDIUM
    fans: frozenset[FanLevel] | None = None


@dataclass(frozen=True, slots=True)
class BoostProfile:
    """Fixed override applied when boost is activated; None leaves a field."""

    temperature: float | None = None
    fan: FanLevel | None = None
    swing: SwingMode | None = None


@dataclass(slots=True)
class DeviceState:
    """Believed state of a single air conditioner."""

    power_on: bool = False
    mode: Mode = Mode.COOL
    fan: FanLevel = FanLevel.AUTO
    temperature: float = 24.0
    swing: SwingMode = SwingMode.OFF
    boost: bool = False
    eco: bool = False
    health: bool = False
    light: bool = False
    sleep: bool = False
    quiet: bool = False
    previous_fan: FanLevel = FanLevel.MEDIUM
    saved_snapshot: Snapshot | None = None
    power_toggle: bool = False


@dataclass(slots=True)
class RestoredState:
    """Fields recovered from a retained state message."""

    hvac_mode: Mode
    mode: Mode
    fan: FanLevel
    previous_fan: FanLevel
    swing: SwingMode
    temperature: float | None
    boost: bool
    eco: bool
    health: bool
    light: bool
    sleep: bool
    quiet: bool
    saved_snapshot: Snapshot | None

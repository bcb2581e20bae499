"""Dahatsu units, which speak the TCL112AC IR protocol."""

from __future__ import annotations

from ..const import PROTOCOL_DAHATSU
from ..models import BoostProfile, ConstraintTable, FanLevel, Mode, SwingMode
from .base import IRClimateDevice

_NO_AUTO_FAN = frozenset({FanLevel.LOW, FanLevel.MEDIUM, FanLevel.HIGH})


class DahatsuDevice(IRClimateDevice):
    """Dahatsu remote with absolute power and a half-degree setpoint.

    Boost has no dedicated fan level here; it is emulated with a per-mode
    profile that pushes temperature, fan and swing to their extremes.
    """

    protocol = PROTOCOL_DAHATSU
    vendor = "TCL112AC"
    temp_min = 16.0
    temp_max = 31.0
    temp_step = 0.5

    fan_levels = (FanLevel.AUTO, FanLevel.LOW, FanLevel.MEDIUM, FanLevel.HIGH)
    features = ("boost", "eco", "health", "light")

    constraints = {
        Mode.HEAT: ConstraintTable(
            health_allowed=True,
            light_allowed=True,
            boost_allowed=True,
            eco_allowed=True,
        ),
        Mode.DRY: ConstraintTable(
            health_allowed=True,
            light_allowed=True,
            temperature_settable=False,
            default_fan=FanLevel.AUTO,
            fans=frozenset({FanLevel.AUTO}),
        ),
        Mode.COOL: ConstraintTable(
            health_allowed=True,
            light_allowed=True,
            boost_allowed=True,
            eco_allowed=True,
        ),
        Mode.FAN: ConstraintTable(
            health_allowed=True,
            light_allowed=True,
            boost_allowed=True,
            temperature_settable=False,
            fans=_NO_AUTO_FAN,
        ),
        Mode.AUTO: ConstraintTable(
            health_allowed=True,
            light_allowed=True,
            temperature_settable=False,
        ),
    }
    boost_profiles = {
        Mode.HEAT: BoostProfile(
            temperature=temp_max, fan=FanLevel.HIGH, swing=SwingMode.HORIZONTAL
        ),
        Mode.COOL: BoostProfile(
            temperature=temp_min, fan=FanLevel.HIGH, swing=SwingMode.HORIZONTAL
        ),
        Mode.FAN: BoostProfile(fan=FanLevel.HIGH, swing=SwingMode.HORIZONTAL),
    }

    swing_axis = "SwingV"
    raw_fan_names = {
        FanLevel.AUTO: "Auto",
        FanLevel.LOW: "Low",
        FanLevel.MEDIUM: "Medium",
        FanLevel.HIGH: "High",
    }
    raw_flags = {
        "Turbo": "boost",
        "Econo": "eco",
        "Filter": "health",
        "Light": "light",
    }

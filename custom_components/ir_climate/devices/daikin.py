"""Daikin units driven with the 64-bit Daikin IR protocol."""

from __future__ import annotations

from ..const import PROTOCOL_DAIKIN64
from ..models import BoostProfile, ConstraintTable, FanLevel, Mode
from .base import IRClimateDevice

_NON_EXCLUSIVE_FANS = frozenset(
    {FanLevel.AUTO, FanLevel.LOW, FanLevel.MEDIUM, FanLevel.HIGH}
)


class Daikin64Device(IRClimateDevice):
    """Daikin64 remote: power is a toggle bit, turbo and quiet own fan levels."""

    protocol = PROTOCOL_DAIKIN64
    vendor = "DAIKIN64"
    temp_min = 16.0
    temp_max = 30.0
    temp_step = 1.0
    toggles_power = True

    fan_levels = (
        FanLevel.AUTO,
        FanLevel.QUIET,
        FanLevel.LOW,
        FanLevel.MEDIUM,
        FanLevel.HIGH,
        FanLevel.BOOST,
    )
    exclusive_fans = {FanLevel.BOOST: "boost", FanLevel.QUIET: "quiet"}
    features = ("boost", "quiet", "sleep")

    constraints = {
        Mode.HEAT: ConstraintTable(
            boost_allowed=True,
            quiet_allowed=True,
            sleep_allowed=True,
            fans=_NON_EXCLUSIVE_FANS,
        ),
        Mode.DRY: ConstraintTable(fans=_NON_EXCLUSIVE_FANS),
        Mode.COOL: ConstraintTable(
            boost_allowed=True,
            quiet_allowed=True,
            sleep_allowed=True,
            fans=_NON_EXCLUSIVE_FANS,
        ),
        Mode.FAN: ConstraintTable(
            temperature_settable=False,
            fans=frozenset({FanLevel.LOW, FanLevel.MEDIUM, FanLevel.HIGH}),
        ),
        Mode.AUTO: ConstraintTable(sleep_allowed=True, fans=_NON_EXCLUSIVE_FANS),
    }
    boost_profiles = {
        Mode.HEAT: BoostProfile(fan=FanLevel.BOOST),
        Mode.COOL: BoostProfile(fan=FanLevel.BOOST),
    }

    swing_axis = "SwingV"
    raw_fan_names = {
        FanLevel.AUTO: "Auto",
        FanLevel.QUIET: "Min",
        FanLevel.LOW: "Low",
        FanLevel.MEDIUM: "Medium",
        FanLevel.HIGH: "High",
        FanLevel.BOOST: "Max",
    }
    raw_flags = {"Turbo": "boost", "Quiet": "quiet"}

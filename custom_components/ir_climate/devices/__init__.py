"""Supported IR air conditioner variants."""

from __future__ import annotations

from .base import InvalidRawCommandError, IRClimateDevice, parse_on_off
from .dahatsu import DahatsuDevice
from .daikin import Daikin64Device

DEVICE_VARIANTS: dict[str, type[IRClimateDevice]] = {
    Daikin64Device.protocol: Daikin64Device,
    DahatsuDevice.protocol: DahatsuDevice,
}


def create_device(protocol: str) -> IRClimateDevice:
    """Create the model for a configured protocol.

    Raises:
        ValueError: If the protocol is not supported.

    """
    try:
        device_class = DEVICE_VARIANTS[protocol]
    except KeyError as err:
        error_msg = f"Unsupported protocol: {protocol}"
        raise ValueError(error_msg) from err
    return device_class()


__all__ = [
    "DEVICE_VARIANTS",
    "DahatsuDevice",
    "Daikin64Device",
    "IRClimateDevice",
    "InvalidRawCommandError",
    "create_device",
    "parse_on_off",
]

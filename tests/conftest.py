"""Pytest configuration and fixtures for IR Climate tests."""

import pytest

from custom_components.ir_climate.devices import DahatsuDevice, Daikin64Device
from custom_components.ir_climate.models import Mode


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        """Move the clock forward."""
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Fixture providing a fake monotonic clock."""
    return FakeClock()


@pytest.fixture
def daikin() -> Daikin64Device:
    """Fixture providing a Daikin64 model powered on in cool mode."""
    device = Daikin64Device()
    device.set_hvac_mode(Mode.COOL)
    device.mark_transmitted()
    return device


@pytest.fixture
def dahatsu() -> DahatsuDevice:
    """Fixture providing a Dahatsu model powered on in cool mode."""
    device = DahatsuDevice()
    device.set_hvac_mode(Mode.COOL)
    return device


@pytest.fixture
def daikin_frame() -> dict:
    """Fixture providing an IRHVAC frame decoded from a Daikin64 remote.

    Returns:
        A dictionary as found under IrReceived.IRHVAC.

    """
    return {
        "Vendor": "DAIKIN64",
        "Model": -1,
        "Power": "Off",
        "Mode": "Heat",
        "Celsius": "On",
        "Temp": 27,
        "FanSpeed": "High",
        "SwingV": "Off",
        "SwingH": "Off",
        "Quiet": "Off",
        "Turbo": "Off",
        "Econo": "Off",
        "Light": "Off",
        "Filter": "Off",
        "Clean": "Off",
        "Beep": "Off",
        "Sleep": -1,
    }


@pytest.fixture
def dahatsu_frame() -> dict:
    """Fixture providing an IRHVAC frame decoded from a TCL112AC remote.

    Returns:
        A dictionary as found under IrReceived.IRHVAC.

    """
    return {
        "Vendor": "TCL112AC",
        "Model": -1,
        "Power": "On",
        "Mode": "Heat",
        "Celsius": "On",
        "Temp": 22.5,
        "FanSpeed": "Low",
        "SwingV": "Auto",
        "SwingH": "Off",
        "Quiet": "Off",
        "Turbo": "Off",
        "Econo": "On",
        "Light": "On",
        "Filter": "Off",
        "Clean": "Off",
        "Beep": "Off",
        "Sleep": -1,
    }

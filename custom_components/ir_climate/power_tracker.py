"""Power stability tracker.

This module turns a stream of noisy power samples, as reported by a smart
plug in front of the air conditioner, into a coarse stable/unstable signal.
Registered callbacks fire exactly when a new stable reading is established,
which the coordinator uses to infer whether the unit is really on.
"""

from __future__ import annotations

import logging
import math
import time
from typing import TYPE_CHECKING

from .const import (
    DEFAULT_MAX_POWER_IN_OFF_STATE,
    DEFAULT_POWER_MAX_RISING_CHANGES,
    DEFAULT_POWER_MIN_CHANGES,
    DEFAULT_POWER_STABLE_TIME,
    DEFAULT_POWER_STEP_THRESHOLD,
    DEFAULT_STABLE_POWER_TIMEOUT,
)
from .models import PowerClassification

if TYPE_CHECKING:
    from collections.abc import Callable

_LOGGER = logging.getLogger(__name__)


class PowerTracker:
    """Classify a noisy power signal and report stable readings.

    A reading becomes stable when it stays unchanged for the settle
    duration, when it jumps away from the last stable value by more than the
    step threshold, when the signal oscillates around a level, or when it
    keeps rising. While stable, an unchanged reading is reported again every
    re-check timeout so the caller can re-verify its belief.
    """

    def __init__(
        self,
        power_stable_time: float = DEFAULT_POWER_STABLE_TIME,
        stable_power_timeout: float = DEFAULT_STABLE_POWER_TIMEOUT,
        max_power_in_off_state: float = DEFAULT_MAX_POWER_IN_OFF_STATE,
        power_step_threshold: float = DEFAULT_POWER_STEP_THRESHOLD,
        min_changes: int = DEFAULT_POWER_MIN_CHANGES,
        max_rising_changes: int = DEFAULT_POWER_MAX_RISING_CHANGES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the tracker.

        Args:
            power_stable_time: Seconds without change before a value is stable.
            stable_power_timeout: Seconds between re-reports of a stable value.
            max_power_in_off_state: Highest reading, in watts, of a unit that
                is switched off.
            power_step_threshold: Jump from the stable value, in watts, that
                is accepted immediately.
            min_changes: Changes needed before an oscillation is accepted.
            max_rising_changes: Consecutive rises accepted before the value
                is taken as stable.
            clock: Monotonic clock returning seconds.

        """
        self._power_stable_time = power_stable_time
        self._stable_power_timeout = stable_power_timeout
        self._max_power_in_off_state = max_power_in_off_state
        self._power_step_threshold = power_step_threshold
        self._min_changes = min_changes
        self._max_rising_changes = max_rising_changes
        self._clock = clock

        self._initialized = False
        self._classification = PowerClassification.UNKNOWN
        self._power = 0.0
        self._power_time = clock()
        self._stable_power = 0.0
        self._increase_count = 0
        self._increase_value = 0.0
        self._decrease_count = 0
        self._decrease_value = 0.0

        self._callbacks: list[Callable[[float], None]] = []

    @property
    def classification(self) -> PowerClassification:
        """Return the current classification of the signal."""
        return self._classification

    @property
    def stable_power(self) -> float:
        """Return the last stable reading."""
        return self._stable_power

    def register_callback(
        self,
        callback: Callable[[float], None],
    ) -> Callable[[], None]:
        """Register a callback fired with every new stable reading.

        Args:
            callback: Function to call with the stable power in watts.

        Returns:
            A function to unregister the callback.

        """
        self._callbacks.append(callback)

        def unregister() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unregister

    def is_initialized(self) -> bool:
        """Return True once a seed value has been provided."""
        return self._initialized

    def initialize(self, power: float) -> None:
        """Seed the tracker with a reading taken as stable."""
        self._initialized = True
        self._set_stable_power(power)

    def reset(self) -> None:
        """Stop tracking until the next seed value."""
        self._initialized = False
        self._classification = PowerClassification.UNKNOWN

    def is_power_unknown(self) -> bool:
        """Return True if no classification has been made yet."""
        return self._classification == PowerClassification.UNKNOWN

    def is_power_stable(self) -> bool:
        """Return True if the last reading is stable."""
        return self._classification == PowerClassification.STABLE

    def power_on(self) -> bool:
        """Return True if the last reading is above the off-state ceiling."""
        return self._power > self._max_power_in_off_state

    def set_power(self, power: float | None) -> None:
        """Feed a new sample into the tracker."""
        if not self._initialized:
            return

        if (
            not isinstance(power, (int, float))
            or isinstance(power, bool)
            or math.isnan(power)
        ):
            return

        if power != self._power:
            self._track_change(power)
            return

        elapsed = self._clock() - self._power_time

        if self._classification == PowerClassification.STABLE:
            if elapsed >= self._stable_power_timeout:
                _LOGGER.debug("Power %.2fW still stable, re-checking", power)
                self._power_time = self._clock()
                self._fire(power)
            return

        if elapsed >= self._power_stable_time:
            _LOGGER.debug("Power %.2fW settled", power)
            self._set_stable_power(power)
            self._fire(power)

    def _track_change(self, power: float) -> None:
        if power > self._power:
            self._classification = PowerClassification.RISING
            self._increase_count += 1
            self._increase_value += power - self._power
        else:
            self._classification = PowerClassification.FALLING
            self._decrease_count += 1
            self._decrease_value += self._power - power

        if abs(power - self._stable_power) > self._power_step_threshold:
            _LOGGER.debug(
                "Power stepped from %.2fW to %.2fW, taking it as stable",
                self._stable_power,
                power,
            )
            self._set_stable_power(power)
            self._fire(power)
            return

        total_change = abs(
            self._increase_count * self._increase_value
            - self._decrease_count * self._decrease_value
        )
        changes = self._increase_count + self._decrease_count
        if changes > self._min_changes and (
            total_change == 0 or total_change == abs(self._stable_power - power)
        ):
            _LOGGER.debug("Power oscillates around %.2fW, taking it as stable", power)
            self._set_stable_power(power)
            self._fire(power)
            return

        if self._increase_count > self._max_rising_changes:
            _LOGGER.debug("Power keeps rising, taking %.2fW as stable", power)
            self._set_stable_power(power)
            self._fire(power)
            return

        self._power = power
        self._power_time = self._clock()
        _LOGGER.debug("Tracking power: %.2fW (%s)", power, self._classification)

    def _set_stable_power(self, power: float) -> None:
        _LOGGER.debug(
            "Stable power %.2fW -> %.2fW (rises: %d/%.2fW, falls: %d/%.2fW)",
            self._stable_power,
            power,
            self._increase_count,
            self._increase_value,
            self._decrease_count,
            self._decrease_value,
        )
        self._classification = PowerClassification.STABLE
        self._power_time = self._clock()
        self._stable_power = power
        self._power = power

        self._increase_count = 0
        self._increase_value = 0.0
        self._decrease_count = 0
        self._decrease_value = 0.0

    def _fire(self, power: float) -> None:
        for callback in list(self._callbacks):
            try:
                callback(power)
            except Exception:
                _LOGGER.exception("Error in power callback")

"""Tests for the power stability tracker."""

import math
from unittest.mock import Mock

import pytest

from custom_components.ir_climate.models import PowerClassification
from custom_components.ir_climate.power_tracker import PowerTracker


@pytest.fixture
def tracker(clock) -> PowerTracker:
    """Create a tracker with default thresholds and a fake clock."""
    return PowerTracker(clock=clock)


@pytest.fixture
def on_stable(tracker: PowerTracker) -> Mock:
    """Register a mock stable-power callback."""
    callback = Mock()
    tracker.register_callback(callback)
    return callback


class TestInitialization:
    """Tests for seeding and resetting the tracker."""

    def test_samples_ignored_until_initialized(
        self, tracker: PowerTracker, on_stable: Mock
    ) -> None:
        """Test that nothing is tracked before the seed value."""
        tracker.set_power(500)

        assert tracker.is_initialized() is False
        assert tracker.is_power_unknown() is True
        on_stable.assert_not_called()

    def test_initialize_marks_stable(self, tracker: PowerTracker) -> None:
        """Test that the seed value is taken as stable."""
        tracker.initialize(350)

        assert tracker.is_initialized() is True
        assert tracker.is_power_stable() is True
        assert tracker.stable_power == 350
        assert tracker.power_on() is True

    def test_power_on_uses_off_ceiling(self, tracker: PowerTracker) -> None:
        """Test the off-state power ceiling."""
        tracker.initialize(20)
        assert tracker.power_on() is False

        tracker.initialize(20.5)
        assert tracker.power_on() is True

    def test_reset(self, tracker: PowerTracker, on_stable: Mock) -> None:
        """Test that reset stops tracking until the next seed."""
        tracker.initialize(100)

        tracker.reset()
        tracker.set_power(900)

        assert tracker.is_initialized() is False
        assert tracker.classification == PowerClassification.UNKNOWN
        on_stable.assert_not_called()

    @pytest.mark.parametrize("value", [None, math.nan, "abc", "5"])
    def test_missing_samples_ignored(
        self, tracker: PowerTracker, on_stable: Mock, value
    ) -> None:
        """Test that missing or non-numeric readings are skipped."""
        tracker.initialize(100)

        tracker.set_power(value)

        assert tracker.is_power_stable() is True
        on_stable.assert_not_called()


class TestStability:
    """Tests for stable reading detection."""

    def test_constant_stream_fires_once(
        self, clock, tracker: PowerTracker, on_stable: Mock
    ) -> None:
        """Test that a constant stream settles exactly once."""
        tracker.initialize(0)
        tracker.set_power(5)
        assert tracker.classification == PowerClassification.RISING

        for _ in range(29):
            clock.advance(1)
            tracker.set_power(5)

        on_stable.assert_called_once_with(5)
        assert tracker.is_power_stable() is True

    def test_stable_value_rechecked(
        self, clock, tracker: PowerTracker, on_stable: Mock
    ) -> None:
        """Test that a stable value is reported again after the timeout."""
        tracker.initialize(300)

        clock.advance(9)
        tracker.set_power(300)
        on_stable.assert_not_called()

        clock.advance(1)
        tracker.set_power(300)
        on_stable.assert_called_once_with(300)

        clock.advance(5)
        tracker.set_power(300)
        assert on_stable.call_count == 1

    def test_step_up_is_stable_immediately(
        self, tracker: PowerTracker, on_stable: Mock
    ) -> None:
        """Test that a jump above the step threshold is accepted at once."""
        tracker.initialize(5)

        tracker.set_power(400)

        on_stable.assert_called_once_with(400)
        assert tracker.power_on() is True

    def test_step_down_is_stable_immediately(
        self, tracker: PowerTracker, on_stable: Mock
    ) -> None:
        """Test that a drop beyond the step threshold is accepted at once."""
        tracker.initialize(400)

        tracker.set_power(3)

        on_stable.assert_called_once_with(3)
        assert tracker.power_on() is False

    def test_small_change_is_tracked(
        self, tracker: PowerTracker, on_stable: Mock
    ) -> None:
        """Test that changes within the threshold are only tracked."""
        tracker.initialize(300)

        tracker.set_power(350)

        on_stable.assert_not_called()
        assert tracker.classification == PowerClassification.RISING
        assert tracker.stable_power == 300

    def test_alternation_settles(
        self, tracker: PowerTracker, on_stable: Mock
    ) -> None:
        """Test that a signal oscillating around a level settles."""
        tracker.initialize(100)

        for sample in (110, 100, 110, 100, 110):
            tracker.set_power(sample)
        on_stable.assert_not_called()

        tracker.set_power(100)

        on_stable.assert_called_once_with(100)
        assert tracker.is_power_stable() is True

    def test_steady_rise_settles(
        self, tracker: PowerTracker, on_stable: Mock
    ) -> None:
        """Test that a signal that keeps rising is eventually accepted."""
        tracker.initialize(0)

        for sample in (10, 20, 30, 40, 50, 60):
            tracker.set_power(sample)
        on_stable.assert_not_called()

        tracker.set_power(70)

        on_stable.assert_called_once_with(70)


class TestCallbacks:
    """Tests for callback registration."""

    def test_unregister(self, tracker: PowerTracker) -> None:
        """Test that an unregistered callback is not called."""
        callback = Mock()
        unregister = tracker.register_callback(callback)

        unregister()
        tracker.initialize(5)
        tracker.set_power(400)

        callback.assert_not_called()

    def test_failing_callback_does_not_stop_others(
        self, tracker: PowerTracker
    ) -> None:
        """Test that an error in one callback is logged, not raised."""
        failing = Mock(side_effect=RuntimeError("boom"))
        working = Mock()
        tracker.register_callback(failing)
        tracker.register_callback(working)

        tracker.initialize(5)
        tracker.set_power(400)

        working.assert_called_once_with(400)

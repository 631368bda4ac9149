"""StabilityTracker 单元测试"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from detectors.stability_tracker import StabilityTracker
from models.data_models import StabilityResult


def _feed(tracker, xs, start=0.0, step=100.0):
    result = None
    for i, x in enumerate(xs):
        result = tracker.update(x, start + i * step)
    return result


class TestWarmUp:
    def test_below_min_samples_is_neutral(self):
        tracker = StabilityTracker()
        result = _feed(tracker, [0.1, 0.9] * 4 + [0.1])
        assert len(tracker) == 9
        assert result == StabilityResult(stability=100.0, sway_amount=0.0)

    def test_tenth_sample_enables_computation(self):
        tracker = StabilityTracker()
        result = _feed(tracker, [0.5, 0.52] * 5)
        assert result.sway_amount == pytest.approx(2.0)
        assert result.stability == pytest.approx(80.0)


class TestWindow:
    def test_still_subject_is_fully_stable(self):
        result = _feed(StabilityTracker(), [0.5] * 20)
        assert result.stability == 100.0
        assert result.sway_amount == 0.0

    def test_large_sway_clamps_to_zero(self):
        result = _feed(StabilityTracker(), [0.4, 0.6] * 10)
        assert result.sway_amount == pytest.approx(20.0)
        assert result.stability == 0.0

    def test_old_samples_are_evicted(self):
        tracker = StabilityTracker()
        _feed(tracker, [0.6] + [0.5] * 9)
        result = tracker.update(0.5, 5000.0)
        assert len(tracker) == 1
        assert result == StabilityResult(stability=100.0, sway_amount=0.0)

    def test_evicted_outlier_leaves_range(self):
        """t=0 的离群样本在计算窗口内时参与极差，过期后不再参与"""
        tracker = StabilityTracker()
        tracker.update(0.6, 0.0)
        result = _feed(tracker, [0.5] * 9, start=2100.0)
        assert len(tracker) == 10
        assert result.sway_amount == pytest.approx(10.0)
        assert result.stability == 0.0

        result = tracker.update(0.5, 3050.0)
        assert len(tracker) == 10
        assert all(ts > 0.0 for _, ts in tracker.samples)
        assert result.sway_amount == 0.0
        assert result.stability == 100.0

    def test_sample_on_window_edge_is_kept(self):
        tracker = StabilityTracker()
        tracker.update(0.5, 0.0)
        tracker.update(0.5, 3000.0)
        assert len(tracker) == 2

    def test_window_bounds_hold(self):
        tracker = StabilityTracker()
        _feed(tracker, [0.5] * 100, step=50.0)
        latest = tracker.samples[-1][1]
        assert all(latest - ts <= 3000.0 for _, ts in tracker.samples)


class TestInvalidInput:
    def test_out_of_order_sample_ignored(self):
        tracker = StabilityTracker()
        tracker.update(0.5, 100.0)
        tracker.update(0.9, 50.0)
        assert len(tracker) == 1
        assert tracker.samples == ((0.5, 100.0),)

    def test_equal_timestamp_accepted(self):
        tracker = StabilityTracker()
        tracker.update(0.5, 100.0)
        tracker.update(0.6, 100.0)
        assert len(tracker) == 2

    def test_nan_sample_ignored(self):
        tracker = StabilityTracker()
        tracker.update(float("nan"), 0.0)
        tracker.update(0.5, float("inf"))
        assert len(tracker) == 0


class TestClear:
    def test_clear_resets_buffer(self):
        tracker = StabilityTracker()
        _feed(tracker, [0.4, 0.6] * 10)
        tracker.clear()
        assert len(tracker) == 0
        assert tracker.update(0.5, 0.0) == StabilityResult(stability=100.0, sway_amount=0.0)

    def test_clear_allows_earlier_timestamps(self):
        tracker = StabilityTracker()
        tracker.update(0.5, 10000.0)
        tracker.clear()
        tracker.update(0.5, 0.0)
        assert len(tracker) == 1


@given(st.lists(st.floats(min_value=0.0, max_value=1.0), min_size=1, max_size=60))
def test_result_always_in_range(xs):
    result = _feed(StabilityTracker(), xs)
    assert 0.0 <= result.stability <= 100.0
    assert 0.0 <= result.sway_amount <= 100.0

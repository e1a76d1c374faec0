"""Unit tests for signal conditioning filters."""

import numpy as np
import pytest

from gasketcheck.analysis.filters import HighPassFilter, LowPassFilter, median_filter

SECOND_NS = 1_000_000_000


class TestMedianFilter:
    """Test median filtering with edge replication."""

    @pytest.mark.parametrize("window", [3, 5, 7, 9])
    def test_constant_sequence_unchanged(self, window):
        values = np.full(20, 1013.25)
        np.testing.assert_array_equal(median_filter(values, window), values)

    def test_removes_single_spike(self):
        values = [1.0, 1.0, 1.0, 50.0, 1.0, 1.0, 1.0]
        filtered = median_filter(values, 3)

        np.testing.assert_array_equal(filtered, np.ones(7))

    def test_edges_replicate_boundary_samples(self):
        # Window at index 0 sees [1, 1, 5] -> 1; at the end [9, 3, 3] -> 3
        filtered = median_filter([1.0, 5.0, 2.0, 9.0, 3.0], 3)

        assert filtered[0] == 1.0
        assert filtered[-1] == 3.0
        assert filtered[1] == 2.0

    def test_preserves_length(self):
        assert len(median_filter(np.arange(11.0), 5)) == 11

    def test_empty_input(self):
        assert len(median_filter([], 3)) == 0

    @pytest.mark.parametrize("window", [0, 1, 2, 4, 6])
    def test_invalid_window_rejected(self, window):
        with pytest.raises(ValueError, match="odd"):
            median_filter([1.0, 2.0, 3.0], window)


class TestLowPassFilter:
    """Test one-pole low-pass filter."""

    def test_first_sample_passes_through(self):
        lp = LowPassFilter(tau_sec=1.0)
        assert not lp.initialized
        assert lp.filter(0, 1013.25) == 1013.25
        assert lp.initialized

    def test_zero_dt_passes_new_sample(self):
        lp = LowPassFilter(tau_sec=1.0)
        lp.filter(0, 1000.0)

        assert lp.filter(0, 1010.0) == 1010.0

    def test_non_positive_tau_passes_through(self):
        lp = LowPassFilter(tau_sec=0.0)
        lp.filter(0, 1000.0)

        assert lp.filter(SECOND_NS, 1010.0) == 1010.0

    def test_alpha_from_time_delta(self):
        lp = LowPassFilter(tau_sec=1.0)
        lp.filter(0, 0.0)

        # dt = 1 s, tau = 1 s -> alpha = 0.5
        assert lp.filter(SECOND_NS, 10.0) == pytest.approx(5.0)

    def test_converges_to_step(self):
        lp = LowPassFilter(tau_sec=0.2)
        lp.filter(0, 0.0)

        y = 0.0
        for i in range(1, 200):
            y = lp.filter(i * 40_000_000, 1.0)
        assert y == pytest.approx(1.0, abs=1e-6)

    def test_backwards_time_treated_as_zero_dt(self):
        lp = LowPassFilter(tau_sec=1.0)
        lp.filter(SECOND_NS, 0.0)

        assert lp.filter(0, 7.0) == 7.0

    def test_reset(self):
        lp = LowPassFilter(tau_sec=1.0)
        lp.filter(0, 0.0)
        lp.filter(SECOND_NS, 10.0)
        lp.reset()

        assert not lp.initialized
        assert lp.filter(2 * SECOND_NS, 42.0) == 42.0


class TestHighPassFilter:
    """Test drift-removing high-pass filter."""

    def test_first_sample_is_zero(self):
        hp = HighPassFilter(tau_sec=1.0)
        assert hp.filter(0, 1013.25) == 0.0

    def test_constant_input_decays_to_zero(self):
        hp = HighPassFilter(tau_sec=0.5)
        out = [hp.filter(i * 40_000_000, 1013.25) for i in range(100)]

        assert all(v == pytest.approx(0.0) for v in out)

    def test_step_response(self):
        hp = HighPassFilter(tau_sec=1.0)
        hp.filter(0, 0.0)

        # alpha = 0.5: low-pass moves to 5, high-pass reports the remaining 5
        assert hp.filter(SECOND_NS, 10.0) == pytest.approx(5.0)

    def test_reset(self):
        hp = HighPassFilter(tau_sec=1.0)
        hp.filter(0, 0.0)
        hp.filter(SECOND_NS, 10.0)
        hp.reset()

        assert hp.filter(2 * SECOND_NS, 10.0) == 0.0

"""Unit tests for seal scoring and verdicts."""

import pytest

from gasketcheck.analysis.scoring import (
    classify_verdict,
    score,
    score_with_calibration,
)
from gasketcheck.analysis.types import Calibration, Features, Score
from gasketcheck.constants import SealVerdict


class TestScore:
    """Test the feature-to-score mapping."""

    def test_zero_features(self):
        result = score(Features())

        assert result.value == 0
        assert result.confidence == pytest.approx(0.2)

    def test_full_score(self):
        result = score(Features(delta_p_max=1.0, decay_tau_sec=2.0, r2=1.0))

        assert result.value == 100
        assert result.confidence == pytest.approx(1.0)

    def test_delta_only(self):
        # Delta saturates at 0.5 hPa: 60 points; tau at/below 0.5 s scores zero
        result = score(Features(delta_p_max=0.5, decay_tau_sec=0.5, r2=0.5))

        assert result.value == 60
        assert result.confidence == pytest.approx(0.6)

    def test_tau_only(self):
        result = score(Features(delta_p_max=0.1, decay_tau_sec=1.3, r2=0.0))
        assert result.value == 40

    def test_rounds_to_nearest(self):
        # delta component: 0.6 * (0.3 - 0.15) / 0.35 = 0.2571... -> 26
        result = score(Features(delta_p_max=0.3))
        assert result.value == 26

    @pytest.mark.parametrize(
        "tau,expected",
        [
            (0.5625, 3),  # 0.4 * 0.0625 -> 2.5
            (0.8125, 13),  # 0.4 * 0.3125 -> 12.5
            (0.9375, 18),  # 0.4 * 0.4375 -> 17.5
        ],
    )
    def test_exact_halves_round_up(self, tau, expected):
        result = score(Features(decay_tau_sec=tau), high_tau_sec=1.0)
        assert result.value == expected

    @pytest.mark.parametrize("tau", [0.0, 0.8, 1.2])
    def test_monotonic_in_delta(self, tau):
        values = [
            score(Features(delta_p_max=d / 20, decay_tau_sec=tau)).value
            for d in range(0, 21)
        ]
        assert values == sorted(values)

    @pytest.mark.parametrize("delta", [0.0, 0.3, 0.6])
    def test_monotonic_in_tau(self, delta):
        values = [
            score(Features(delta_p_max=delta, decay_tau_sec=t / 10)).value
            for t in range(0, 31)
        ]
        assert values == sorted(values)

    def test_calibration_thresholds(self):
        features = Features(delta_p_max=0.3, decay_tau_sec=1.0, r2=0.9)
        strict = Calibration(low_delta_p=0.25, high_tau_sec=2.0)

        assert score_with_calibration(features, strict).value < score(features).value
        assert score_with_calibration(features, Calibration()) == score(features)


class TestVerdict:
    """Test verdict classification."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (100, SealVerdict.LIKELY_OK),
            (70, SealVerdict.LIKELY_OK),
            (69, SealVerdict.INCONCLUSIVE),
            (40, SealVerdict.INCONCLUSIVE),
            (39, SealVerdict.LIKELY_COMPROMISED),
            (0, SealVerdict.LIKELY_COMPROMISED),
        ],
    )
    def test_thresholds(self, value, expected):
        assert classify_verdict(Score(value=value, confidence=0.9)) == expected

    def test_floor_confidence_is_inconclusive(self):
        assert (
            classify_verdict(Score(value=95, confidence=0.2))
            == SealVerdict.INCONCLUSIVE
        )
        assert (
            classify_verdict(Score(value=5, confidence=0.2)) == SealVerdict.INCONCLUSIVE
        )
